from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from tradescan.contexts.signatures.domain.entities import Signature


class SignalSide(str, Enum):
    """Trade direction suggested by a signal."""

    BUY = "BUY"
    SELL = "SELL"

    def opposite(self) -> SignalSide:
        return SignalSide.SELL if self is SignalSide.BUY else SignalSide.BUY


@dataclass(frozen=True, slots=True)
class Signal:
    """
    Signal — one detected event of an indicator at a candle timestamp.

    A template signal (no side, no name) is handed to the detector on each scan step;
    the detector answers with `signal.emit(...)` or `None`. The scanner then stamps
    timestamp, price and price date, and persists it keyed by `unique_key`.

    Related:
      - src/tradescan/contexts/indicators/application/services/signal_detector.py
      - src/tradescan/contexts/indicators/application/ports/signal_repository.py
      - src/tradescan/contexts/strategy/domain/services/setup_matcher.py
    """

    symbol_id: int
    indicator_signature: Signature
    detector_signature: Signature
    side: SignalSide | None = None
    name: str | None = None
    timestamp: int | None = None
    price: float | None = None
    price_date: int | None = None
    signal_id: int | None = None

    def __post_init__(self) -> None:
        """
        Validate side/name pairing and stamped values.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Side and name are either both set (emitted) or both unset (template).
        Raises:
            ValueError: If side/name pairing or stamped values are invalid.
        Side Effects:
            Normalizes side given as string.
        """
        if isinstance(self.side, str) and not isinstance(self.side, SignalSide):
            object.__setattr__(self, "side", SignalSide(self.side.strip().upper()))
        if self.name is not None:
            normalized_name = self.name.strip()
            if not normalized_name:
                raise ValueError("Signal.name must be non-empty")
            if "|" in normalized_name:
                raise ValueError("Signal.name must not contain '|'")
            object.__setattr__(self, "name", normalized_name)
        if (self.side is None) != (self.name is None):
            raise ValueError("Signal requires side and name together")
        if self.timestamp is not None and self.timestamp < 0:
            raise ValueError(f"Signal.timestamp must be >= 0, got {self.timestamp}")

    @property
    def is_template(self) -> bool:
        return self.side is None

    def is_buy(self) -> bool:
        return self.side is SignalSide.BUY

    def emit(self, *, side: SignalSide | str, name: str, price: float | None = None) -> Signal:
        """
        Create the detected signal from this template.

        Args:
            side: Suggested direction.
            name: Short event name, e.g. `cross_up`.
            price: Optional explicit price; defaults to the candle close when stamped.
        Returns:
            Signal: New signal sharing symbol and signatures with the template.
        Assumptions:
            Timestamp and price date are stamped later by the scanner.
        Raises:
            ValueError: If side or name is invalid.
        Side Effects:
            None.
        """
        return replace(self, side=side, name=name, price=price)

    def stamped(self, *, timestamp: int, price: float, price_date: int | None) -> Signal:
        return replace(self, timestamp=timestamp, price=price, price_date=price_date)

    def stored(self, *, signal_id: int) -> Signal:
        return replace(self, signal_id=signal_id)

    def unique_key(self) -> tuple[int, str, int | None, str | None]:
        """Storage identity: `(symbol_id, indicator signature hash, timestamp, name)`."""
        return (self.symbol_id, self.indicator_signature.hash, self.timestamp, self.name)
