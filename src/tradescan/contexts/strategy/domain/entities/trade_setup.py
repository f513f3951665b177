from __future__ import annotations

from dataclasses import dataclass, replace

from tradescan.contexts.indicators.domain.entities import Signal, SignalSide
from tradescan.contexts.signatures.domain.entities import Signature


@dataclass(frozen=True, slots=True)
class TradeSetup:
    """
    TradeSetup — chain of same-side signals matched by one setup rule.

    Side, timestamp, price and price date come from the last signal of the chain; `name`
    joins signal names with `|`. Storage identity is `(signature, symbol_id, timestamp)`.

    Related:
      - src/tradescan/contexts/strategy/domain/services/setup_matcher.py
      - src/tradescan/contexts/strategy/application/ports/repositories/trade_setup_repository.py
      - alembic/versions/20261019_0001_tradescan_storage_v1.py
    """

    symbol_id: int
    rule_key: str
    side: SignalSide
    name: str
    signal_count: int
    timestamp: int
    price: float
    price_date: int | None
    signature: Signature
    signals: tuple[Signal, ...]
    setup_id: int | None = None

    def __post_init__(self) -> None:
        """
        Validate setup invariants.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Signals are stored snapshots, in rule order.
        Raises:
            ValueError: If one of invariants is violated.
        Side Effects:
            Normalizes side given as string and signals given as list.
        """
        if isinstance(self.side, str) and not isinstance(self.side, SignalSide):
            object.__setattr__(self, "side", SignalSide(self.side.strip().upper()))
        object.__setattr__(self, "signals", tuple(self.signals))

        if not self.rule_key.strip():
            raise ValueError("TradeSetup.rule_key must be non-empty")
        if not self.name.strip():
            raise ValueError("TradeSetup.name must be non-empty")
        if self.signal_count <= 0:
            raise ValueError(f"TradeSetup.signal_count must be > 0, got {self.signal_count}")
        if self.timestamp < 0:
            raise ValueError(f"TradeSetup.timestamp must be >= 0, got {self.timestamp}")
        if not self.signals:
            raise ValueError("TradeSetup requires at least one signal")

    @classmethod
    def from_signals(
        cls,
        *,
        symbol_id: int,
        rule_key: str,
        signature: Signature,
        signals: tuple[Signal, ...],
    ) -> TradeSetup:
        """
        Build setup from a matched signal chain.

        Args:
            symbol_id: Symbol the chain belongs to.
            rule_key: Key of the matching rule.
            signature: Trade-setup signature of the rule.
            signals: Matched signals in rule order.
        Returns:
            TradeSetup: Unsaved setup.
        Assumptions:
            Every signal is stamped, so timestamp and price are set.
        Raises:
            ValueError: If signals are empty or not stamped.
        Side Effects:
            None.
        """
        if not signals:
            raise ValueError("TradeSetup requires at least one signal")
        last = signals[-1]
        if last.side is None or last.timestamp is None or last.price is None:
            raise ValueError("TradeSetup requires stamped signals")
        return cls(
            symbol_id=symbol_id,
            rule_key=rule_key,
            side=last.side,
            name="|".join(str(signal.name) for signal in signals),
            signal_count=len(signals),
            timestamp=last.timestamp,
            price=last.price,
            price_date=last.price_date,
            signature=signature,
            signals=signals,
        )

    def is_buy(self) -> bool:
        return self.side is SignalSide.BUY

    def stored(self, *, setup_id: int) -> TradeSetup:
        return replace(self, setup_id=setup_id)

    def unique_key(self) -> tuple[str, int, int]:
        return (self.signature.hash, self.symbol_id, self.timestamp)
