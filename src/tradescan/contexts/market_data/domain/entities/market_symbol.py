from __future__ import annotations

from dataclasses import dataclass, replace

from tradescan.shared_kernel.primitives import ExchangeId, Ticker, Timeframe


@dataclass(frozen=True, slots=True)
class MarketSymbol:
    """
    MarketSymbol — one stored candle series: instrument on an exchange at one timeframe.

    Related:
      - src/tradescan/contexts/market_data/application/ports/symbol_repository.py
      - src/tradescan/contexts/indicators/application/services/indicator_engine.py
    """

    symbol_id: int
    exchange: ExchangeId
    ticker: Ticker
    timeframe: Timeframe
    last_update: int = 0

    def __post_init__(self) -> None:
        """
        Validate storage identity and freshness marker.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            `last_update` is epoch milliseconds of the last successful candle refresh.
        Raises:
            ValueError: If identifier or freshness marker is negative.
        Side Effects:
            None.
        """
        if isinstance(self.symbol_id, bool) or self.symbol_id <= 0:
            raise ValueError(f"MarketSymbol.symbol_id must be > 0, got {self.symbol_id!r}")
        if self.last_update < 0:
            raise ValueError(f"MarketSymbol.last_update must be >= 0, got {self.last_update}")

    def same_instrument(self, other: MarketSymbol) -> bool:
        """True when `other` is the same exchange + ticker, regardless of timeframe."""
        return self.exchange == other.exchange and self.ticker == other.ticker

    def refreshed(self, *, last_update: int) -> MarketSymbol:
        """Return a copy marked as refreshed at `last_update`."""
        return replace(self, last_update=last_update)

    def __str__(self) -> str:
        return f"{self.exchange}:{self.ticker}-{self.timeframe}"
