from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Candle:
    """
    Candle — one OHLCV bar opened at `timestamp` (epoch milliseconds).

    Candles are immutable once stored; identity is `(symbol_id, timeframe, timestamp)`
    and lives in the owning series, not in the bar itself.
    """

    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    def __post_init__(self) -> None:
        if self.timestamp < 0:
            raise ValueError(f"Candle requires timestamp >= 0, got {self.timestamp}")

        # OHLC invariants
        if self.high < max(self.open, self.close):
            raise ValueError("Candle requires high >= max(open, close)")

        if self.low > min(self.open, self.close):
            raise ValueError("Candle requires low <= min(open, close)")

        if self.volume < 0:
            raise ValueError("Candle requires volume >= 0")

    def as_dict(self) -> dict:
        """Plain mapping representation, numbers as float and timestamp as int."""
        return {
            "timestamp": int(self.timestamp),
            "open": float(self.open),
            "high": float(self.high),
            "low": float(self.low),
            "close": float(self.close),
            "volume": float(self.volume),
        }
