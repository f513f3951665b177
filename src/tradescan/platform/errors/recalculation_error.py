from __future__ import annotations

from .logic_error import LogicError


class RecalculationError(LogicError):
    """
    Raised when a progressive sub-candle sequence is exhausted before the requested timestamp.

    Related: tradescan.contexts.indicators.application.services.indicator_engine
    """

    def __init__(self, *, timestamp: int) -> None:
        self.timestamp = timestamp
        super().__init__(f"Progressive recalculation failed for timestamp: {timestamp}")
