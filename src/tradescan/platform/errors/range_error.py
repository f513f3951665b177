from __future__ import annotations


class RangeError(LookupError):
    """
    Raised when finer-resolution candles do not cover the expected `[start, boundary)` range.

    Indicates missing historical data in storage; surfaced to the caller, not retried.

    Related: tradescan.contexts.indicators.application.services.indicator_engine
    """
