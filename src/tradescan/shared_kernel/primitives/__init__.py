"""
Shared Kernel primitives.

This package re-exports the minimal set of domain primitives so that other
modules can import them from one place:

    from tradescan.shared_kernel.primitives import Candle, ExchangeId, Ticker, Timeframe
"""

from .candle import Candle
from .exchange_id import ExchangeId
from .ticker import Ticker
from .timeframe import Timeframe

__all__ = [
    "Candle",
    "ExchangeId",
    "Ticker",
    "Timeframe",
]
