from .candle_series import CandleSeries, PrevNextCandles
from .market_symbol import MarketSymbol

__all__ = [
    "CandleSeries",
    "MarketSymbol",
    "PrevNextCandles",
]
