from .entities import CandleSeries, MarketSymbol, PrevNextCandles

__all__ = [
    "CandleSeries",
    "MarketSymbol",
    "PrevNextCandles",
]
