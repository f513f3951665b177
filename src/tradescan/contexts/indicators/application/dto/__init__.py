from .candle_arrays import CandleArrays

__all__ = [
    "CandleArrays",
]
