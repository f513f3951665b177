from .catalog import (
    DEFAULT_ENGINES,
    Atr,
    BollingerBands,
    Ema,
    IndicatorCatalog,
    Macd,
    Rsi,
    Sma,
    Stoch,
    Wma,
)
from .persistence import InMemorySignalRepository, PostgresSignalRepository

__all__ = [
    "DEFAULT_ENGINES",
    "Atr",
    "BollingerBands",
    "Ema",
    "InMemorySignalRepository",
    "IndicatorCatalog",
    "Macd",
    "PostgresSignalRepository",
    "Rsi",
    "Sma",
    "Stoch",
    "Wma",
]
