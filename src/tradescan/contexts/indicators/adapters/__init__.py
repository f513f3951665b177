from .outbound import (
    DEFAULT_ENGINES,
    Atr,
    BollingerBands,
    Ema,
    IndicatorCatalog,
    InMemorySignalRepository,
    Macd,
    PostgresSignalRepository,
    Rsi,
    Sma,
    Stoch,
    Wma,
)

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
