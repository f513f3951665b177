from .indicator_catalog import DEFAULT_ENGINES, IndicatorCatalog
from .moving_averages import Ema, MovingAverageConfig, Sma, Wma
from .oscillators import Macd, MacdConfig, Rsi, RsiConfig, Stoch, StochConfig
from .volatility import Atr, AtrConfig, BollingerBands, BollingerBandsConfig

__all__ = [
    "DEFAULT_ENGINES",
    "Atr",
    "AtrConfig",
    "BollingerBands",
    "BollingerBandsConfig",
    "Ema",
    "IndicatorCatalog",
    "Macd",
    "MacdConfig",
    "MovingAverageConfig",
    "Rsi",
    "RsiConfig",
    "Sma",
    "Stoch",
    "StochConfig",
    "Wma",
]
