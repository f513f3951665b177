"""
Numpy compute kernels for the indicator catalog.

Related: tradescan.contexts.indicators.adapters.outbound.catalog
"""

from .ma import (
    ema_series_f64,
    rolling_sum_series_f64,
    sma_series_f64,
    wilder_series_f64,
    wma_series_f64,
)
from .momentum import (
    macd_series_f64,
    rolling_max_series_f64,
    rolling_min_series_f64,
    rsi_series_f64,
    stoch_series_f64,
)
from .volatility import (
    atr_series_f64,
    bollinger_series_f64,
    rolling_variance_series_f64,
    true_range_series_f64,
)

__all__ = [
    "atr_series_f64",
    "bollinger_series_f64",
    "ema_series_f64",
    "macd_series_f64",
    "rolling_max_series_f64",
    "rolling_min_series_f64",
    "rolling_sum_series_f64",
    "rolling_variance_series_f64",
    "rsi_series_f64",
    "sma_series_f64",
    "stoch_series_f64",
    "true_range_series_f64",
    "wilder_series_f64",
    "wma_series_f64",
]
