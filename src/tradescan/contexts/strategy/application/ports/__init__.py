from .indicator_factory import IndicatorFactory
from .repositories import TradeSetupRepository

__all__ = [
    "IndicatorFactory",
    "TradeSetupRepository",
]
