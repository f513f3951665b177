from .ports import IndicatorFactory, TradeSetupRepository
from .services import StrategyComposer

__all__ = [
    "IndicatorFactory",
    "StrategyComposer",
    "TradeSetupRepository",
]
