from .entities import (
    HelperIndicatorSetup,
    IndicatorSetup,
    SetupTransform,
    StrategyConfig,
    StrategyDefinition,
    TradeSetup,
    TradeSetupRule,
)
from .services import match_signal_chains

__all__ = [
    "HelperIndicatorSetup",
    "IndicatorSetup",
    "SetupTransform",
    "StrategyConfig",
    "StrategyDefinition",
    "TradeSetup",
    "TradeSetupRule",
    "match_signal_chains",
]
