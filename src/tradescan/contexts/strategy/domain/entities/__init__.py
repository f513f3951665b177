from .setup_rule import SetupTransform, TradeSetupRule
from .strategy_definition import (
    HelperIndicatorSetup,
    IndicatorSetup,
    StrategyConfig,
    StrategyDefinition,
)
from .trade_setup import TradeSetup

__all__ = [
    "HelperIndicatorSetup",
    "IndicatorSetup",
    "SetupTransform",
    "StrategyConfig",
    "StrategyDefinition",
    "TradeSetup",
    "TradeSetupRule",
]
