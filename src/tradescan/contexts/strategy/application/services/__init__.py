from .strategy_composer import StrategyComposer

__all__ = [
    "StrategyComposer",
]
