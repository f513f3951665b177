from .trade_setup_repository import InMemoryTradeSetupRepository

__all__ = [
    "InMemoryTradeSetupRepository",
]
