from .persistence import InMemoryTradeSetupRepository, PostgresTradeSetupRepository

__all__ = [
    "InMemoryTradeSetupRepository",
    "PostgresTradeSetupRepository",
]
