from .in_memory import InMemoryTradeSetupRepository
from .postgres import PostgresTradeSetupRepository

__all__ = [
    "InMemoryTradeSetupRepository",
    "PostgresTradeSetupRepository",
]
