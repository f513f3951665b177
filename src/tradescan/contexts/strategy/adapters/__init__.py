from .outbound import InMemoryTradeSetupRepository, PostgresTradeSetupRepository

__all__ = [
    "InMemoryTradeSetupRepository",
    "PostgresTradeSetupRepository",
]
