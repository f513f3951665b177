from .trade_setup_repository import PostgresTradeSetupRepository

__all__ = [
    "PostgresTradeSetupRepository",
]
