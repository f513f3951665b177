from .trade_setup_repository import TradeSetupRepository

__all__ = [
    "TradeSetupRepository",
]
