from .signal_repository import SignalRepository

__all__ = [
    "SignalRepository",
]
