from .signal_repository import InMemorySignalRepository

__all__ = [
    "InMemorySignalRepository",
]
