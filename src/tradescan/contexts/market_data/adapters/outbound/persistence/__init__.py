from .in_memory import InMemorySymbolRepository

__all__ = [
    "InMemorySymbolRepository",
]
