from .persistence import InMemorySymbolRepository

__all__ = [
    "InMemorySymbolRepository",
]
