from .symbol_repository import InMemorySymbolRepository

__all__ = [
    "InMemorySymbolRepository",
]
