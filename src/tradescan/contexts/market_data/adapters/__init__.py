from .outbound import InMemorySymbolRepository

__all__ = [
    "InMemorySymbolRepository",
]
