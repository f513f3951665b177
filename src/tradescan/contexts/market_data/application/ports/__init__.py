from .clock import Clock
from .symbol_repository import SymbolRepository

__all__ = [
    "Clock",
    "SymbolRepository",
]
