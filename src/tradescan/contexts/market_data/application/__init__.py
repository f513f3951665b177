from .ports import Clock, SymbolRepository

__all__ = [
    "Clock",
    "SymbolRepository",
]
