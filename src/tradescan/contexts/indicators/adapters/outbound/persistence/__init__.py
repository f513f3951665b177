from .in_memory import InMemorySignalRepository
from .postgres import PostgresSignalRepository

__all__ = [
    "InMemorySignalRepository",
    "PostgresSignalRepository",
]
