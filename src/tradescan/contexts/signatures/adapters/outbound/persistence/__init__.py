from .in_memory import InMemorySignatureRegistry
from .postgres import PostgresSignatureRegistry

__all__ = [
    "InMemorySignatureRegistry",
    "PostgresSignatureRegistry",
]
