from .persistence import InMemorySignatureRegistry, PostgresSignatureRegistry

__all__ = [
    "InMemorySignatureRegistry",
    "PostgresSignatureRegistry",
]
