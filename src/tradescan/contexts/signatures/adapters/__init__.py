from .outbound import InMemorySignatureRegistry, PostgresSignatureRegistry

__all__ = [
    "InMemorySignatureRegistry",
    "PostgresSignatureRegistry",
]
