from .signature_registry import PostgresSignatureRegistry

__all__ = [
    "PostgresSignatureRegistry",
]
