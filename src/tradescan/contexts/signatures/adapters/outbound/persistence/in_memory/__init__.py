from .signature_registry import InMemorySignatureRegistry

__all__ = [
    "InMemorySignatureRegistry",
]
