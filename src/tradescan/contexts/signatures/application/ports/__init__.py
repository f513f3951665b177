from .signature_registry import SignatureRegistry

__all__ = [
    "SignatureRegistry",
]
