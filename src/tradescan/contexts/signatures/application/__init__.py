from .ports import SignatureRegistry

__all__ = [
    "SignatureRegistry",
]
