from .signature import Signature

__all__ = [
    "Signature",
]
