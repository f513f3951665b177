from .entities import Signature
from .services import canonical_payload_hash, canonical_payload_json

__all__ = [
    "Signature",
    "canonical_payload_hash",
    "canonical_payload_json",
]
