from .canonical_hash import canonical_payload_hash, canonical_payload_json

__all__ = [
    "canonical_payload_hash",
    "canonical_payload_json",
]
