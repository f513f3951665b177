from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

_HASH_LENGTH = 64


@dataclass(frozen=True, slots=True)
class Signature:
    """
    Signature — stored content hash of a configuration-like payload.

    Two signatures are equal when they share identifier and hash; the payload is kept for
    inspection only.

    Related:
      - src/tradescan/contexts/signatures/domain/services/canonical_hash.py
      - src/tradescan/contexts/signatures/application/ports/signature_registry.py
    """

    signature_id: int
    hash: str
    payload: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self) -> None:
        """
        Validate identifier and sha256 hex digest shape.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Hash is lowercase hex sha256 of canonical payload JSON.
        Raises:
            ValueError: If identifier is not positive or hash is malformed.
        Side Effects:
            Copies payload into a plain dict.
        """
        if isinstance(self.signature_id, bool) or self.signature_id <= 0:
            raise ValueError(f"Signature.signature_id must be > 0, got {self.signature_id!r}")
        normalized_hash = self.hash.strip().lower()
        if len(normalized_hash) != _HASH_LENGTH or any(
            char not in "0123456789abcdef" for char in normalized_hash
        ):
            raise ValueError(f"Signature.hash must be sha256 hex digest, got {self.hash!r}")
        object.__setattr__(self, "hash", normalized_hash)
        object.__setattr__(self, "payload", dict(self.payload))

    def __str__(self) -> str:
        return self.hash
