from __future__ import annotations

import json
from typing import Any, Mapping

from tradescan.contexts.signatures.application.ports import SignatureRegistry
from tradescan.contexts.signatures.domain.entities import Signature
from tradescan.contexts.signatures.domain.services import (
    canonical_payload_hash,
    canonical_payload_json,
)


class InMemorySignatureRegistry(SignatureRegistry):
    """
    InMemorySignatureRegistry — deterministic in-memory SignatureRegistry adapter for dev/tests.

    Related:
      - src/tradescan/contexts/signatures/application/ports/signature_registry.py
      - tests/unit/contexts/signatures/adapters/test_in_memory_signature_registry.py
    """

    def __init__(self) -> None:
        self._signatures_by_hash: dict[str, Signature] = {}

    def register(self, *, payload: Mapping[str, Any]) -> Signature:
        """
        Return stored signature for `payload`, creating it on first registration.

        Args:
            payload: JSON-serializable configuration mapping.
        Returns:
            Signature: Stored signature with sequential identifier.
        Assumptions:
            Payload is snapshotted through its canonical JSON form.
        Raises:
            TypeError: If payload cannot be serialized to JSON.
        Side Effects:
            Writes in-memory dictionary on first registration.
        """
        digest = canonical_payload_hash(payload)
        existing = self._signatures_by_hash.get(digest)
        if existing is not None:
            return existing

        signature = Signature(
            signature_id=len(self._signatures_by_hash) + 1,
            hash=digest,
            payload=json.loads(canonical_payload_json(payload)),
        )
        self._signatures_by_hash[digest] = signature
        return signature

    def __len__(self) -> int:
        return len(self._signatures_by_hash)
