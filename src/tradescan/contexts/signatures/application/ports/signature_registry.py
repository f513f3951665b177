from __future__ import annotations

from typing import Any, Mapping, Protocol

from tradescan.contexts.signatures.domain.entities import Signature


class SignatureRegistry(Protocol):
    """
    SignatureRegistry — port that turns a configuration-like payload into a stored signature.

    Related:
      - src/tradescan/contexts/signatures/domain/services/canonical_hash.py
      - src/tradescan/contexts/indicators/application/services/indicator_engine.py
      - src/tradescan/contexts/strategy/application/services/strategy_composer.py
    """

    def register(self, *, payload: Mapping[str, Any]) -> Signature:
        """
        Store (or reuse) the signature of `payload`.

        Args:
            payload: JSON-serializable configuration mapping.
        Returns:
            Signature: Stored signature; identical payloads return equal signatures.
        Assumptions:
            Registration is idempotent per canonical payload hash.
        Raises:
            TypeError: If payload cannot be serialized to JSON.
            StorageError: If storage cannot map the stored row.
        Side Effects:
            May write one signature row.
        """
        ...
