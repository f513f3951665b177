from __future__ import annotations

import json
from typing import Any, Mapping

from tradescan.contexts.signatures.application.ports import SignatureRegistry
from tradescan.contexts.signatures.domain.entities import Signature
from tradescan.contexts.signatures.domain.services import (
    canonical_payload_hash,
    canonical_payload_json,
)
from tradescan.platform.errors import StorageError
from tradescan.platform.postgres import PostgresGateway


class PostgresSignatureRegistry(SignatureRegistry):
    """
    PostgresSignatureRegistry — explicit SQL adapter for idempotent signature storage.

    Related:
      - src/tradescan/contexts/signatures/application/ports/signature_registry.py
      - src/tradescan/platform/postgres/gateway.py
      - alembic/versions/20261019_0001_tradescan_storage_v1.py
    """

    def __init__(
        self,
        *,
        gateway: PostgresGateway,
        signatures_table: str = "tradescan_signatures",
    ) -> None:
        """
        Initialize registry with SQL gateway and target table name.

        Args:
            gateway: SQL gateway abstraction.
            signatures_table: Signature table name.
        Returns:
            None.
        Assumptions:
            Table has unique constraint on `hash`.
        Raises:
            ValueError: If dependencies are invalid.
        Side Effects:
            None.
        """
        if gateway is None:  # type: ignore[truthy-bool]
            raise ValueError("PostgresSignatureRegistry requires gateway")
        normalized_table = signatures_table.strip()
        if not normalized_table:
            raise ValueError("PostgresSignatureRegistry requires non-empty signatures_table")
        self._gateway = gateway
        self._signatures_table = normalized_table
        self._cache: dict[str, Signature] = {}

    def register(self, *, payload: Mapping[str, Any]) -> Signature:
        """
        Upsert signature row keyed by payload hash.

        Args:
            payload: JSON-serializable configuration mapping.
        Returns:
            Signature: Persisted signature row.
        Assumptions:
            `ON CONFLICT (hash) DO UPDATE` makes `RETURNING` yield the existing row.
        Raises:
            StorageError: If upsert returns no row or row mapping fails.
        Side Effects:
            Executes at most one SQL upsert per distinct hash per registry instance.
        """
        digest = canonical_payload_hash(payload)
        cached = self._cache.get(digest)
        if cached is not None:
            return cached

        query = f"""
        INSERT INTO {self._signatures_table} (hash, payload)
        VALUES (%(hash)s, %(payload)s::jsonb)
        ON CONFLICT (hash) DO UPDATE
        SET hash = EXCLUDED.hash
        RETURNING signature_id, hash, payload
        """
        row = self._gateway.fetch_one(
            query=query,
            parameters={
                "hash": digest,
                "payload": canonical_payload_json(payload),
            },
        )
        if row is None:
            raise StorageError("PostgresSignatureRegistry.register returned no row")
        signature = _map_signature_row(row=row)
        self._cache[digest] = signature
        return signature


def _map_signature_row(*, row: Mapping[str, Any]) -> Signature:
    """
    Map SQL row payload into Signature value object.

    Args:
        row: SQL row mapping.
    Returns:
        Signature: Mapped signature.
    Assumptions:
        `payload` column is jsonb, decoded by psycopg or returned as text.
    Raises:
        StorageError: If mapping fails.
    Side Effects:
        None.
    """
    try:
        payload = row["payload"]
        if isinstance(payload, str):
            payload = json.loads(payload)
        if not isinstance(payload, Mapping):
            raise StorageError("Signature row payload must be JSON object")
        return Signature(
            signature_id=int(row["signature_id"]),
            hash=str(row["hash"]),
            payload=payload,
        )
    except StorageError:
        raise
    except Exception as error:  # noqa: BLE001
        raise StorageError("PostgresSignatureRegistry cannot map signature row") from error
