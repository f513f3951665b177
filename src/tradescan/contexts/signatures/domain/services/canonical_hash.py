from __future__ import annotations

import hashlib
import json
from typing import Any, Mapping


def canonical_payload_json(payload: Mapping[str, Any]) -> str:
    """
    Serialize payload into byte-stable JSON text.

    Args:
        payload: JSON-serializable mapping.
    Returns:
        str: JSON with sorted keys, compact separators and ASCII escapes.
    Assumptions:
        Mapping key order never affects the output.
    Raises:
        TypeError: If payload cannot be serialized to JSON.
    Side Effects:
        None.
    """
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=True)


def canonical_payload_hash(payload: Mapping[str, Any]) -> str:
    """
    Build deterministic sha256 hex digest of canonical payload JSON.

    Args:
        payload: JSON-serializable mapping.
    Returns:
        str: Lowercase 64-char hex digest.
    Assumptions:
        Equal payloads (by JSON value) always yield equal digests.
    Raises:
        TypeError: If payload cannot be serialized to JSON.
    Side Effects:
        None.

    Related:
      - src/tradescan/contexts/signatures/adapters/outbound/persistence/in_memory/
        signature_registry.py
      - tests/unit/contexts/signatures/domain/test_canonical_hash.py
    """
    canonical = canonical_payload_json(payload)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
