from __future__ import annotations

from typing import Any, Mapping

import pytest

from tradescan.contexts.indicators.adapters import PostgresSignalRepository
from tradescan.contexts.indicators.domain.entities import Signal, SignalSide
from tradescan.contexts.signatures.domain.entities import Signature
from tradescan.platform.errors import StorageError

_INDICATOR = Signature(signature_id=10, hash="a" * 64, payload={"indicator": "rsi"})
_DETECTOR = Signature(signature_id=11, hash="b" * 64, payload={"detector": "oversold@1"})


class _FakeGateway:
    """
    Deterministic fake SQL gateway for signal repository unit tests.

    Related:
      - src/tradescan/platform/postgres/gateway.py
      - src/tradescan/contexts/indicators/adapters/outbound/persistence/postgres/
        signal_repository.py
    """

    def __init__(
        self,
        *,
        fetch_one_results: list[Mapping[str, Any] | None] | None = None,
        fetch_all_results: list[tuple[Mapping[str, Any], ...]] | None = None,
    ) -> None:
        self._fetch_one_results = list(fetch_one_results or [])
        self._fetch_all_results = list(fetch_all_results or [])
        self.fetch_one_queries: list[str] = []
        self.fetch_all_queries: list[str] = []
        self.parameters: list[Mapping[str, Any]] = []

    def fetch_one(self, *, query: str, parameters: Mapping[str, Any]) -> Mapping[str, Any] | None:
        self.fetch_one_queries.append(query)
        self.parameters.append(parameters)
        return self._fetch_one_results.pop(0)

    def fetch_all(
        self,
        *,
        query: str,
        parameters: Mapping[str, Any],
    ) -> tuple[Mapping[str, Any], ...]:
        self.fetch_all_queries.append(query)
        self.parameters.append(parameters)
        return self._fetch_all_results.pop(0)

    def execute(self, *, query: str, parameters: Mapping[str, Any]) -> None:
        raise AssertionError("execute is not expected")


def _stamped_signal() -> Signal:
    return Signal(
        symbol_id=5,
        indicator_signature=_INDICATOR,
        detector_signature=_DETECTOR,
        side=SignalSide.BUY,
        name="oversold",
        timestamp=3_600_000,
        price=42.5,
        price_date=7_200_000,
    )


def test_postgres_signal_repository_upserts_by_unique_key() -> None:
    gateway = _FakeGateway(
        fetch_one_results=[
            {
                "signal_id": 77,
                "side": "BUY",
                "name": "oversold",
                "timestamp": 3_600_000,
                "price": 42.5,
                "price_date": 7_200_000,
            }
        ]
    )
    repository = PostgresSignalRepository(gateway=gateway)

    stored = repository.save_unique(signal=_stamped_signal())

    assert stored == _stamped_signal().stored(signal_id=77)
    query = gateway.fetch_one_queries[0]
    assert "INSERT INTO tradescan_signals" in query
    assert "ON CONFLICT (symbol_id, indicator_signature_id, timestamp, name) DO UPDATE" in query
    assert gateway.parameters[0] == {
        "symbol_id": 5,
        "indicator_signature_id": 10,
        "detector_signature_id": 11,
        "side": "BUY",
        "name": "oversold",
        "timestamp": 3_600_000,
        "price": 42.5,
        "price_date": 7_200_000,
    }


def test_postgres_signal_repository_rejects_unstamped_signal_without_sql() -> None:
    gateway = _FakeGateway()
    repository = PostgresSignalRepository(gateway=gateway)
    template = Signal(symbol_id=5, indicator_signature=_INDICATOR, detector_signature=_DETECTOR)

    with pytest.raises(ValueError):
        repository.save_unique(signal=template)
    assert gateway.fetch_one_queries == []


def test_postgres_signal_repository_raises_storage_error_for_missing_row() -> None:
    repository = PostgresSignalRepository(gateway=_FakeGateway(fetch_one_results=[None]))

    with pytest.raises(StorageError):
        repository.save_unique(signal=_stamped_signal())


def test_postgres_signal_repository_lists_signals_with_joined_signatures() -> None:
    """
    Verify joined rows hydrate both signatures, including text-encoded jsonb payloads.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        SQL ordering is trusted; mapping preserves row order.
    Raises:
        AssertionError: If mapped signals differ from rows.
    Side Effects:
        None.
    """
    gateway = _FakeGateway(
        fetch_all_results=[
            (
                {
                    "signal_id": 1,
                    "symbol_id": 5,
                    "side": "SELL",
                    "name": "overbought",
                    "timestamp": 60_000,
                    "price": 50.0,
                    "price_date": None,
                    "indicator_signature_id": 10,
                    "indicator_signature_hash": "a" * 64,
                    "indicator_signature_payload": '{"indicator": "rsi"}',
                    "detector_signature_id": 11,
                    "detector_signature_hash": "b" * 64,
                    "detector_signature_payload": {"detector": "oversold@1"},
                },
            )
        ]
    )
    repository = PostgresSignalRepository(gateway=gateway, signals_table="s", signatures_table="g")

    signals = repository.list_for_symbol(symbol_id=5)

    assert len(signals) == 1
    signal = signals[0]
    assert signal.side is SignalSide.SELL
    assert signal.price_date is None
    assert signal.indicator_signature.payload == {"indicator": "rsi"}
    assert signal.detector_signature == _DETECTOR
    assert "FROM s AS s" in gateway.fetch_all_queries[0]
    assert "JOIN g AS i" in gateway.fetch_all_queries[0]
    assert gateway.parameters[0] == {"symbol_id": 5}


def test_postgres_signal_repository_wraps_broken_rows() -> None:
    gateway = _FakeGateway(fetch_all_results=[({"signal_id": 1},)])

    with pytest.raises(StorageError):
        PostgresSignalRepository(gateway=gateway).list_for_symbol(symbol_id=5)
