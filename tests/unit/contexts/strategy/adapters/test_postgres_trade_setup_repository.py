from __future__ import annotations

import json
from typing import Any, Mapping

import pytest

from tradescan.contexts.indicators.domain.entities import Signal, SignalSide
from tradescan.contexts.signatures.domain.entities import Signature
from tradescan.contexts.strategy.adapters import PostgresTradeSetupRepository
from tradescan.contexts.strategy.domain.entities import TradeSetup
from tradescan.platform.errors import StorageError

_INDICATOR = Signature(signature_id=10, hash="a" * 64, payload={"indicator": "rsi"})
_DETECTOR = Signature(signature_id=11, hash="b" * 64, payload={"detector": "oversold@1"})
_SETUP = Signature(signature_id=12, hash="c" * 64, payload={"trade_setup": {"key": "pair"}})


class _FakeGateway:
    """
    Deterministic fake SQL gateway for trade setup repository unit tests.

    Related:
      - src/tradescan/platform/postgres/gateway.py
      - src/tradescan/contexts/strategy/adapters/outbound/persistence/postgres/
        trade_setup_repository.py
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


def _signal(signal_id: int | None, timestamp: int) -> Signal:
    return Signal(
        signal_id=signal_id,
        symbol_id=5,
        indicator_signature=_INDICATOR,
        detector_signature=_DETECTOR,
        side=SignalSide.SELL,
        name="oversold",
        timestamp=timestamp,
        price=40.0,
        price_date=timestamp + 3_600_000,
    )


def _setup(*signals: Signal) -> TradeSetup:
    return TradeSetup.from_signals(
        symbol_id=5,
        rule_key="pair",
        signature=_SETUP,
        signals=signals,
    )


def _link_row(*, setup_id: int, signal_id: int, timestamp: int) -> dict[str, Any]:
    return {
        "setup_id": setup_id,
        "signal_id": signal_id,
        "symbol_id": 5,
        "side": "SELL",
        "name": "oversold",
        "timestamp": timestamp,
        "price": 40.0,
        "price_date": timestamp + 3_600_000,
        "indicator_signature_id": 10,
        "indicator_signature_hash": "a" * 64,
        "indicator_signature_payload": {"indicator": "rsi"},
        "detector_signature_id": 11,
        "detector_signature_hash": "b" * 64,
        "detector_signature_payload": json.dumps({"detector": "oversold@1"}),
    }


def test_postgres_trade_setup_repository_upserts_setup_with_links() -> None:
    """
    Verify one statement upserts the setup and replaces links by chain position.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Gateway returns the setup identifier of the upserted row.
    Raises:
        AssertionError: If SQL contract or parameters change.
    Side Effects:
        None.
    """
    gateway = _FakeGateway(fetch_one_results=[{"setup_id": 21}])
    repository = PostgresTradeSetupRepository(gateway=gateway)

    stored = repository.save_unique(setup=_setup(_signal(3, 60_000), _signal(4, 120_000)))

    assert stored.setup_id == 21
    assert stored.timestamp == 120_000
    query = gateway.fetch_one_queries[0]
    assert "INSERT INTO tradescan_trade_setups" in query
    assert "ON CONFLICT (signature_id, symbol_id, timestamp) DO UPDATE" in query
    assert "DELETE FROM tradescan_trade_setup_signals AS links" in query
    assert "unnest(%(signal_ids)s::bigint[]) WITH ORDINALITY" in query
    parameters = gateway.parameters[0]
    assert parameters["signature_id"] == 12
    assert parameters["side"] == "SELL"
    assert parameters["name"] == "oversold|oversold"
    assert parameters["signal_count"] == 2
    assert parameters["links_count"] == 2
    assert parameters["signal_ids"] == [3, 4]


def test_postgres_trade_setup_repository_rejects_unsaved_signals_without_sql() -> None:
    gateway = _FakeGateway()
    repository = PostgresTradeSetupRepository(gateway=gateway)

    with pytest.raises(ValueError, match="stored before the setup"):
        repository.save_unique(setup=_setup(_signal(None, 60_000)))
    assert gateway.fetch_one_queries == []


@pytest.mark.parametrize("row", [None, {"setup_id": "not-a-number"}])
def test_postgres_trade_setup_repository_raises_storage_error_on_bad_upsert_row(
    row: Mapping[str, Any] | None,
) -> None:
    repository = PostgresTradeSetupRepository(gateway=_FakeGateway(fetch_one_results=[row]))

    with pytest.raises(StorageError):
        repository.save_unique(setup=_setup(_signal(3, 60_000)))


def test_postgres_trade_setup_repository_lists_setups_with_linked_signals() -> None:
    setup_row = {
        "setup_id": 21,
        "symbol_id": 5,
        "rule_key": "pair",
        "side": "SELL",
        "name": "oversold|oversold",
        "signal_count": 2,
        "timestamp": 120_000,
        "price": 40.0,
        "price_date": None,
        "signature_id": 12,
        "signature_hash": "c" * 64,
        "signature_payload": '{"trade_setup": {"key": "pair"}}',
    }
    gateway = _FakeGateway(
        fetch_all_results=[
            (setup_row,),
            (
                _link_row(setup_id=21, signal_id=3, timestamp=60_000),
                _link_row(setup_id=21, signal_id=4, timestamp=120_000),
            ),
        ]
    )
    repository = PostgresTradeSetupRepository(gateway=gateway)

    listed = repository.list_for_symbol(symbol_id=5)

    assert len(listed) == 1
    setup = listed[0]
    assert setup.setup_id == 21
    assert setup.side is SignalSide.SELL
    assert setup.price_date is None
    assert setup.signature == _SETUP
    assert setup.signature.payload == {"trade_setup": {"key": "pair"}}
    assert [signal.signal_id for signal in setup.signals] == [3, 4]
    assert setup.signals[0].detector_signature.payload == {"detector": "oversold@1"}
    assert gateway.parameters == [{"symbol_id": 5}, {"setup_ids": [21]}]
    assert "ORDER BY l.setup_id ASC, l.position ASC" in gateway.fetch_all_queries[1]


def test_postgres_trade_setup_repository_skips_link_query_without_setups() -> None:
    gateway = _FakeGateway(fetch_all_results=[()])
    repository = PostgresTradeSetupRepository(gateway=gateway)

    assert repository.list_for_symbol(symbol_id=5) == ()
    assert len(gateway.fetch_all_queries) == 1


def test_postgres_trade_setup_repository_raises_storage_error_on_broken_link_row() -> None:
    broken = _link_row(setup_id=21, signal_id=3, timestamp=60_000)
    del broken["detector_signature_hash"]
    gateway = _FakeGateway(
        fetch_all_results=[
            (
                {
                    "setup_id": 21,
                    "symbol_id": 5,
                    "rule_key": "pair",
                    "side": "SELL",
                    "name": "oversold",
                    "signal_count": 1,
                    "timestamp": 60_000,
                    "price": 40.0,
                    "price_date": 3_660_000,
                    "signature_id": 12,
                    "signature_hash": "c" * 64,
                    "signature_payload": {},
                },
            ),
            (broken,),
        ]
    )
    repository = PostgresTradeSetupRepository(gateway=gateway)

    with pytest.raises(StorageError):
        repository.list_for_symbol(symbol_id=5)


def test_postgres_trade_setup_repository_requires_table_names() -> None:
    with pytest.raises(ValueError):
        PostgresTradeSetupRepository(gateway=_FakeGateway(), links_table=" ")
