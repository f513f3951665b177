from __future__ import annotations

import json
from typing import Any, Mapping

from tradescan.contexts.indicators.application.ports import SignalRepository
from tradescan.contexts.indicators.domain.entities import Signal, SignalSide
from tradescan.contexts.signatures.domain.entities import Signature
from tradescan.platform.errors import StorageError
from tradescan.platform.postgres import PostgresGateway


class PostgresSignalRepository(SignalRepository):
    """
    PostgresSignalRepository — explicit SQL adapter for idempotent signal storage.

    Related:
      - src/tradescan/contexts/indicators/application/ports/signal_repository.py
      - src/tradescan/platform/postgres/gateway.py
      - alembic/versions/20261019_0001_tradescan_storage_v1.py
    """

    def __init__(
        self,
        *,
        gateway: PostgresGateway,
        signals_table: str = "tradescan_signals",
        signatures_table: str = "tradescan_signatures",
    ) -> None:
        """
        Initialize repository with SQL gateway and table names.

        Args:
            gateway: SQL gateway abstraction.
            signals_table: Signal table name.
            signatures_table: Signature table name used to hydrate signal signatures.
        Returns:
            None.
        Assumptions:
            Signal table has unique key `(symbol_id, indicator_signature_id, timestamp, name)`.
        Raises:
            ValueError: If dependencies are invalid.
        Side Effects:
            None.
        """
        if gateway is None:  # type: ignore[truthy-bool]
            raise ValueError("PostgresSignalRepository requires gateway")
        normalized_signals = signals_table.strip()
        normalized_signatures = signatures_table.strip()
        if not normalized_signals or not normalized_signatures:
            raise ValueError("PostgresSignalRepository requires non-empty table names")
        self._gateway = gateway
        self._signals_table = normalized_signals
        self._signatures_table = normalized_signatures

    def save_unique(self, *, signal: Signal) -> Signal:
        """
        Upsert one signal row and return it with its identifier.

        Args:
            signal: Stamped signal.
        Returns:
            Signal: Stored snapshot.
        Assumptions:
            One statement, so one transaction per save.
        Raises:
            ValueError: If signal is a template or not stamped.
            StorageError: If upsert returns no row or row mapping fails.
        Side Effects:
            Executes one SQL upsert statement.
        """
        if signal.is_template or signal.side is None:
            raise ValueError("Cannot store a template signal")
        if signal.timestamp is None or signal.price is None:
            raise ValueError("Signal must be stamped with timestamp and price before storage")

        query = f"""
        INSERT INTO {self._signals_table}
        (
            symbol_id,
            indicator_signature_id,
            detector_signature_id,
            side,
            name,
            timestamp,
            price,
            price_date
        )
        VALUES
        (
            %(symbol_id)s,
            %(indicator_signature_id)s,
            %(detector_signature_id)s,
            %(side)s,
            %(name)s,
            %(timestamp)s,
            %(price)s,
            %(price_date)s
        )
        ON CONFLICT (symbol_id, indicator_signature_id, timestamp, name) DO UPDATE
        SET
            detector_signature_id = EXCLUDED.detector_signature_id,
            side = EXCLUDED.side,
            price = EXCLUDED.price,
            price_date = EXCLUDED.price_date
        RETURNING
            signal_id,
            side,
            name,
            timestamp,
            price,
            price_date
        """
        row = self._gateway.fetch_one(
            query=query,
            parameters={
                "symbol_id": signal.symbol_id,
                "indicator_signature_id": signal.indicator_signature.signature_id,
                "detector_signature_id": signal.detector_signature.signature_id,
                "side": signal.side.value,
                "name": signal.name,
                "timestamp": signal.timestamp,
                "price": signal.price,
                "price_date": signal.price_date,
            },
        )
        if row is None:
            raise StorageError("PostgresSignalRepository.save_unique returned no row")
        return _map_signal_row(
            row={
                **row,
                "symbol_id": signal.symbol_id,
            },
            indicator_signature=signal.indicator_signature,
            detector_signature=signal.detector_signature,
        )

    def list_for_symbol(self, *, symbol_id: int) -> tuple[Signal, ...]:
        """
        List stored signals of one symbol with hydrated signatures.

        Args:
            symbol_id: Symbol identifier.
        Returns:
            tuple[Signal, ...]: Signals ordered by timestamp and identifier.
        Assumptions:
            `ORDER BY timestamp ASC, signal_id ASC` guarantees deterministic ordering.
        Raises:
            StorageError: If row mapping fails.
        Side Effects:
            Executes one SQL select statement.
        """
        query = f"""
        SELECT
            s.signal_id,
            s.symbol_id,
            s.side,
            s.name,
            s.timestamp,
            s.price,
            s.price_date,
            i.signature_id AS indicator_signature_id,
            i.hash AS indicator_signature_hash,
            i.payload AS indicator_signature_payload,
            d.signature_id AS detector_signature_id,
            d.hash AS detector_signature_hash,
            d.payload AS detector_signature_payload
        FROM {self._signals_table} AS s
        JOIN {self._signatures_table} AS i ON i.signature_id = s.indicator_signature_id
        JOIN {self._signatures_table} AS d ON d.signature_id = s.detector_signature_id
        WHERE s.symbol_id = %(symbol_id)s
        ORDER BY s.timestamp ASC, s.signal_id ASC
        """
        rows = self._gateway.fetch_all(query=query, parameters={"symbol_id": symbol_id})
        return tuple(
            _map_signal_row(
                row=row,
                indicator_signature=_map_joined_signature(row=row, prefix="indicator_signature"),
                detector_signature=_map_joined_signature(row=row, prefix="detector_signature"),
            )
            for row in rows
        )


def _map_signal_row(
    *,
    row: Mapping[str, Any],
    indicator_signature: Signature,
    detector_signature: Signature,
) -> Signal:
    """
    Map SQL row payload into Signal.

    Args:
        row: SQL row mapping.
        indicator_signature: Indicator signature of the row.
        detector_signature: Detector signature of the row.
    Returns:
        Signal: Mapped signal.
    Assumptions:
        Row schema matches the signal storage migration.
    Raises:
        StorageError: If mapping fails.
    Side Effects:
        None.
    """
    try:
        price_date = row["price_date"]
        return Signal(
            signal_id=int(row["signal_id"]),
            symbol_id=int(row["symbol_id"]),
            indicator_signature=indicator_signature,
            detector_signature=detector_signature,
            side=SignalSide(str(row["side"])),
            name=str(row["name"]),
            timestamp=int(row["timestamp"]),
            price=float(row["price"]),
            price_date=int(price_date) if price_date is not None else None,
        )
    except Exception as error:  # noqa: BLE001
        raise StorageError("PostgresSignalRepository cannot map signal row") from error


def _map_joined_signature(*, row: Mapping[str, Any], prefix: str) -> Signature:
    try:
        payload = row[f"{prefix}_payload"]
        if isinstance(payload, str):
            payload = json.loads(payload)
        return Signature(
            signature_id=int(row[f"{prefix}_id"]),
            hash=str(row[f"{prefix}_hash"]),
            payload=payload or {},
        )
    except Exception as error:  # noqa: BLE001
        raise StorageError(f"PostgresSignalRepository cannot map {prefix}") from error
