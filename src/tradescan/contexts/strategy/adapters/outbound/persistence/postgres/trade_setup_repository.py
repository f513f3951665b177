from __future__ import annotations

import json
from typing import Any, Mapping

from tradescan.contexts.indicators.domain.entities import Signal, SignalSide
from tradescan.contexts.signatures.domain.entities import Signature
from tradescan.contexts.strategy.application.ports import TradeSetupRepository
from tradescan.contexts.strategy.domain.entities import TradeSetup
from tradescan.platform.errors import StorageError
from tradescan.platform.postgres import PostgresGateway


class PostgresTradeSetupRepository(TradeSetupRepository):
    """
    PostgresTradeSetupRepository — explicit SQL adapter for trade setups and their signal links.

    Related:
      - src/tradescan/contexts/strategy/application/ports/repositories/trade_setup_repository.py
      - src/tradescan/platform/postgres/gateway.py
      - alembic/versions/20261019_0001_tradescan_storage_v1.py
    """

    def __init__(
        self,
        *,
        gateway: PostgresGateway,
        setups_table: str = "tradescan_trade_setups",
        links_table: str = "tradescan_trade_setup_signals",
        signals_table: str = "tradescan_signals",
        signatures_table: str = "tradescan_signatures",
    ) -> None:
        """
        Initialize repository with SQL gateway and table names.

        Args:
            gateway: SQL gateway abstraction.
            setups_table: Trade setup table name.
            links_table: Setup-to-signal link table name.
            signals_table: Signal table name.
            signatures_table: Signature table name.
        Returns:
            None.
        Assumptions:
            Setup table has unique key `(signature_id, symbol_id, timestamp)`; link table
            has primary key `(setup_id, position)`.
        Raises:
            ValueError: If dependencies are invalid.
        Side Effects:
            None.
        """
        if gateway is None:  # type: ignore[truthy-bool]
            raise ValueError("PostgresTradeSetupRepository requires gateway")
        tables = (setups_table, links_table, signals_table, signatures_table)
        normalized = tuple(table.strip() for table in tables)
        if not all(normalized):
            raise ValueError("PostgresTradeSetupRepository requires non-empty table names")
        self._gateway = gateway
        (
            self._setups_table,
            self._links_table,
            self._signals_table,
            self._signatures_table,
        ) = normalized

    def save_unique(self, *, setup: TradeSetup) -> TradeSetup:
        """
        Upsert setup row and replace its signal links in one statement.

        Args:
            setup: Matched setup whose signals are stored.
        Returns:
            TradeSetup: Stored setup with identifier.
        Assumptions:
            One statement runs in one gateway transaction, so the setup is never stored
            without its links.
        Raises:
            ValueError: If one of setup signals has no identifier.
            StorageError: If statement returns no row or row mapping fails.
        Side Effects:
            Upserts one setup row, deletes stale links, upserts current links.
        """
        signal_ids: list[int] = []
        for signal in setup.signals:
            if signal.signal_id is None:
                raise ValueError("TradeSetup signals must be stored before the setup")
            signal_ids.append(signal.signal_id)

        query = f"""
        WITH upserted AS (
            INSERT INTO {self._setups_table}
            (
                signature_id,
                symbol_id,
                rule_key,
                side,
                name,
                signal_count,
                timestamp,
                price,
                price_date
            )
            VALUES
            (
                %(signature_id)s,
                %(symbol_id)s,
                %(rule_key)s,
                %(side)s,
                %(name)s,
                %(signal_count)s,
                %(timestamp)s,
                %(price)s,
                %(price_date)s
            )
            ON CONFLICT (signature_id, symbol_id, timestamp) DO UPDATE
            SET
                rule_key = EXCLUDED.rule_key,
                side = EXCLUDED.side,
                name = EXCLUDED.name,
                signal_count = EXCLUDED.signal_count,
                price = EXCLUDED.price,
                price_date = EXCLUDED.price_date
            RETURNING setup_id
        ),
        stale_links AS (
            DELETE FROM {self._links_table} AS links
            USING upserted
            WHERE links.setup_id = upserted.setup_id
              AND links.position >= %(links_count)s
        ),
        current_links AS (
            INSERT INTO {self._links_table} (setup_id, position, signal_id)
            SELECT
                upserted.setup_id,
                link.ord - 1,
                link.signal_id
            FROM upserted
            CROSS JOIN unnest(%(signal_ids)s::bigint[]) WITH ORDINALITY AS link(signal_id, ord)
            ON CONFLICT (setup_id, position) DO UPDATE
            SET signal_id = EXCLUDED.signal_id
        )
        SELECT setup_id FROM upserted
        """
        row = self._gateway.fetch_one(
            query=query,
            parameters={
                "signature_id": setup.signature.signature_id,
                "symbol_id": setup.symbol_id,
                "rule_key": setup.rule_key,
                "side": setup.side.value,
                "name": setup.name,
                "signal_count": setup.signal_count,
                "timestamp": setup.timestamp,
                "price": setup.price,
                "price_date": setup.price_date,
                "links_count": len(signal_ids),
                "signal_ids": signal_ids,
            },
        )
        if row is None:
            raise StorageError("PostgresTradeSetupRepository.save_unique returned no row")
        try:
            setup_id = int(row["setup_id"])
        except Exception as error:  # noqa: BLE001
            raise StorageError("PostgresTradeSetupRepository cannot map setup_id") from error
        return setup.stored(setup_id=setup_id)

    def list_for_symbol(self, *, symbol_id: int) -> tuple[TradeSetup, ...]:
        """
        Load setups of one symbol together with their linked signals.

        Args:
            symbol_id: Symbol identifier.
        Returns:
            tuple[TradeSetup, ...]: Setups ordered by timestamp and identifier.
        Assumptions:
            Links are read in a second statement ordered by position.
        Raises:
            StorageError: If row mapping fails.
        Side Effects:
            Executes two SQL select statements.
        """
        setups_query = f"""
        SELECT
            t.setup_id,
            t.symbol_id,
            t.rule_key,
            t.side,
            t.name,
            t.signal_count,
            t.timestamp,
            t.price,
            t.price_date,
            sig.signature_id,
            sig.hash AS signature_hash,
            sig.payload AS signature_payload
        FROM {self._setups_table} AS t
        JOIN {self._signatures_table} AS sig ON sig.signature_id = t.signature_id
        WHERE t.symbol_id = %(symbol_id)s
        ORDER BY t.timestamp ASC, t.setup_id ASC
        """
        setup_rows = self._gateway.fetch_all(
            query=setups_query,
            parameters={"symbol_id": symbol_id},
        )
        if not setup_rows:
            return ()

        links_query = f"""
        SELECT
            l.setup_id,
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
        FROM {self._links_table} AS l
        JOIN {self._signals_table} AS s ON s.signal_id = l.signal_id
        JOIN {self._signatures_table} AS i ON i.signature_id = s.indicator_signature_id
        JOIN {self._signatures_table} AS d ON d.signature_id = s.detector_signature_id
        WHERE l.setup_id = ANY(%(setup_ids)s::bigint[])
        ORDER BY l.setup_id ASC, l.position ASC
        """
        link_rows = self._gateway.fetch_all(
            query=links_query,
            parameters={"setup_ids": [row["setup_id"] for row in setup_rows]},
        )

        signals_by_setup: dict[int, list[Signal]] = {}
        for link_row in link_rows:
            signals_by_setup.setdefault(int(link_row["setup_id"]), []).append(
                _map_linked_signal_row(row=link_row)
            )

        return tuple(
            _map_setup_row(
                row=setup_row,
                signals=tuple(signals_by_setup.get(int(setup_row["setup_id"]), ())),
            )
            for setup_row in setup_rows
        )


def _map_setup_row(*, row: Mapping[str, Any], signals: tuple[Signal, ...]) -> TradeSetup:
    """
    Map SQL setup row and its signals into TradeSetup.

    Args:
        row: SQL row mapping joined with the setup signature.
        signals: Linked signals in position order.
    Returns:
        TradeSetup: Stored setup.
    Assumptions:
        Row schema matches the trade setup storage migration.
    Raises:
        StorageError: If mapping fails.
    Side Effects:
        None.
    """
    try:
        price_date = row["price_date"]
        return TradeSetup(
            setup_id=int(row["setup_id"]),
            symbol_id=int(row["symbol_id"]),
            rule_key=str(row["rule_key"]),
            side=SignalSide(str(row["side"])),
            name=str(row["name"]),
            signal_count=int(row["signal_count"]),
            timestamp=int(row["timestamp"]),
            price=float(row["price"]),
            price_date=int(price_date) if price_date is not None else None,
            signature=_map_signature(row=row, prefix="signature", id_column="signature_id"),
            signals=signals,
        )
    except StorageError:
        raise
    except Exception as error:  # noqa: BLE001
        raise StorageError("PostgresTradeSetupRepository cannot map setup row") from error


def _map_linked_signal_row(*, row: Mapping[str, Any]) -> Signal:
    try:
        price_date = row["price_date"]
        return Signal(
            signal_id=int(row["signal_id"]),
            symbol_id=int(row["symbol_id"]),
            indicator_signature=_map_signature(
                row=row,
                prefix="indicator_signature",
                id_column="indicator_signature_id",
            ),
            detector_signature=_map_signature(
                row=row,
                prefix="detector_signature",
                id_column="detector_signature_id",
            ),
            side=SignalSide(str(row["side"])),
            name=str(row["name"]),
            timestamp=int(row["timestamp"]),
            price=float(row["price"]),
            price_date=int(price_date) if price_date is not None else None,
        )
    except StorageError:
        raise
    except Exception as error:  # noqa: BLE001
        raise StorageError("PostgresTradeSetupRepository cannot map signal row") from error


def _map_signature(*, row: Mapping[str, Any], prefix: str, id_column: str) -> Signature:
    try:
        payload = row[f"{prefix}_payload"]
        if isinstance(payload, str):
            payload = json.loads(payload)
        return Signature(
            signature_id=int(row[id_column]),
            hash=str(row[f"{prefix}_hash"]),
            payload=payload or {},
        )
    except Exception as error:  # noqa: BLE001
        raise StorageError(f"PostgresTradeSetupRepository cannot map {prefix}") from error
