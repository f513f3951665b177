from __future__ import annotations

from typing import Any, Mapping, Protocol, cast

import psycopg
from psycopg.rows import dict_row


class PostgresGateway(Protocol):
    """
    PostgresGateway — minimal SQL gateway shared by signature, signal and trade setup adapters.

    Related:
      - src/tradescan/contexts/signatures/adapters/outbound/persistence/postgres/
        signature_registry.py
      - src/tradescan/contexts/indicators/adapters/outbound/persistence/postgres/
        signal_repository.py
      - src/tradescan/contexts/strategy/adapters/outbound/persistence/postgres/
        trade_setup_repository.py
    """

    def fetch_one(self, *, query: str, parameters: Mapping[str, Any]) -> Mapping[str, Any] | None:
        """
        Execute SQL statement and return one mapped row.

        Args:
            query: SQL text.
            parameters: Bind parameters mapping.
        Returns:
            Mapping[str, Any] | None: One row or `None`.
        Assumptions:
            Query may contain `RETURNING` clause.
        Raises:
            Exception: Storage/driver errors from implementation.
        Side Effects:
            Executes one SQL statement inside one transaction.
        """
        ...

    def fetch_all(
        self,
        *,
        query: str,
        parameters: Mapping[str, Any],
    ) -> tuple[Mapping[str, Any], ...]:
        """
        Execute SQL statement and return all mapped rows.

        Args:
            query: SQL text.
            parameters: Bind parameters mapping.
        Returns:
            tuple[Mapping[str, Any], ...]: Query rows in SQL-defined order.
        Assumptions:
            Deterministic ordering is controlled by explicit `ORDER BY` in SQL.
        Raises:
            Exception: Storage/driver errors from implementation.
        Side Effects:
            Executes one SQL statement inside one transaction.
        """
        ...

    def execute(self, *, query: str, parameters: Mapping[str, Any]) -> None:
        """
        Execute side-effecting SQL statement without returning rows.
        """
        ...


class PsycopgPostgresGateway(PostgresGateway):
    """
    PsycopgPostgresGateway — psycopg3 implementation of the SQL gateway.

    Every call opens a connection whose context manager commits on success and rolls back
    on error, so one statement is one transaction.

    Related:
      - src/tradescan/platform/postgres/gateway.py
      - alembic/versions/20261019_0001_tradescan_storage_v1.py
    """

    def __init__(self, *, dsn: str) -> None:
        """
        Initialize gateway with non-empty PostgreSQL DSN.

        Args:
            dsn: PostgreSQL DSN.
        Returns:
            None.
        Assumptions:
            DSN points to Postgres instance with migrated tradescan schema.
        Raises:
            ValueError: If DSN is blank.
        Side Effects:
            None.
        """
        normalized_dsn = dsn.strip()
        if not normalized_dsn:
            raise ValueError("PsycopgPostgresGateway requires non-empty dsn")
        self._dsn = normalized_dsn

    def fetch_one(self, *, query: str, parameters: Mapping[str, Any]) -> Mapping[str, Any] | None:
        with psycopg.connect(self._dsn, row_factory=cast(Any, dict_row)) as connection:
            with connection.cursor() as cursor:
                cursor.execute(cast(Any, query), parameters)
                row = cursor.fetchone()
        if row is None:
            return None
        return dict(row)

    def fetch_all(
        self,
        *,
        query: str,
        parameters: Mapping[str, Any],
    ) -> tuple[Mapping[str, Any], ...]:
        with psycopg.connect(self._dsn, row_factory=cast(Any, dict_row)) as connection:
            with connection.cursor() as cursor:
                cursor.execute(cast(Any, query), parameters)
                rows = cursor.fetchall()
        return tuple(dict(row) for row in rows)

    def execute(self, *, query: str, parameters: Mapping[str, Any]) -> None:
        with psycopg.connect(self._dsn, row_factory=cast(Any, dict_row)) as connection:
            with connection.cursor() as cursor:
                cursor.execute(cast(Any, query), parameters)
