from __future__ import annotations

from typing import Protocol

from tradescan.contexts.strategy.domain.entities import TradeSetup


class TradeSetupRepository(Protocol):
    """
    TradeSetupRepository — idempotent storage port for matched trade setups.

    Related:
      - src/tradescan/contexts/strategy/adapters/outbound/persistence/postgres/
      - src/tradescan/contexts/strategy/adapters/outbound/persistence/in_memory/
      - alembic/versions/20261019_0001_tradescan_storage_v1.py
    """

    def save_unique(self, *, setup: TradeSetup) -> TradeSetup:
        """
        Upsert setup keyed by `(signature, symbol_id, timestamp)` together with its signal links.

        Args:
            setup: Matched setup whose signals are stored.
        Returns:
            TradeSetup: Stored setup with identifier.
        Assumptions:
            Setup row and signal links are written atomically.
        Raises:
            ValueError: If setup signals are not stored.
            StorageError: If storage result cannot be mapped.
        Side Effects:
            Writes setup and link rows.
        """
        ...

    def list_for_symbol(self, *, symbol_id: int) -> tuple[TradeSetup, ...]:
        """
        List stored setups of one symbol ordered by timestamp.

        Args:
            symbol_id: Symbol identifier.
        Returns:
            tuple[TradeSetup, ...]: Stored setups with their signals.
        Assumptions:
            Signal order inside a setup is the stored link position.
        Raises:
            StorageError: If storage rows cannot be mapped.
        Side Effects:
            Reads storage.
        """
        ...
