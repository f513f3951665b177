from __future__ import annotations

from dataclasses import replace

from tradescan.contexts.strategy.application.ports import TradeSetupRepository
from tradescan.contexts.strategy.domain.entities import TradeSetup


class InMemoryTradeSetupRepository(TradeSetupRepository):
    """
    InMemoryTradeSetupRepository — deterministic in-memory TradeSetupRepository for dev/tests.

    Related:
      - src/tradescan/contexts/strategy/application/ports/repositories/trade_setup_repository.py
      - tests/unit/contexts/strategy/adapters/test_in_memory_trade_setup_repository.py
    """

    def __init__(self) -> None:
        self._setups_by_key: dict[tuple[str, int, int], TradeSetup] = {}
        self._next_setup_id = 1

    def save_unique(self, *, setup: TradeSetup) -> TradeSetup:
        """
        Upsert setup keyed by `TradeSetup.unique_key()`.

        Args:
            setup: Matched setup.
        Returns:
            TradeSetup: Stored snapshot; updates keep the original `setup_id`.
        Assumptions:
            Signal links are replaced as a whole.
        Raises:
            ValueError: If one of setup signals has no identifier.
        Side Effects:
            Writes in-memory dictionary.
        """
        _require_stored_signals(setup)
        key = setup.unique_key()
        existing = self._setups_by_key.get(key)
        if existing is not None:
            stored = replace(setup, setup_id=existing.setup_id)
        else:
            stored = setup.stored(setup_id=self._next_setup_id)
            self._next_setup_id += 1
        self._setups_by_key[key] = stored
        return stored

    def list_for_symbol(self, *, symbol_id: int) -> tuple[TradeSetup, ...]:
        matching = [setup for setup in self._setups_by_key.values() if setup.symbol_id == symbol_id]
        return tuple(sorted(matching, key=lambda setup: (setup.timestamp, setup.setup_id or 0)))

    def __len__(self) -> int:
        return len(self._setups_by_key)


def _require_stored_signals(setup: TradeSetup) -> None:
    for signal in setup.signals:
        if signal.signal_id is None:
            raise ValueError("TradeSetup signals must be stored before the setup")
