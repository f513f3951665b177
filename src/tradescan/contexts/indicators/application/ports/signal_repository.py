from __future__ import annotations

from typing import Protocol

from tradescan.contexts.indicators.domain.entities import Signal


class SignalRepository(Protocol):
    """
    SignalRepository — storage port for detected signals.

    Related:
      - src/tradescan/contexts/indicators/adapters/outbound/persistence/in_memory/
        signal_repository.py
      - src/tradescan/contexts/indicators/adapters/outbound/persistence/postgres/
        signal_repository.py
    """

    def save_unique(self, *, signal: Signal) -> Signal:
        """
        Insert or update one signal keyed by `(symbol_id, indicator signature, timestamp, name)`.

        Args:
            signal: Stamped signal (side, name, timestamp and price set).
        Returns:
            Signal: Stored snapshot with `signal_id`.
        Assumptions:
            Saving the same logical signal twice yields one row.
        Raises:
            ValueError: If the signal is still a template or not stamped.
            StorageError: If the stored row cannot be mapped.
        Side Effects:
            Writes one signal row in one transaction.
        """
        ...

    def list_for_symbol(self, *, symbol_id: int) -> tuple[Signal, ...]:
        """
        List stored signals of one symbol ordered by timestamp, then identifier.
        """
        ...
