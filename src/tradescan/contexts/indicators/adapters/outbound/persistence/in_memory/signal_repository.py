from __future__ import annotations

from dataclasses import replace

from tradescan.contexts.indicators.application.ports import SignalRepository
from tradescan.contexts.indicators.domain.entities import Signal


class InMemorySignalRepository(SignalRepository):
    """
    InMemorySignalRepository — deterministic in-memory SignalRepository adapter for dev/tests.

    Related:
      - src/tradescan/contexts/indicators/application/ports/signal_repository.py
      - tests/unit/contexts/indicators/adapters/test_in_memory_signal_repository.py
    """

    def __init__(self) -> None:
        self._signals_by_key: dict[tuple, Signal] = {}
        self._next_signal_id = 1
        self.save_calls = 0

    def save_unique(self, *, signal: Signal) -> Signal:
        """
        Upsert signal keyed by `Signal.unique_key()`.

        Args:
            signal: Stamped signal.
        Returns:
            Signal: Stored snapshot; updates keep the original `signal_id`.
        Assumptions:
            Mutable fields on update are side, price, price date and detector signature.
        Raises:
            ValueError: If signal is a template or has no timestamp/price.
        Side Effects:
            Writes in-memory dictionary.
        """
        _require_stamped(signal)
        self.save_calls += 1
        key = signal.unique_key()
        existing = self._signals_by_key.get(key)
        if existing is not None:
            stored = replace(signal, signal_id=existing.signal_id)
        else:
            stored = signal.stored(signal_id=self._next_signal_id)
            self._next_signal_id += 1
        self._signals_by_key[key] = stored
        return stored

    def list_for_symbol(self, *, symbol_id: int) -> tuple[Signal, ...]:
        matching = [
            signal for signal in self._signals_by_key.values() if signal.symbol_id == symbol_id
        ]
        return tuple(
            sorted(matching, key=lambda signal: (signal.timestamp or 0, signal.signal_id or 0))
        )

    def __len__(self) -> int:
        return len(self._signals_by_key)


def _require_stamped(signal: Signal) -> None:
    if signal.is_template:
        raise ValueError("Cannot store a template signal")
    if signal.timestamp is None or signal.price is None:
        raise ValueError("Signal must be stamped with timestamp and price before storage")
