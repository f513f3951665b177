from __future__ import annotations

from typing import Protocol


class Clock(Protocol):
    """
    Clock — application port providing the current time as UTC epoch milliseconds.

    Related:
      - src/tradescan/platform/time/system_clock.py
      - src/tradescan/contexts/market_data/adapters/outbound/persistence/in_memory/
        symbol_repository.py
    """

    def now_ms(self) -> int:
        """
        Return current UTC epoch time in milliseconds.

        Args:
            None.
        Returns:
            int: Current epoch milliseconds.
        Assumptions:
            Value is monotonic enough for freshness checks.
        Raises:
            None.
        Side Effects:
            None.
        """
        ...
