from __future__ import annotations


class StorageError(RuntimeError):
    """
    Raised when a persistence adapter cannot store or map a signal, trade setup or signature row.

    Related: tradescan.contexts.indicators.adapters.outbound.persistence,
      tradescan.contexts.strategy.adapters.outbound.persistence
    """
