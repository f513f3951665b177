from __future__ import annotations


class LogicError(RuntimeError):
    """
    Raised on a programming-contract violation inside the engine.

    Examples: cursor read outside an active scan, recalculation that produced no values.

    Related: tradescan.contexts.indicators.application.services.scan_state
    """
