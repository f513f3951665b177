from __future__ import annotations


class ArgumentError(ValueError):
    """
    Raised when a caller passes an argument that breaks an engine contract.

    Examples: progressive symbol of another instrument, progressive symbol with the
    engine's own interval, signal detector without a nullable `Signal` return type.

    Related: tradescan.contexts.indicators.application.services.indicator_engine,
      tradescan.contexts.indicators.application.services.signal_detector
    """
