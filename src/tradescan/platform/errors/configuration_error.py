from __future__ import annotations


class ConfigurationError(ValueError):
    """
    Raised when an indicator or strategy setup is invalid.

    Covers unknown config keys, a negative indicator gap and malformed trade setup rules.
    Fatal for the evaluated symbol; never retried.

    Related: tradescan.contexts.indicators.domain.entities.indicator_config,
      tradescan.contexts.strategy.domain.entities.setup_rule
    """
