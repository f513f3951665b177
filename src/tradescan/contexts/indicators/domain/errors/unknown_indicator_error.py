from __future__ import annotations


class UnknownIndicatorError(LookupError):
    """
    Raised when an indicator name is not available in the catalog.

    Related: ...adapters.outbound.catalog.indicator_catalog
    """
