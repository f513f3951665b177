from __future__ import annotations

from typing import Any, Mapping, Protocol

from tradescan.contexts.indicators.application.services import IndicatorEngine
from tradescan.contexts.market_data.domain.entities import CandleSeries, MarketSymbol


class IndicatorFactory(Protocol):
    """
    IndicatorFactory — builds indicator engines by catalog name.

    Related:
      - src/tradescan/contexts/indicators/adapters/outbound/catalog/indicator_catalog.py
      - src/tradescan/contexts/strategy/application/services/strategy_composer.py
    """

    def build(
        self,
        name: str,
        *,
        symbol: MarketSymbol,
        candles: CandleSeries,
        config: Mapping[str, Any] | None = None,
    ) -> IndicatorEngine:
        """
        Build one engine over a candle window.

        Args:
            name: Catalog indicator name.
            symbol: Symbol of the window.
            candles: Candle window.
            config: Plain config mapping.
        Returns:
            IndicatorEngine: Computed engine.
        Assumptions:
            Engines share the factory's storage collaborators.
        Raises:
            UnknownIndicatorError: If name is not registered.
            ConfigurationError: If config is invalid.
        Side Effects:
            Registers engine signature.
        """
        ...
