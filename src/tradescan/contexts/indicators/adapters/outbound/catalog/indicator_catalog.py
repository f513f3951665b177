from __future__ import annotations

from typing import Any, Iterable, Mapping

from tradescan.contexts.indicators.application.ports import SignalRepository
from tradescan.contexts.indicators.application.services import IndicatorEngine
from tradescan.contexts.indicators.domain.entities import IndicatorConfig
from tradescan.contexts.indicators.domain.errors import UnknownIndicatorError
from tradescan.contexts.market_data.application.ports import SymbolRepository
from tradescan.contexts.market_data.domain.entities import CandleSeries, MarketSymbol
from tradescan.contexts.signatures.application.ports import SignatureRegistry
from tradescan.platform.config import EngineRuntimeConfig

from .moving_averages import Ema, Sma, Wma
from .oscillators import Macd, Rsi, Stoch
from .volatility import Atr, BollingerBands

DEFAULT_ENGINES: tuple[type[IndicatorEngine], ...] = (
    Sma,
    Ema,
    Wma,
    Rsi,
    Macd,
    Stoch,
    BollingerBands,
    Atr,
)


class IndicatorCatalog:
    """
    IndicatorCatalog — name-to-engine lookup that builds engines with shared collaborators.

    Related:
      - src/tradescan/contexts/indicators/application/services/indicator_engine.py
      - src/tradescan/contexts/strategy/application/services/strategy_composer.py
      - tests/unit/contexts/indicators/adapters/test_indicator_catalog.py
    """

    def __init__(
        self,
        *,
        symbol_repository: SymbolRepository,
        signal_repository: SignalRepository,
        signature_registry: SignatureRegistry,
        runtime_config: EngineRuntimeConfig | None = None,
        engines: Iterable[type[IndicatorEngine]] = DEFAULT_ENGINES,
    ) -> None:
        """
        Initialize catalog with collaborators injected into every built engine.

        Args:
            symbol_repository: Candle storage port.
            signal_repository: Signal storage port.
            signature_registry: Signature registry port.
            runtime_config: Optional engine runtime settings.
            engines: Engine classes to expose; defaults to the built-in set.
        Returns:
            None.
        Assumptions:
            Engine names are unique.
        Raises:
            ValueError: If two engines share a name.
        Side Effects:
            None.
        """
        self._symbol_repository = symbol_repository
        self._signal_repository = signal_repository
        self._signature_registry = signature_registry
        self._runtime_config = runtime_config or EngineRuntimeConfig()
        self._engines: dict[str, type[IndicatorEngine]] = {}
        for engine_type in engines:
            self.register(engine_type)

    @property
    def symbol_repository(self) -> SymbolRepository:
        return self._symbol_repository

    @property
    def signature_registry(self) -> SignatureRegistry:
        return self._signature_registry

    @property
    def runtime_config(self) -> EngineRuntimeConfig:
        return self._runtime_config

    def register(self, engine_type: type[IndicatorEngine]) -> None:
        name = engine_type.name.strip().lower()
        if not name:
            raise ValueError(f"{engine_type.__name__} must define a name")
        if name in self._engines:
            raise ValueError(f"duplicate indicator name: {name}")
        self._engines[name] = engine_type

    def names(self) -> tuple[str, ...]:
        return tuple(sorted(self._engines))

    def engine_type(self, name: str) -> type[IndicatorEngine]:
        engine_type = self._engines.get(name.strip().lower())
        if engine_type is None:
            raise UnknownIndicatorError(f"Unknown indicator: {name!r}")
        return engine_type

    def build(
        self,
        name: str,
        *,
        symbol: MarketSymbol,
        candles: CandleSeries,
        config: IndicatorConfig | Mapping[str, Any] | None = None,
    ) -> IndicatorEngine:
        """
        Construct one engine by catalog name.

        Args:
            name: Indicator name, e.g. `rsi`.
            symbol: Symbol the candle window belongs to.
            candles: Candle window.
            config: Typed config or plain mapping over the engine defaults.
        Returns:
            IndicatorEngine: Computed engine.
        Assumptions:
            Names are case-insensitive.
        Raises:
            UnknownIndicatorError: If name is not registered.
            ConfigurationError: If config is invalid.
        Side Effects:
            Same as engine construction.
        """
        engine_type = self.engine_type(name)
        return engine_type(
            symbol,
            candles,
            config,
            symbol_repository=self._symbol_repository,
            signal_repository=self._signal_repository,
            signature_registry=self._signature_registry,
            runtime_config=self._runtime_config,
        )

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.strip().lower() in self._engines
