from __future__ import annotations

import logging
import time
from types import MappingProxyType
from typing import Mapping

from tradescan.contexts.indicators.application.services import IndicatorEngine
from tradescan.contexts.indicators.domain.entities import Signal
from tradescan.contexts.market_data.application.ports import SymbolRepository
from tradescan.contexts.market_data.domain.entities import CandleSeries, MarketSymbol
from tradescan.contexts.signatures.application.ports import SignatureRegistry
from tradescan.contexts.signatures.domain.entities import Signature
from tradescan.contexts.strategy.application.ports import (
    IndicatorFactory,
    TradeSetupRepository,
)
from tradescan.contexts.strategy.domain.entities import (
    StrategyDefinition,
    TradeSetup,
    TradeSetupRule,
)
from tradescan.contexts.strategy.domain.services import match_signal_chains
from tradescan.platform.config import EngineRuntimeConfig
from tradescan.platform.errors import ArgumentError, ConfigurationError, LogicError
from tradescan.shared_kernel.primitives import ExchangeId, Ticker, Timeframe

log = logging.getLogger(__name__)


class StrategyComposer:
    """
    StrategyComposer — runs a strategy's indicator set over one symbol and matches signals
    into trade setups.

    One composer serves one strategy definition; `run` replaces results of the previous run.

    Related:
      - src/tradescan/contexts/strategy/domain/entities/strategy_definition.py
      - src/tradescan/contexts/strategy/domain/services/setup_matcher.py
      - tests/unit/contexts/strategy/application/test_strategy_composer.py
    """

    def __init__(
        self,
        definition: StrategyDefinition,
        *,
        indicator_factory: IndicatorFactory,
        symbol_repository: SymbolRepository,
        signature_registry: SignatureRegistry,
        trade_setup_repository: TradeSetupRepository,
        runtime_config: EngineRuntimeConfig | None = None,
    ) -> None:
        """
        Store collaborators and register the strategy signature.

        Args:
            definition: Strategy indicators, rules, helpers and window settings.
            indicator_factory: Engine builder, usually `IndicatorCatalog`.
            symbol_repository: Candle storage.
            signature_registry: Signature storage.
            trade_setup_repository: Trade setup storage.
            runtime_config: Engine runtime settings; defaults apply when omitted.
        Returns:
            None.
        Assumptions:
            Collaborators are shared with the engines the factory builds.
        Raises:
            ValueError: If a collaborator is missing.
        Side Effects:
            Registers one signature.
        """
        if indicator_factory is None:  # type: ignore[truthy-bool]
            raise ValueError("StrategyComposer requires indicator_factory")
        if symbol_repository is None:  # type: ignore[truthy-bool]
            raise ValueError("StrategyComposer requires symbol_repository")
        if signature_registry is None:  # type: ignore[truthy-bool]
            raise ValueError("StrategyComposer requires signature_registry")
        if trade_setup_repository is None:  # type: ignore[truthy-bool]
            raise ValueError("StrategyComposer requires trade_setup_repository")

        self._definition = definition
        self._indicator_factory = indicator_factory
        self._symbol_repository = symbol_repository
        self._signature_registry = signature_registry
        self._trade_setup_repository = trade_setup_repository
        self._runtime_config = runtime_config or EngineRuntimeConfig()

        self._signature = signature_registry.register(
            payload={
                "strategy": definition.name,
                "contents": definition.to_json(),
            }
        )

        self._symbol: MarketSymbol | None = None
        self._indicators: dict[str, IndicatorEngine] = {}
        self._helpers: dict[str, IndicatorEngine] = {}
        self._signals: dict[str, tuple[Signal, ...]] = {}
        self._trades: dict[str, dict[int, TradeSetup]] = {}

    @property
    def definition(self) -> StrategyDefinition:
        return self._definition

    def signature(self) -> Signature:
        return self._signature

    def symbol(self) -> MarketSymbol | None:
        """Symbol of the last run, refreshed."""
        return self._symbol

    def run(self, symbol: MarketSymbol) -> Mapping[str, tuple[TradeSetup, ...]]:
        """
        Refresh candles, compute and scan indicators, and match setups for every rule.

        Args:
            symbol: Symbol to evaluate.
        Returns:
            Mapping[str, tuple[TradeSetup, ...]]: Saved setups per rule key.
        Assumptions:
            The candle window honors `max_candles` (or the runtime default), `start_date`
            and `end_date`.
        Raises:
            ConfigurationError: If an indicator or rule setup is invalid.
            ArgumentError: If a detector or transform breaks its contract.
            RangeError: If progressive candles are missing.
        Side Effects:
            Refreshes candles; saves signals and setups; registers signatures.
        """
        run_started = time.perf_counter()
        config = self._definition.config

        self._symbol = self._symbol_repository.update_candles(symbol=symbol)
        candles = self._symbol_repository.fetch_candles(
            symbol=self._symbol,
            limit=config.max_candles or self._runtime_config.default_max_candles,
            start=config.start_date,
            end=config.end_date,
        )

        indicators_started = time.perf_counter()
        self._helpers = self._build_helper_indicators(self._symbol, candles)
        self._indicators = {}
        for setup in self._definition.indicators:
            engine = self._indicator_factory.build(
                setup.indicator,
                symbol=self._symbol,
                candles=candles,
                config=setup.engine_config(),
            )
            if setup.detector is not None:
                for _step in engine.scan(setup.detector):
                    pass
            self._indicators[setup.key] = engine
        indicators_seconds = time.perf_counter() - indicators_started

        self._signals = {alias: engine.signals() for alias, engine in self._indicators.items()}

        matching_started = time.perf_counter()
        self._trades = {
            rule.key: self.find_trade_setups(self._symbol, rule)
            for rule in self._definition.rules
        }
        matching_seconds = time.perf_counter() - matching_started

        log.info(
            "strategy run complete",
            extra={
                "strategy": self._definition.name,
                "symbol": str(self._symbol),
                "candles": len(candles),
                "signals": sum(len(signals) for signals in self._signals.values()),
                "setups": {key: len(setups) for key, setups in self._trades.items()},
                "indicators_seconds": round(indicators_seconds, 6),
                "matching_seconds": round(matching_seconds, 6),
                "run_seconds": round(time.perf_counter() - run_started, 6),
            },
        )
        return MappingProxyType(
            {key: tuple(setups.values()) for key, setups in self._trades.items()}
        )

    def find_trade_setups(
        self,
        symbol: MarketSymbol,
        rule: TradeSetupRule,
    ) -> dict[int, TradeSetup]:
        """
        Match signal chains of one rule and save the resulting setups.

        Args:
            symbol: Symbol the signals belong to.
            rule: Setup rule.
        Returns:
            dict[int, TradeSetup]: Saved setups keyed by timestamp; the last setup at a
            timestamp wins.
        Assumptions:
            Signals of the current run are available for every alias of the rule.
        Raises:
            LogicError: If called before `run`.
            ConfigurationError: If the rule references an indicator that was not scanned.
            ArgumentError: If the rule transform returns something other than a setup.
        Side Effects:
            Registers the setup signature and saves setups.
        """
        if self._symbol is None:
            raise LogicError("Strategy has not been run.")
        missing = [alias for alias in rule.indicators if alias not in self._signals]
        if missing:
            raise ConfigurationError(
                f"Rule {rule.key} references indicators that were not scanned: {missing}"
            )

        chains = match_signal_chains(rule=rule, signals_by_alias=self._signals)
        if not chains:
            log.debug("no trade setups rule=%s symbol=%s", rule.key, symbol)
            return {}

        signature = self._register_trade_setup_signature(rule)
        setups: dict[int, TradeSetup] = {}
        for chain in chains:
            setup = TradeSetup.from_signals(
                symbol_id=symbol.symbol_id,
                rule_key=rule.key,
                signature=signature,
                signals=chain,
            )
            if rule.transform is not None:
                transformed = rule.transform(setup, chain)
                if transformed is None:
                    log.warning(
                        "trade setup vetoed rule=%s symbol=%s timestamp=%s name=%s",
                        rule.key,
                        symbol,
                        setup.timestamp,
                        setup.name,
                    )
                    continue
                if not isinstance(transformed, TradeSetup):
                    raise ArgumentError(
                        f"Rule {rule.key} transform returned {type(transformed).__name__}, "
                        "expected TradeSetup"
                    )
                setup = transformed

            saved = self._trade_setup_repository.save_unique(setup=setup)
            setups[saved.timestamp] = saved

        log.debug(
            "trade setups found rule=%s symbol=%s chains=%d saved=%d",
            rule.key,
            symbol,
            len(chains),
            len(setups),
        )
        return setups

    def trades(self, rule_key: str | None = None) -> tuple[TradeSetup, ...]:
        """Saved setups of one rule (the first rule by default), in match order."""
        return tuple(self._rule_trades(rule_key).values())

    def first_trade(self, rule_key: str | None = None) -> TradeSetup | None:
        trades = self._rule_trades(rule_key)
        return next(iter(trades.values()), None)

    def next_trade(self, setup: TradeSetup) -> TradeSetup | None:
        """Setup following `setup` in its rule; with `opposite_only` the next opposite one."""
        if self._definition.config.opposite_only:
            return self.next_opposite_trade(setup)
        return self._find_next_trade(setup)

    def next_opposite_trade(self, setup: TradeSetup) -> TradeSetup | None:
        is_buy = setup.is_buy()
        following = self._find_next_trade(setup)
        while following is not None:
            if following.is_buy() != is_buy:
                return following
            following = self._find_next_trade(following)
        return None

    def signals(self) -> Mapping[str, tuple[Signal, ...]]:
        """Signals of the last run per indicator alias."""
        return MappingProxyType(self._signals)

    def indicator(self, alias: str) -> IndicatorEngine:
        try:
            return self._indicators[alias]
        except KeyError:
            raise KeyError(f"Indicator {alias} is not part of the last run") from None

    def helper_indicator(self, alias: str) -> IndicatorEngine:
        try:
            return self._helpers[alias]
        except KeyError:
            raise KeyError(f"Helper indicator {alias} is not part of the last run") from None

    def evaluation_symbol(self, setup: TradeSetup) -> MarketSymbol:
        """
        Resolve the symbol used to evaluate `setup` at `evaluation_interval`.

        Args:
            setup: Setup of the last run.
        Returns:
            MarketSymbol: Same instrument at the evaluation interval, fresh.
        Assumptions:
            Candles older than `evaluation_refresh_seconds` are refreshed.
        Raises:
            LogicError: If called before `run`.
            ArgumentError: If setup belongs to another symbol.
        Side Effects:
            May backfill the symbol and refresh candles.
        """
        if self._symbol is None:
            raise LogicError("Strategy has not been run.")
        if setup.symbol_id != self._symbol.symbol_id:
            raise ArgumentError(
                f"Setup symbol {setup.symbol_id} does not match run symbol {self._symbol}"
            )
        evaluation = self._resolve_symbol(
            exchange=self._symbol.exchange,
            ticker=self._symbol.ticker,
            timeframe=self._definition.config.evaluation_interval,
        )
        return self._symbol_repository.update_candles_if_older_than(
            symbol=evaluation,
            max_age_seconds=self._runtime_config.evaluation_refresh_seconds,
        )

    def _rule_trades(self, rule_key: str | None) -> dict[int, TradeSetup]:
        if self._symbol is None:
            raise LogicError("Strategy has not been run.")
        key = rule_key if rule_key is not None else self._definition.rules[0].key
        try:
            return self._trades[key]
        except KeyError:
            raise KeyError(f"Unknown trade setup rule {key}") from None

    def _find_next_trade(self, setup: TradeSetup) -> TradeSetup | None:
        found = False
        for timestamp, candidate in self._rule_trades(setup.rule_key).items():
            if found:
                return candidate
            found = timestamp == setup.timestamp
        return None

    def _register_trade_setup_signature(self, rule: TradeSetupRule) -> Signature:
        return self._signature_registry.register(
            payload={
                "strategy": {"signature": self._signature.hash},
                "trade_setup": rule.to_json(),
                "indicator_setup": [
                    self._definition.indicator_setup(alias).to_json() for alias in rule.indicators
                ],
            }
        )

    def _build_helper_indicators(
        self,
        symbol: MarketSymbol,
        candles: CandleSeries,
    ) -> dict[str, IndicatorEngine]:
        helpers: dict[str, IndicatorEngine] = {}
        first = candles.first()
        last = candles.last()
        for helper in self._definition.helpers:
            helper_symbol = self._resolve_symbol(
                exchange=symbol.exchange,
                ticker=helper.ticker or symbol.ticker,
                timeframe=helper.timeframe or symbol.timeframe,
            )
            if helper_symbol.symbol_id == symbol.symbol_id:
                helper_symbol = symbol
                helper_candles = candles
            else:
                helper_symbol = self._symbol_repository.update_candles(symbol=helper_symbol)
                boundary = None
                if last is not None:
                    boundary = self._symbol_repository.fetch_next_candle(
                        symbol_id=symbol.symbol_id,
                        after_timestamp=last.timestamp,
                    )
                helper_candles = self._symbol_repository.fetch_candles(
                    symbol=helper_symbol,
                    start=first.timestamp if first is not None else None,
                    end=boundary.timestamp - 1 if boundary is not None else None,
                )
            helpers[helper.key] = self._indicator_factory.build(
                helper.indicator,
                symbol=helper_symbol,
                candles=helper_candles,
                config=helper.engine_config(),
            )
        return helpers

    def _resolve_symbol(
        self,
        *,
        exchange: ExchangeId,
        ticker: Ticker,
        timeframe: Timeframe,
    ) -> MarketSymbol:
        found = self._symbol_repository.fetch_symbol(
            exchange=exchange,
            ticker=ticker,
            timeframe=timeframe,
        )
        if found is not None:
            return found
        return self._symbol_repository.fetch_symbol_from_exchange(
            exchange=exchange,
            ticker=ticker,
            timeframe=timeframe,
        )
