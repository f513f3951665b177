from __future__ import annotations

from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Any, Mapping

from tradescan.contexts.indicators.application.services import SignalDetector
from tradescan.platform.errors import ConfigurationError
from tradescan.shared_kernel.primitives import Ticker, Timeframe

from .setup_rule import TradeSetupRule


@dataclass(frozen=True, slots=True)
class IndicatorSetup:
    """
    IndicatorSetup — one scanned indicator of a strategy.

    `key` (explicit alias, config alias, or indicator name) identifies the engine inside
    the strategy and is the alias referenced by setup rules.
    """

    indicator: str
    config: Mapping[str, Any] = field(default_factory=dict)
    detector: SignalDetector | None = None
    alias: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.indicator, str) or not self.indicator.strip():
            raise ConfigurationError("IndicatorSetup.indicator must be non-empty string")
        object.__setattr__(self, "indicator", self.indicator.strip())
        object.__setattr__(self, "config", MappingProxyType(dict(self.config)))
        if self.detector is not None and not isinstance(self.detector, SignalDetector):
            raise ConfigurationError(
                f"IndicatorSetup {self.indicator} detector must be SignalDetector"
            )
        config_alias = self.config.get("alias")
        if self.alias is not None and config_alias is not None and config_alias != self.alias:
            raise ConfigurationError(
                f"IndicatorSetup {self.indicator} alias {self.alias!r} conflicts with "
                f"config alias {config_alias!r}"
            )

    @property
    def key(self) -> str:
        return self.alias or self.config.get("alias") or self.indicator

    def engine_config(self) -> dict[str, Any]:
        """Config mapping handed to the engine, with the setup key as alias."""
        return {**self.config, "alias": self.key}

    def to_json(self) -> dict[str, Any]:
        return {
            "indicator": self.indicator,
            "alias": self.key,
            "config": _json_config(self.config),
            "detector": self.detector.identity if self.detector is not None else None,
        }


@dataclass(frozen=True, slots=True)
class HelperIndicatorSetup:
    """
    HelperIndicatorSetup — indicator computed without scanning, optionally over another
    ticker or interval of the same exchange.
    """

    indicator: str
    config: Mapping[str, Any] = field(default_factory=dict)
    alias: str | None = None
    ticker: Ticker | None = None
    timeframe: Timeframe | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.indicator, str) or not self.indicator.strip():
            raise ConfigurationError("HelperIndicatorSetup.indicator must be non-empty string")
        object.__setattr__(self, "indicator", self.indicator.strip())
        object.__setattr__(self, "config", MappingProxyType(dict(self.config)))
        try:
            if isinstance(self.ticker, str):
                object.__setattr__(self, "ticker", Ticker(self.ticker))
            if isinstance(self.timeframe, str):
                object.__setattr__(self, "timeframe", Timeframe(code=self.timeframe))
        except ValueError as error:
            raise ConfigurationError(str(error)) from error

    @property
    def key(self) -> str:
        return self.alias or self.config.get("alias") or self.indicator

    def engine_config(self) -> dict[str, Any]:
        return {**self.config, "alias": self.key}


@dataclass(frozen=True, slots=True)
class StrategyConfig:
    """
    StrategyConfig — candle window and evaluation settings of a strategy run.

    `opposite_only=True` makes `next_trade` skip setups on the same side as the previous
    one. `evaluation_interval` is the interval of the symbol used to evaluate setups.
    `max_candles=None` falls back to `EngineRuntimeConfig.default_max_candles` (1000).
    """

    max_candles: int | None = None
    start_date: int | None = None
    end_date: int | None = None
    opposite_only: bool = False
    evaluation_interval: Timeframe = field(default_factory=lambda: Timeframe(code="1m"))

    def __post_init__(self) -> None:
        """
        Validate window bounds and normalize the evaluation interval.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Dates are epoch milliseconds and inclusive.
        Raises:
            ConfigurationError: If one of settings is invalid.
        Side Effects:
            None.
        """
        if self.max_candles is not None and (
            isinstance(self.max_candles, bool) or not isinstance(self.max_candles, int)
        ):
            raise ConfigurationError("StrategyConfig.max_candles must be int")
        if self.max_candles is not None and self.max_candles <= 0:
            raise ConfigurationError(
                f"StrategyConfig.max_candles must be > 0, got {self.max_candles}"
            )
        if (
            self.start_date is not None
            and self.end_date is not None
            and self.start_date > self.end_date
        ):
            raise ConfigurationError("StrategyConfig.start_date must be <= end_date")
        if not isinstance(self.opposite_only, bool):
            raise ConfigurationError("StrategyConfig.opposite_only must be bool")
        if isinstance(self.evaluation_interval, str):
            try:
                object.__setattr__(
                    self, "evaluation_interval", Timeframe(code=self.evaluation_interval)
                )
            except ValueError as error:
                raise ConfigurationError(str(error)) from error

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any] | None = None) -> StrategyConfig:
        values = dict(payload or {})
        known = {item.name for item in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(f"StrategyConfig got unknown config keys: {unknown}")
        try:
            return cls(**values)
        except ConfigurationError:
            raise
        except (TypeError, ValueError) as error:
            raise ConfigurationError(f"StrategyConfig is invalid: {error}") from error

    def to_json(self) -> dict[str, Any]:
        return {
            "max_candles": self.max_candles,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "opposite_only": self.opposite_only,
            "evaluation_interval": self.evaluation_interval.code,
        }


@dataclass(frozen=True, slots=True)
class StrategyDefinition:
    """
    StrategyDefinition — fixed indicator set plus setup rules of one strategy.

    Related:
      - src/tradescan/contexts/strategy/application/services/strategy_composer.py
      - tests/unit/contexts/strategy/domain/test_strategy_definition.py
    """

    name: str
    indicators: tuple[IndicatorSetup, ...]
    rules: tuple[TradeSetupRule, ...]
    helpers: tuple[HelperIndicatorSetup, ...] = ()
    config: StrategyConfig = field(default_factory=StrategyConfig)

    def __post_init__(self) -> None:
        """
        Validate alias uniqueness and rule references.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Rules may only reference scanned indicators, never helpers.
        Raises:
            ConfigurationError: If names collide or a rule references an unknown alias.
        Side Effects:
            None.
        """
        if not isinstance(self.name, str) or not self.name.strip():
            raise ConfigurationError("StrategyDefinition.name must be non-empty string")
        object.__setattr__(self, "name", self.name.strip())
        object.__setattr__(self, "indicators", tuple(self.indicators))
        object.__setattr__(self, "rules", tuple(self.rules))
        object.__setattr__(self, "helpers", tuple(self.helpers))

        if not self.indicators:
            raise ConfigurationError(f"Strategy {self.name} requires at least one indicator")
        if not self.rules:
            raise ConfigurationError(f"Strategy {self.name} requires at least one setup rule")

        keys = [setup.key for setup in self.indicators]
        _require_unique(strategy=self.name, kind="indicator", keys=keys)
        _require_unique(
            strategy=self.name,
            kind="helper indicator",
            keys=[helper.key for helper in self.helpers],
        )
        _require_unique(strategy=self.name, kind="rule", keys=[rule.key for rule in self.rules])

        declared = set(keys)
        for rule in self.rules:
            missing = [alias for alias in rule.indicators if alias not in declared]
            if missing:
                raise ConfigurationError(
                    f"Rule {rule.key} of strategy {self.name} references undeclared "
                    f"indicators: {missing}"
                )

    def indicator_setup(self, alias: str) -> IndicatorSetup:
        for setup in self.indicators:
            if setup.key == alias:
                return setup
        raise KeyError(alias)

    def to_json(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "indicators": [setup.to_json() for setup in self.indicators],
            "rules": [rule.to_json() for rule in self.rules],
            "helpers": [
                {
                    "indicator": helper.indicator,
                    "alias": helper.key,
                    "config": _json_config(helper.config),
                    "ticker": str(helper.ticker) if helper.ticker is not None else None,
                    "timeframe": helper.timeframe.code if helper.timeframe is not None else None,
                }
                for helper in self.helpers
            ],
            "config": self.config.to_json(),
        }


def _require_unique(*, strategy: str, kind: str, keys: list[str]) -> None:
    seen: set[str] = set()
    for key in keys:
        if key in seen:
            raise ConfigurationError(f"Strategy {strategy} declares {kind} {key} twice")
        seen.add(key)


def _json_config(config: Mapping[str, Any]) -> dict[str, Any]:
    """Setup config as plain JSON values; timeframes are rendered as codes."""
    return {
        key: value.code if isinstance(value, Timeframe) else value
        for key, value in config.items()
    }
