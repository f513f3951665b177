from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, cast

from tradescan.contexts.indicators.adapters.outbound.compute_numpy import (
    macd_series_f64,
    rsi_series_f64,
    stoch_series_f64,
)
from tradescan.contexts.indicators.application.dto import CandleArrays
from tradescan.contexts.indicators.application.services import IndicatorEngine
from tradescan.contexts.indicators.domain.entities import (
    IndicatorConfig,
    IndicatorValue,
    require_positive_int,
)
from tradescan.contexts.market_data.domain.entities import CandleSeries
from tradescan.platform.errors import ConfigurationError

from ._common import price_source, tail_fields, tail_scalars, validate_price_source


@dataclass(frozen=True, slots=True)
class RsiConfig(IndicatorConfig):
    """RSI settings. Defaults: `window=14`, `source="close"`."""

    window: int = 14
    source: str = "close"

    def _validate_params(self) -> None:
        require_positive_int(owner=type(self).__name__, name="window", value=self.window)
        validate_price_source(owner=type(self).__name__, source=self.source)


@dataclass(frozen=True, slots=True)
class MacdConfig(IndicatorConfig):
    """MACD settings. Defaults: `fast_window=12`, `slow_window=26`, `signal_window=9`."""

    fast_window: int = 12
    slow_window: int = 26
    signal_window: int = 9
    source: str = "close"

    def _validate_params(self) -> None:
        owner = type(self).__name__
        require_positive_int(owner=owner, name="fast_window", value=self.fast_window)
        require_positive_int(owner=owner, name="slow_window", value=self.slow_window)
        require_positive_int(owner=owner, name="signal_window", value=self.signal_window)
        if self.fast_window >= self.slow_window:
            raise ConfigurationError(f"{owner}.fast_window must be < slow_window")
        validate_price_source(owner=owner, source=self.source)


@dataclass(frozen=True, slots=True)
class StochConfig(IndicatorConfig):
    """Stochastic oscillator settings. Defaults: `k_window=14`, `smoothing=3`, `d_window=3`."""

    k_window: int = 14
    smoothing: int = 3
    d_window: int = 3

    def _validate_params(self) -> None:
        owner = type(self).__name__
        require_positive_int(owner=owner, name="k_window", value=self.k_window)
        require_positive_int(owner=owner, name="smoothing", value=self.smoothing)
        require_positive_int(owner=owner, name="d_window", value=self.d_window)


class Rsi(IndicatorEngine):
    """Relative strength index with Wilder smoothing; scalar values in `[0, 100]`."""

    name = "rsi"
    config_type = RsiConfig

    def calculate(self, candles: CandleSeries) -> Sequence[IndicatorValue]:
        config = cast(RsiConfig, self.config)
        source = price_source(CandleArrays.from_series(candles), config.source)
        series = rsi_series_f64(source=source, window=config.window)
        return tail_scalars(series, warmup=config.window)


class Macd(IndicatorEngine):
    """MACD; mapping values with `macd`, `signal` and `histogram` fields."""

    name = "macd"
    config_type = MacdConfig

    def calculate(self, candles: CandleSeries) -> Sequence[IndicatorValue]:
        config = cast(MacdConfig, self.config)
        source = price_source(CandleArrays.from_series(candles), config.source)
        macd, signal, histogram = macd_series_f64(
            source=source,
            fast_window=config.fast_window,
            slow_window=config.slow_window,
            signal_window=config.signal_window,
        )
        return tail_fields(
            {"macd": macd, "signal": signal, "histogram": histogram},
            warmup=config.slow_window + config.signal_window - 2,
        )


class Stoch(IndicatorEngine):
    """Stochastic oscillator; mapping values with `k` and `d` fields."""

    name = "stoch"
    config_type = StochConfig

    def calculate(self, candles: CandleSeries) -> Sequence[IndicatorValue]:
        config = cast(StochConfig, self.config)
        arrays = CandleArrays.from_series(candles)
        k, d = stoch_series_f64(
            high=arrays.high,
            low=arrays.low,
            close=arrays.close,
            k_window=config.k_window,
            smoothing=config.smoothing,
            d_window=config.d_window,
        )
        return tail_fields(
            {"k": k, "d": d},
            warmup=config.k_window + config.smoothing + config.d_window - 3,
        )
