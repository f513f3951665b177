from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, cast

from tradescan.contexts.indicators.adapters.outbound.compute_numpy import (
    ema_series_f64,
    sma_series_f64,
    wma_series_f64,
)
from tradescan.contexts.indicators.application.dto import CandleArrays
from tradescan.contexts.indicators.application.services import IndicatorEngine
from tradescan.contexts.indicators.domain.entities import (
    IndicatorConfig,
    IndicatorValue,
    require_positive_int,
)
from tradescan.contexts.market_data.domain.entities import CandleSeries

from ._common import price_source, tail_scalars, validate_price_source


@dataclass(frozen=True, slots=True)
class MovingAverageConfig(IndicatorConfig):
    """
    Moving-average settings.

    Defaults: `window=20`, `source="close"`.
    """

    window: int = 20
    source: str = "close"

    def _validate_params(self) -> None:
        require_positive_int(owner=type(self).__name__, name="window", value=self.window)
        validate_price_source(owner=type(self).__name__, source=self.source)


class Sma(IndicatorEngine):
    """Simple moving average of the configured price source."""

    name = "sma"
    config_type = MovingAverageConfig

    def calculate(self, candles: CandleSeries) -> Sequence[IndicatorValue]:
        config = cast(MovingAverageConfig, self.config)
        source = price_source(CandleArrays.from_series(candles), config.source)
        series = sma_series_f64(source=source, window=config.window)
        return tail_scalars(series, warmup=config.window - 1)


class Ema(IndicatorEngine):
    """Exponential moving average seeded with the SMA of the first window."""

    name = "ema"
    config_type = MovingAverageConfig

    def calculate(self, candles: CandleSeries) -> Sequence[IndicatorValue]:
        config = cast(MovingAverageConfig, self.config)
        source = price_source(CandleArrays.from_series(candles), config.source)
        series = ema_series_f64(source=source, window=config.window)
        return tail_scalars(series, warmup=config.window - 1)


class Wma(IndicatorEngine):
    """Linearly weighted moving average."""

    name = "wma"
    config_type = MovingAverageConfig

    def calculate(self, candles: CandleSeries) -> Sequence[IndicatorValue]:
        config = cast(MovingAverageConfig, self.config)
        source = price_source(CandleArrays.from_series(candles), config.source)
        series = wma_series_f64(source=source, window=config.window)
        return tail_scalars(series, warmup=config.window - 1)
