from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, cast

from tradescan.contexts.indicators.adapters.outbound.compute_numpy import (
    atr_series_f64,
    bollinger_series_f64,
)
from tradescan.contexts.indicators.application.dto import CandleArrays
from tradescan.contexts.indicators.application.services import IndicatorEngine
from tradescan.contexts.indicators.domain.entities import (
    IndicatorConfig,
    IndicatorValue,
    require_positive_float,
    require_positive_int,
)
from tradescan.contexts.market_data.domain.entities import CandleSeries

from ._common import price_source, tail_fields, tail_scalars, validate_price_source


@dataclass(frozen=True, slots=True)
class BollingerBandsConfig(IndicatorConfig):
    """Bollinger Bands settings. Defaults: `window=20`, `multiplier=2.0`."""

    window: int = 20
    multiplier: float = 2.0
    source: str = "close"

    def _validate_params(self) -> None:
        owner = type(self).__name__
        require_positive_int(owner=owner, name="window", value=self.window)
        require_positive_float(owner=owner, name="multiplier", value=self.multiplier)
        validate_price_source(owner=owner, source=self.source)


@dataclass(frozen=True, slots=True)
class AtrConfig(IndicatorConfig):
    """ATR settings. Defaults: `window=14`."""

    window: int = 14

    def _validate_params(self) -> None:
        require_positive_int(owner=type(self).__name__, name="window", value=self.window)


class BollingerBands(IndicatorEngine):
    """Bollinger Bands; mapping values with `middle`, `upper` and `lower` fields."""

    name = "bbands"
    config_type = BollingerBandsConfig

    def calculate(self, candles: CandleSeries) -> Sequence[IndicatorValue]:
        config = cast(BollingerBandsConfig, self.config)
        source = price_source(CandleArrays.from_series(candles), config.source)
        middle, upper, lower = bollinger_series_f64(
            source=source,
            window=config.window,
            multiplier=float(config.multiplier),
        )
        return tail_fields(
            {"middle": middle, "upper": upper, "lower": lower},
            warmup=config.window - 1,
        )


class Atr(IndicatorEngine):
    """Average true range."""

    name = "atr"
    config_type = AtrConfig

    def calculate(self, candles: CandleSeries) -> Sequence[IndicatorValue]:
        config = cast(AtrConfig, self.config)
        arrays = CandleArrays.from_series(candles)
        series = atr_series_f64(
            high=arrays.high,
            low=arrays.low,
            close=arrays.close,
            window=config.window,
        )
        return tail_scalars(series, warmup=config.window - 1)
