from __future__ import annotations

from typing import Mapping

import numpy as np

from tradescan.contexts.indicators.application.dto import CandleArrays
from tradescan.platform.errors import ConfigurationError

PRICE_SOURCES = ("open", "high", "low", "close", "hl2", "hlc3", "ohlc4")


def validate_price_source(*, owner: str, source: str) -> None:
    if source not in PRICE_SOURCES:
        raise ConfigurationError(
            f"{owner}.source must be one of {list(PRICE_SOURCES)}, got {source!r}"
        )


def price_source(arrays: CandleArrays, source: str) -> np.ndarray:
    """Price column (or derived average price) selected by `source`."""
    if source == "hl2":
        return (arrays.high + arrays.low) / 2.0
    if source == "hlc3":
        return (arrays.high + arrays.low + arrays.close) / 3.0
    if source == "ohlc4":
        return (arrays.open + arrays.high + arrays.low + arrays.close) / 4.0
    return getattr(arrays, source)


def tail_scalars(series: np.ndarray, *, warmup: int) -> list[float]:
    """Drop the fixed warm-up prefix; short windows produce no values."""
    if series.shape[0] <= warmup:
        return []
    return [float(value) for value in series[warmup:]]


def tail_fields(series: Mapping[str, np.ndarray], *, warmup: int) -> list[dict[str, float]]:
    """Zip named output series into per-candle mappings after the warm-up prefix."""
    names = list(series)
    length = min(values.shape[0] for values in series.values())
    if length <= warmup:
        return []
    return [
        {name: float(series[name][index]) for name in names}
        for index in range(warmup, length)
    ]
