"""
Numpy kernels for volatility indicators (Bollinger Bands, ATR).

Related: tradescan.contexts.indicators.adapters.outbound.catalog.volatility,
  tradescan.contexts.indicators.adapters.outbound.compute_numpy.ma
"""

from __future__ import annotations

import math

import numpy as np

from .ma import sma_series_f64, wilder_series_f64


def rolling_variance_series_f64(*, source: np.ndarray, window: int) -> np.ndarray:
    """
    Compute one rolling-variance (`ddof=0`) series with NaN-window policy.

    Args:
        source: Float64 source series.
        window: Positive integer window.
    Returns:
        np.ndarray: Float64 rolling variance series.
    Assumptions:
        Any NaN inside active window yields NaN output for that position.
    Raises:
        ValueError: If window is non-positive.
    Side Effects:
        Allocates one output array.
    """
    if window <= 0:
        raise ValueError(f"window must be > 0, got {window}")

    t_size = source.shape[0]
    out = np.empty(t_size, dtype=np.float64)
    running_sum = 0.0
    running_sum_sq = 0.0
    nan_count = 0

    for time_index in range(t_size):
        incoming = float(source[time_index])
        if math.isnan(incoming):
            nan_count += 1
        else:
            running_sum += incoming
            running_sum_sq += incoming * incoming

        if time_index >= window:
            outgoing = float(source[time_index - window])
            if math.isnan(outgoing):
                nan_count -= 1
            else:
                running_sum -= outgoing
                running_sum_sq -= outgoing * outgoing

        if time_index + 1 < window or nan_count > 0:
            out[time_index] = np.nan
            continue

        mean = running_sum / float(window)
        variance = (running_sum_sq / float(window)) - (mean * mean)
        if variance < 0.0 and variance > -1e-9:
            variance = 0.0
        out[time_index] = variance

    return out


def bollinger_series_f64(
    *,
    source: np.ndarray,
    window: int,
    multiplier: float,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Compute Bollinger Bands around a simple moving average.

    Args:
        source: Float64 source series.
        window: Positive rolling window.
        multiplier: Standard-deviation multiplier for the bands.
    Returns:
        tuple[np.ndarray, np.ndarray, np.ndarray]: `(middle, upper, lower)`; warm-up
        is `window - 1`.
    Assumptions:
        Population standard deviation (`ddof=0`).
    Raises:
        ValueError: If window is non-positive.
    Side Effects:
        Allocates intermediate arrays.
    """
    middle = sma_series_f64(source=source, window=window)
    deviation = np.sqrt(rolling_variance_series_f64(source=source, window=window))
    return middle, middle + (multiplier * deviation), middle - (multiplier * deviation)


def true_range_series_f64(
    *,
    high: np.ndarray,
    low: np.ndarray,
    close: np.ndarray,
) -> np.ndarray:
    """
    Compute True Range series.

    Args:
        high: High-price series.
        low: Low-price series.
        close: Close-price series used for previous close.
    Returns:
        np.ndarray: Float64 true-range series; the first value is `high - low`.
    Assumptions:
        Inputs are aligned one-dimensional series with identical length.
    Raises:
        ValueError: If input lengths mismatch.
    Side Effects:
        Allocates one output array.
    """
    if high.shape[0] != low.shape[0] or high.shape[0] != close.shape[0]:
        raise ValueError("high, low, close lengths must match")

    t_size = high.shape[0]
    out = np.empty(t_size, dtype=np.float64)
    for time_index in range(t_size):
        high_value = float(high[time_index])
        low_value = float(low[time_index])
        if math.isnan(high_value) or math.isnan(low_value):
            out[time_index] = np.nan
            continue

        hl = high_value - low_value
        if time_index == 0:
            out[time_index] = hl
            continue

        previous_close = float(close[time_index - 1])
        if math.isnan(previous_close):
            out[time_index] = hl
            continue

        hc = abs(high_value - previous_close)
        lc = abs(low_value - previous_close)
        out[time_index] = max(hl, hc, lc)
    return out


def atr_series_f64(
    *,
    high: np.ndarray,
    low: np.ndarray,
    close: np.ndarray,
    window: int,
) -> np.ndarray:
    """Average True Range: SMA-seeded Wilder smoothing of True Range; warm-up `window - 1`."""
    true_range = true_range_series_f64(high=high, low=low, close=close)
    return wilder_series_f64(source=true_range, window=window)


__all__ = [
    "atr_series_f64",
    "bollinger_series_f64",
    "rolling_variance_series_f64",
    "true_range_series_f64",
]
