"""
Numpy kernels for moving-average indicators.

Every kernel returns a float64 series of the input length with NaN over a fixed warm-up
prefix (`window - 1` values).

Related: tradescan.contexts.indicators.adapters.outbound.catalog.moving_averages
"""

from __future__ import annotations

import math

import numpy as np


def rolling_sum_series_f64(*, source: np.ndarray, window: int) -> np.ndarray:
    """
    Compute one rolling-sum series with window-NaN policy.

    Args:
        source: Float64 source series.
        window: Positive rolling window.
    Returns:
        np.ndarray: Float64 rolling-sum series.
    Assumptions:
        Any NaN inside window produces NaN output.
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
    nan_count = 0
    for time_index in range(t_size):
        incoming = float(source[time_index])
        if math.isnan(incoming):
            nan_count += 1
        else:
            running_sum += incoming

        if time_index >= window:
            outgoing = float(source[time_index - window])
            if math.isnan(outgoing):
                nan_count -= 1
            else:
                running_sum -= outgoing

        if time_index + 1 < window or nan_count > 0:
            out[time_index] = np.nan
        else:
            out[time_index] = running_sum

    return out


def sma_series_f64(*, source: np.ndarray, window: int) -> np.ndarray:
    """Simple moving average; warm-up `window - 1`."""
    return rolling_sum_series_f64(source=source, window=window) / float(window)


def ema_series_f64(*, source: np.ndarray, window: int) -> np.ndarray:
    """
    Compute one SMA-seeded EMA series.

    Args:
        source: Float64 source series, possibly with a leading NaN prefix.
        window: Positive smoothing window (`alpha = 2 / (window + 1)`).
    Returns:
        np.ndarray: Float64 EMA series.
    Assumptions:
        The seed is the mean of the first `window` valid values after the NaN prefix,
        so warm-up is `prefix + window - 1`.
    Raises:
        ValueError: If window is non-positive.
    Side Effects:
        Allocates one output array.
    """
    if window <= 0:
        raise ValueError(f"window must be > 0, got {window}")
    alpha = 2.0 / (float(window) + 1.0)
    return _seeded_ewma_series_f64(source=source, window=window, alpha=alpha)


def wilder_series_f64(*, source: np.ndarray, window: int) -> np.ndarray:
    """SMA-seeded Wilder smoothing (`alpha = 1 / window`)."""
    if window <= 0:
        raise ValueError(f"window must be > 0, got {window}")
    return _seeded_ewma_series_f64(source=source, window=window, alpha=1.0 / float(window))


def wma_series_f64(*, source: np.ndarray, window: int) -> np.ndarray:
    """
    Compute one linear-WMA series with rolling-window NaN policy.

    Args:
        source: Float64 source series.
        window: Positive rolling window.
    Returns:
        np.ndarray: Float64 WMA series; the newest value weighs `window`.
    Assumptions:
        Any NaN inside window produces NaN output.
    Raises:
        ValueError: If window is non-positive.
    Side Effects:
        Allocates one output array.
    """
    if window <= 0:
        raise ValueError(f"window must be > 0, got {window}")

    t_size = source.shape[0]
    out = np.full(t_size, np.nan, dtype=np.float64)
    if t_size == 0 or window > t_size:
        return out

    denominator = (float(window) * (float(window) + 1.0)) / 2.0
    sum_x = 0.0
    weighted = 0.0
    nan_count = 0

    for offset in range(window):
        raw_value = float(source[offset])
        weight = float(offset + 1)
        if math.isnan(raw_value):
            nan_count += 1
            continue
        sum_x += raw_value
        weighted += weight * raw_value

    if nan_count == 0:
        out[window - 1] = weighted / denominator

    for time_index in range(window, t_size):
        incoming = float(source[time_index])
        outgoing = float(source[time_index - window])

        incoming_value = 0.0
        outgoing_value = 0.0

        if math.isnan(incoming):
            nan_count += 1
        else:
            incoming_value = incoming

        if math.isnan(outgoing):
            nan_count -= 1
        else:
            outgoing_value = outgoing

        weighted = weighted - sum_x + (float(window) * incoming_value)
        sum_x = sum_x - outgoing_value + incoming_value

        if nan_count == 0:
            out[time_index] = weighted / denominator
        else:
            out[time_index] = np.nan

    return out


def _seeded_ewma_series_f64(*, source: np.ndarray, window: int, alpha: float) -> np.ndarray:
    t_size = source.shape[0]
    out = np.full(t_size, np.nan, dtype=np.float64)

    first_valid = 0
    while first_valid < t_size and math.isnan(float(source[first_valid])):
        first_valid += 1
    seed_index = first_valid + window - 1
    if seed_index >= t_size:
        return out

    previous = float(np.mean(source[first_valid : seed_index + 1]))
    out[seed_index] = previous
    for time_index in range(seed_index + 1, t_size):
        value = float(source[time_index])
        if math.isnan(value):
            # NaN after the seed keeps the previous state
            out[time_index] = np.nan
            continue
        previous = (alpha * value) + ((1.0 - alpha) * previous)
        out[time_index] = previous

    return out


__all__ = [
    "ema_series_f64",
    "rolling_sum_series_f64",
    "sma_series_f64",
    "wilder_series_f64",
    "wma_series_f64",
]
