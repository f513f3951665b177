"""
Numpy kernels for momentum indicators (RSI, MACD, stochastic oscillator).

Related: tradescan.contexts.indicators.adapters.outbound.catalog.oscillators,
  tradescan.contexts.indicators.adapters.outbound.compute_numpy.ma
"""

from __future__ import annotations

import math

import numpy as np

from .ma import ema_series_f64, sma_series_f64


def rolling_min_series_f64(*, source: np.ndarray, window: int) -> np.ndarray:
    """
    Compute one rolling-minimum series with NaN-window propagation policy.

    Args:
        source: Float64 source series.
        window: Positive integer window.
    Returns:
        np.ndarray: Float64 rolling minimum series.
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
    nan_count = 0
    for time_index in range(t_size):
        incoming = float(source[time_index])
        if math.isnan(incoming):
            nan_count += 1

        if time_index >= window:
            outgoing = float(source[time_index - window])
            if math.isnan(outgoing):
                nan_count -= 1

        if time_index + 1 < window or nan_count > 0:
            out[time_index] = np.nan
            continue

        start = time_index + 1 - window
        out[time_index] = float(np.min(source[start : time_index + 1]))
    return out


def rolling_max_series_f64(*, source: np.ndarray, window: int) -> np.ndarray:
    """Rolling maximum with the same warm-up and NaN policy as `rolling_min_series_f64`."""
    if window <= 0:
        raise ValueError(f"window must be > 0, got {window}")

    t_size = source.shape[0]
    out = np.empty(t_size, dtype=np.float64)
    nan_count = 0
    for time_index in range(t_size):
        incoming = float(source[time_index])
        if math.isnan(incoming):
            nan_count += 1

        if time_index >= window:
            outgoing = float(source[time_index - window])
            if math.isnan(outgoing):
                nan_count -= 1

        if time_index + 1 < window or nan_count > 0:
            out[time_index] = np.nan
            continue

        start = time_index + 1 - window
        out[time_index] = float(np.max(source[start : time_index + 1]))
    return out


def rsi_series_f64(*, source: np.ndarray, window: int) -> np.ndarray:
    """
    Compute one RSI series with Wilder averages seeded by the first `window` deltas.

    Args:
        source: Float64 source series without NaN.
        window: Positive integer RSI window.
    Returns:
        np.ndarray: Float64 RSI series; warm-up is `window`.
    Assumptions:
        Flat windows (no gains, no losses) read as neutral 50.
    Raises:
        ValueError: If window is non-positive.
    Side Effects:
        Allocates one output array.
    """
    if window <= 0:
        raise ValueError(f"window must be > 0, got {window}")

    t_size = source.shape[0]
    out = np.full(t_size, np.nan, dtype=np.float64)
    if t_size <= window:
        return out

    deltas = np.diff(source)
    gains = np.where(deltas > 0.0, deltas, 0.0)
    losses = np.where(deltas < 0.0, -deltas, 0.0)

    avg_gain = float(np.mean(gains[:window]))
    avg_loss = float(np.mean(losses[:window]))
    out[window] = _rsi_value(avg_gain=avg_gain, avg_loss=avg_loss)

    alpha = 1.0 / float(window)
    for time_index in range(window + 1, t_size):
        avg_gain = (alpha * float(gains[time_index - 1])) + ((1.0 - alpha) * avg_gain)
        avg_loss = (alpha * float(losses[time_index - 1])) + ((1.0 - alpha) * avg_loss)
        out[time_index] = _rsi_value(avg_gain=avg_gain, avg_loss=avg_loss)

    return out


def macd_series_f64(
    *,
    source: np.ndarray,
    fast_window: int,
    slow_window: int,
    signal_window: int,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Compute MACD line, signal line and histogram.

    Args:
        source: Float64 source series.
        fast_window: Fast EMA window.
        slow_window: Slow EMA window, greater than `fast_window`.
        signal_window: EMA window applied to the MACD line.
    Returns:
        tuple[np.ndarray, np.ndarray, np.ndarray]: `(macd, signal, histogram)`.
    Assumptions:
        All three outputs are complete from index `slow_window + signal_window - 2`.
    Raises:
        ValueError: If windows are non-positive or not ordered.
    Side Effects:
        Allocates intermediate arrays.
    """
    if fast_window <= 0 or slow_window <= 0 or signal_window <= 0:
        raise ValueError("fast_window, slow_window, signal_window must be > 0")
    if fast_window >= slow_window:
        raise ValueError("fast_window must be < slow_window")

    fast = ema_series_f64(source=source, window=fast_window)
    slow = ema_series_f64(source=source, window=slow_window)
    macd = fast - slow
    signal = ema_series_f64(source=macd, window=signal_window)
    return macd, signal, macd - signal


def stoch_series_f64(
    *,
    high: np.ndarray,
    low: np.ndarray,
    close: np.ndarray,
    k_window: int,
    smoothing: int,
    d_window: int,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Compute stochastic `%K` and `%D` lines.

    Args:
        high: High-price series.
        low: Low-price series.
        close: Close-price series.
        k_window: Lookback window for highest-high / lowest-low envelope.
        smoothing: Smoothing window for raw `%K`.
        d_window: Window of the `%D` average over `%K`.
    Returns:
        tuple[np.ndarray, np.ndarray]: `(k, d)`; complete from index
        `k_window + smoothing + d_window - 3`.
    Assumptions:
        A flat envelope (highest equals lowest) reads as neutral 50.
    Raises:
        ValueError: If window arguments are non-positive or lengths mismatch.
    Side Effects:
        Allocates intermediate arrays.
    """
    if k_window <= 0 or smoothing <= 0 or d_window <= 0:
        raise ValueError("k_window, smoothing, d_window must be > 0")
    if high.shape[0] != low.shape[0] or high.shape[0] != close.shape[0]:
        raise ValueError("high, low, close lengths must match")

    t_size = high.shape[0]
    hh = rolling_max_series_f64(source=high, window=k_window)
    ll = rolling_min_series_f64(source=low, window=k_window)
    k_raw = np.empty(t_size, dtype=np.float64)
    for time_index in range(t_size):
        close_value = float(close[time_index])
        hh_value = float(hh[time_index])
        ll_value = float(ll[time_index])
        if math.isnan(hh_value) or math.isnan(ll_value):
            k_raw[time_index] = np.nan
            continue
        denominator = hh_value - ll_value
        if denominator == 0.0:
            k_raw[time_index] = 50.0
        else:
            k_raw[time_index] = 100.0 * ((close_value - ll_value) / denominator)
    k = sma_series_f64(source=k_raw, window=smoothing)
    d = sma_series_f64(source=k, window=d_window)
    return k, d


def _rsi_value(*, avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0.0:
        return 50.0 if avg_gain == 0.0 else 100.0
    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


__all__ = [
    "macd_series_f64",
    "rolling_max_series_f64",
    "rolling_min_series_f64",
    "rsi_series_f64",
    "stoch_series_f64",
]
