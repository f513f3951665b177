from __future__ import annotations

import numpy as np
import pytest

from tradescan.contexts.indicators.adapters.outbound.compute_numpy import (
    atr_series_f64,
    bollinger_series_f64,
    ema_series_f64,
    macd_series_f64,
    rolling_max_series_f64,
    rolling_min_series_f64,
    rsi_series_f64,
    sma_series_f64,
    stoch_series_f64,
    true_range_series_f64,
    wma_series_f64,
)

_NAN = np.nan


def _f64(*values: float) -> np.ndarray:
    return np.asarray(values, dtype=np.float64)


def test_sma_series_has_window_minus_one_warmup() -> None:
    out = sma_series_f64(source=_f64(1.0, 2.0, 3.0, 4.0), window=2)

    np.testing.assert_allclose(out, _f64(_NAN, 1.5, 2.5, 3.5))


def test_sma_series_propagates_nan_inside_window() -> None:
    out = sma_series_f64(source=_f64(1.0, _NAN, 3.0, 4.0, 5.0), window=2)

    np.testing.assert_allclose(out, _f64(_NAN, _NAN, _NAN, 3.5, 4.5))


def test_ema_series_is_seeded_with_first_window_mean() -> None:
    """
    Verify EMA seed and recursion against hand-computed values.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        `window=3` gives `alpha=0.5`.
    Raises:
        AssertionError: If EMA values drift.
    Side Effects:
        None.
    """
    out = ema_series_f64(source=_f64(1.0, 2.0, 3.0, 4.0, 5.0), window=3)

    np.testing.assert_allclose(out, _f64(_NAN, _NAN, 2.0, 3.0, 4.0))


def test_wma_series_weighs_newest_value_most() -> None:
    out = wma_series_f64(source=_f64(1.0, 2.0, 3.0, 4.0), window=3)

    np.testing.assert_allclose(out, _f64(_NAN, _NAN, 14.0 / 6.0, 20.0 / 6.0))


def test_wma_series_of_short_source_is_all_nan() -> None:
    assert np.isnan(wma_series_f64(source=_f64(1.0, 2.0), window=3)).all()


def test_rsi_series_uses_wilder_smoothing() -> None:
    out = rsi_series_f64(source=_f64(1.0, 2.0, 3.0, 2.0, 3.0), window=2)

    np.testing.assert_allclose(out, _f64(_NAN, _NAN, 100.0, 50.0, 75.0))


def test_rsi_series_reads_flat_window_as_neutral() -> None:
    out = rsi_series_f64(source=_f64(5.0, 5.0, 5.0, 5.0), window=2)

    np.testing.assert_allclose(out, _f64(_NAN, _NAN, 50.0, 50.0))


def test_macd_series_is_complete_after_slow_plus_signal_warmup() -> None:
    macd, signal, histogram = macd_series_f64(
        source=_f64(1.0, 2.0, 3.0, 4.0, 5.0, 6.0),
        fast_window=2,
        slow_window=3,
        signal_window=2,
    )

    np.testing.assert_allclose(macd, _f64(_NAN, _NAN, 0.5, 0.5, 0.5, 0.5), atol=1e-12)
    np.testing.assert_allclose(signal, _f64(_NAN, _NAN, _NAN, 0.5, 0.5, 0.5), atol=1e-12)
    np.testing.assert_allclose(histogram, _f64(_NAN, _NAN, _NAN, 0.0, 0.0, 0.0), atol=1e-12)


def test_macd_series_rejects_unordered_windows() -> None:
    with pytest.raises(ValueError):
        macd_series_f64(source=_f64(1.0), fast_window=3, slow_window=3, signal_window=2)


def test_rolling_extrema_series() -> None:
    source = _f64(3.0, 1.0, 4.0, 1.0, 5.0)

    np.testing.assert_allclose(
        rolling_max_series_f64(source=source, window=2),
        _f64(_NAN, 3.0, 4.0, 4.0, 5.0),
    )
    np.testing.assert_allclose(
        rolling_min_series_f64(source=source, window=3),
        _f64(_NAN, _NAN, 1.0, 1.0, 1.0),
    )


def test_stoch_series_reads_flat_envelope_as_neutral() -> None:
    flat = _f64(7.0, 7.0, 7.0, 7.0)

    k, d = stoch_series_f64(high=flat, low=flat, close=flat, k_window=2, smoothing=1, d_window=2)

    np.testing.assert_allclose(k, _f64(_NAN, 50.0, 50.0, 50.0))
    np.testing.assert_allclose(d, _f64(_NAN, _NAN, 50.0, 50.0))


def test_stoch_series_places_close_inside_envelope() -> None:
    k, _ = stoch_series_f64(
        high=_f64(10.0, 12.0),
        low=_f64(8.0, 9.0),
        close=_f64(9.0, 11.0),
        k_window=2,
        smoothing=1,
        d_window=1,
    )

    # envelope [8, 12], close 11
    assert k[1] == pytest.approx(75.0)


def test_true_range_and_atr_series() -> None:
    high = _f64(2.0, 3.0, 4.5)
    low = _f64(1.0, 1.0, 2.0)
    close = _f64(1.5, 2.0, 4.0)

    true_range = true_range_series_f64(high=high, low=low, close=close)
    atr = atr_series_f64(high=high, low=low, close=close, window=2)

    np.testing.assert_allclose(true_range, _f64(1.0, 2.0, 2.5))
    np.testing.assert_allclose(atr, _f64(_NAN, 1.5, 2.0))


def test_bollinger_series_uses_population_deviation() -> None:
    middle, upper, lower = bollinger_series_f64(
        source=_f64(1.0, 2.0, 3.0),
        window=3,
        multiplier=2.0,
    )
    deviation = float(np.sqrt(2.0 / 3.0))

    assert middle[2] == pytest.approx(2.0)
    assert upper[2] == pytest.approx(2.0 + 2.0 * deviation)
    assert lower[2] == pytest.approx(2.0 - 2.0 * deviation)
    assert np.isnan(middle[:2]).all()


@pytest.mark.parametrize("kernel", [sma_series_f64, ema_series_f64, wma_series_f64])
def test_moving_average_kernels_reject_non_positive_window(kernel: object) -> None:
    with pytest.raises(ValueError):
        kernel(source=_f64(1.0), window=0)  # type: ignore[operator]
