from __future__ import annotations

import pytest

from tradescan.shared_kernel.primitives import ExchangeId, Ticker, Timeframe


def test_timeframe_normalizes_code_and_exposes_duration() -> None:
    tf = Timeframe(" 1H ")

    assert tf.code == "1h"
    assert str(tf) == "1h"
    assert tf.milliseconds == 3_600_000


def test_timeframe_rejects_unsupported() -> None:
    with pytest.raises(ValueError):
        Timeframe("2m")


def test_timeframe_orders_intervals_by_duration() -> None:
    assert Timeframe("1m").is_finer_than(Timeframe("1h"))
    assert not Timeframe("1h").is_finer_than(Timeframe("1h"))
    assert not Timeframe("1d").is_finer_than(Timeframe("4h"))


def test_timeframe_bucket_open_is_epoch_aligned() -> None:
    # 2026-02-04 12:34:56.789Z
    ts = 1_770_208_496_789

    assert Timeframe("15m").bucket_open(ts) == 1_770_208_200_000
    assert Timeframe("1h").bucket_open(ts) == 1_770_206_400_000


def test_ticker_and_exchange_id_normalize_and_validate() -> None:
    assert str(Ticker(" btcusdt ")) == "BTCUSDT"
    assert str(ExchangeId(3)) == "3"

    with pytest.raises(ValueError):
        Ticker("   ")
    with pytest.raises(ValueError):
        ExchangeId(0)
    with pytest.raises(ValueError):
        ExchangeId(True)
