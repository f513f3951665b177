from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, cast

import numpy as np
import pytest

from tradescan.contexts.indicators.adapters import InMemorySignalRepository
from tradescan.contexts.indicators.application.services import IndicatorEngine, SignalDetector
from tradescan.contexts.indicators.domain.entities import (
    IndicatorConfig,
    IndicatorValue,
    Signal,
    SignalSide,
)
from tradescan.contexts.market_data.adapters import InMemorySymbolRepository
from tradescan.contexts.market_data.domain.entities import CandleSeries, MarketSymbol
from tradescan.contexts.signatures.adapters import InMemorySignatureRegistry
from tradescan.platform.errors import ArgumentError, RangeError, RecalculationError
from tradescan.shared_kernel.primitives import Candle, ExchangeId, Ticker, Timeframe

_HOUR = 3_600_000
_QUARTER = 15 * 60_000
_FAR_FUTURE_MS = 10**13

# Hourly closes and the 15m closes inside each hour.
_HOURLY = (10.0, 20.0, 30.0, 8.0)
_QUARTERS = (
    (9.0, 10.0, 11.0, 10.0),
    (11.0, 25.0, 12.0, 20.0),
    (30.0, 31.0, 32.0, 30.0),
    (5.0, 6.0, 7.0, 8.0),
)


class _FakeClock:
    def now_ms(self) -> int:
        return _FAR_FUTURE_MS


@dataclass(frozen=True, slots=True)
class _LastCloseConfig(IndicatorConfig):
    skip: int = 1


class _LastClose(IndicatorEngine):
    """Close prices after a one-candle warm-up; recalculation reads the merged close."""

    name = "last_close"
    config_type = _LastCloseConfig

    def calculate(self, candles: CandleSeries) -> Sequence[IndicatorValue]:
        skip = cast(_LastCloseConfig, self.config).skip
        return [candle.close for candle in candles][skip:]


class _ArrayLastClose(_LastClose):
    name = "array_last_close"

    def calculate(self, candles: CandleSeries) -> Sequence[IndicatorValue]:
        skip = cast(_LastCloseConfig, self.config).skip
        closes = np.array([candle.close for candle in candles], dtype=np.float64)
        return closes[skip:]  # type: ignore[return-value]


def _candle(ts: int, close: float) -> Candle:
    return Candle(timestamp=ts, open=close, high=close + 1.0, low=close - 1.0, close=close)


def _detect_spike(
    signal: Signal,
    indicator: IndicatorEngine,
    value: IndicatorValue,
) -> Signal | None:
    if cast(float, value) > 24.0:
        return signal.emit(side=SignalSide.BUY, name="spike")
    return None


class _Harness:
    def __init__(self) -> None:
        self.symbols = InMemorySymbolRepository(clock=_FakeClock())
        self.signals = InMemorySignalRepository()
        self.registry = InMemorySignatureRegistry()
        self.hourly: MarketSymbol = self.symbols.add_symbol(
            exchange=ExchangeId(1),
            ticker=Ticker("BTCUSDT"),
            timeframe=Timeframe("1h"),
            candles=[_candle(index * _HOUR, close) for index, close in enumerate(_HOURLY)],
        )
        self.quarterly: MarketSymbol = self.symbols.add_symbol(
            exchange=ExchangeId(1),
            ticker=Ticker("BTCUSDT"),
            timeframe=Timeframe("15m"),
            candles=[
                _candle(hour * _HOUR + quarter * _QUARTER, close)
                for hour, closes in enumerate(_QUARTERS)
                for quarter, close in enumerate(closes)
            ],
        )

    def build(
        self, engine_type: type[IndicatorEngine] = _LastClose, **config: object
    ) -> IndicatorEngine:
        return engine_type(
            self.hourly,
            self.symbols.fetch_candles(symbol=self.hourly),
            {"progressive_interval": "15m", **config},
            symbol_repository=self.symbols,
            signal_repository=self.signals,
            signature_registry=self.registry,
        )


def test_progressive_engine_resolves_and_refreshes_finer_symbol() -> None:
    harness = _Harness()

    engine = harness.build()

    progressive = engine.progressive_symbol()
    assert engine.is_progressive()
    assert progressive is not None
    assert progressive.symbol_id == harness.quarterly.symbol_id
    assert harness.symbols.refreshed_symbol_ids == [harness.quarterly.symbol_id]


def test_progressive_scan_saves_at_most_one_signal_per_base_step() -> None:
    """
    Verify progressive detection stops at the first sub-candle signal of each base step.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Every 15m close of the third hour exceeds the threshold.
    Raises:
        AssertionError: If more than one signal is saved per hour or stamps are wrong.
    Side Effects:
        None.
    """
    harness = _Harness()
    engine = harness.build()

    steps = list(engine.scan(SignalDetector(name="spike", detect=_detect_spike)))

    assert [step.timestamp for step in steps] == [_HOUR, 2 * _HOUR, 3 * _HOUR]
    first, second, third = (step.signal for step in steps)
    assert first is not None
    assert first.timestamp == _HOUR + _QUARTER
    assert first.price == 25.0
    assert first.price_date == _HOUR + 2 * _QUARTER
    assert steps[0].price_date == _HOUR + 2 * _QUARTER
    assert second is not None
    assert second.timestamp == 2 * _HOUR
    assert second.price == 30.0
    assert third is None
    assert steps[2].price_date == 4 * _HOUR
    assert len(harness.signals) == 2
    assert engine.progressive_data()[_HOUR + _QUARTER] == 25.0


def test_progressive_scan_without_recalculation_reuses_base_value() -> None:
    harness = _Harness()
    engine = harness.build(recalculate=False)

    signals = [
        step.signal
        for step in engine.scan(SignalDetector(name="spike", detect=_detect_spike))
        if step.signal is not None
    ]

    assert [signal.timestamp for signal in signals] == [2 * _HOUR]
    assert signals[0].price == 30.0
    assert dict(engine.progressive_data()) == {}


def test_progressive_value_at_recalculates_sub_candle_value() -> None:
    harness = _Harness()
    engine = harness.build()

    quarterly = harness.quarterly

    assert engine.value_at(timestamp=_HOUR + 2 * _QUARTER, progressive_symbol=quarterly) == 12.0
    assert engine.value_at(timestamp=3 * _HOUR + _QUARTER, progressive_symbol=quarterly) == 6.0
    # recalculated sub-candle values take precedence over the base series
    assert engine.value_at(timestamp=_HOUR + 2 * _QUARTER) == 12.0
    assert engine.value_at(timestamp=_HOUR + 40 * 60_000) == 20.0


def test_progressive_value_at_rejects_unreachable_timestamps() -> None:
    harness = _Harness()
    engine = harness.build()

    with pytest.raises(RecalculationError) as error:
        engine.get_progressive_value(harness.quarterly, _HOUR + 7 * 60_000)
    assert error.value.timestamp == _HOUR + 7 * 60_000

    with pytest.raises(RangeError):
        engine.get_progressive_value(harness.quarterly, -1)
    with pytest.raises(ArgumentError):
        engine.value_at(progressive_symbol=harness.quarterly)
    with pytest.raises(ArgumentError):
        engine.get_progressive_value(harness.hourly, _HOUR)


def test_progressive_candles_require_finer_data_inside_base_candle() -> None:
    harness = _Harness()
    engine = harness.build()
    hourly_candles = harness.symbols.fetch_candles(symbol=harness.hourly)
    orphan = _candle(10 * _HOUR, 1.0)

    merged = list(engine.progressive_candles(harness.quarterly, hourly_candles[1], None))

    assert [candle.timestamp for candle in merged] == [
        _HOUR,
        _HOUR + _QUARTER,
        _HOUR + 2 * _QUARTER,
        _HOUR + 3 * _QUARTER,
    ]
    assert merged[-1].high == 26.0
    with pytest.raises(RangeError):
        engine.progressive_candles(harness.quarterly, orphan, None)


def test_progressive_value_at_accepts_numpy_value_series() -> None:
    harness = _Harness()
    engine = harness.build(_ArrayLastClose)

    value = engine.value_at(timestamp=_HOUR + 2 * _QUARTER, progressive_symbol=harness.quarterly)

    assert value == 12.0
    assert engine.progressive_data()[_HOUR + 2 * _QUARTER] == 12.0
