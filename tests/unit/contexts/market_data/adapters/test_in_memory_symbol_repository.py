from __future__ import annotations

from typing import Iterable

import pytest

from tradescan.contexts.market_data.adapters import InMemorySymbolRepository
from tradescan.contexts.market_data.domain.entities import MarketSymbol
from tradescan.shared_kernel.primitives import Candle, ExchangeId, Ticker, Timeframe

_MINUTE = 60_000


class _FakeClock:
    def __init__(self, now_ms: int) -> None:
        self.now = now_ms

    def now_ms(self) -> int:
        return self.now


def _candle(ts: int, close: float = 10.0) -> Candle:
    return Candle(timestamp=ts, open=close, high=close, low=close, close=close)


def _add_minute_symbol(
    repository: InMemorySymbolRepository,
    *,
    count: int,
    last_update: int | None = None,
) -> MarketSymbol:
    return repository.add_symbol(
        exchange=ExchangeId(1),
        ticker=Ticker("ETHUSDT"),
        timeframe=Timeframe("1m"),
        candles=[_candle(index * _MINUTE, close=float(index)) for index in range(count)],
        last_update=last_update,
    )


def test_in_memory_symbol_repository_stores_and_fetches_symbols() -> None:
    repository = InMemorySymbolRepository(clock=_FakeClock(1_000))

    symbol = _add_minute_symbol(repository, count=3)

    assert symbol.symbol_id == 1
    assert symbol.last_update == 1_000
    assert (
        repository.fetch_symbol(
            exchange=ExchangeId(1),
            ticker=Ticker("ethusdt"),
            timeframe=Timeframe("1m"),
        )
        == symbol
    )
    assert (
        repository.fetch_symbol(
            exchange=ExchangeId(1),
            ticker=Ticker("ETHUSDT"),
            timeframe=Timeframe("5m"),
        )
        is None
    )
    with pytest.raises(ValueError):
        _add_minute_symbol(repository, count=1)


def test_in_memory_symbol_repository_fetch_candles_applies_range_and_limit() -> None:
    repository = InMemorySymbolRepository(clock=_FakeClock(0))
    symbol = _add_minute_symbol(repository, count=10)

    assert len(repository.fetch_candles(symbol=symbol)) == 10
    assert repository.fetch_candles(symbol=symbol, limit=3).timestamps() == (
        7 * _MINUTE,
        8 * _MINUTE,
        9 * _MINUTE,
    )
    assert repository.fetch_candles(
        symbol=symbol,
        start=2 * _MINUTE,
        end=4 * _MINUTE,
    ).timestamps() == (2 * _MINUTE, 3 * _MINUTE, 4 * _MINUTE)
    assert repository.fetch_candles_limit(
        symbol=symbol,
        start=_MINUTE + 1,
        limit=2,
    ).timestamps() == (2 * _MINUTE, 3 * _MINUTE)
    last = repository.fetch_next_candle(symbol_id=symbol.symbol_id, after_timestamp=9 * _MINUTE)
    assert last is None
    next_candle = repository.fetch_next_candle(symbol_id=symbol.symbol_id, after_timestamp=0)
    assert next_candle is not None
    assert next_candle.timestamp == _MINUTE


def test_in_memory_symbol_repository_refresh_appends_source_candles() -> None:
    """
    Verify refresh pulls only newer candles from the source and stamps `last_update`.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Source may repeat candles that are already stored.
    Raises:
        AssertionError: If refresh duplicates candles or misses the clock stamp.
    Side Effects:
        None.
    """
    clock = _FakeClock(5_000)
    calls: list[int | None] = []

    def _source(symbol: MarketSymbol, after: int | None) -> Iterable[Candle]:
        calls.append(after)
        return [_candle(index * _MINUTE) for index in range(5)]

    repository = InMemorySymbolRepository(clock=clock, candle_source=_source)
    symbol = _add_minute_symbol(repository, count=3, last_update=0)

    clock.now = 9_000
    refreshed = repository.update_candles(symbol=symbol)

    assert calls == [2 * _MINUTE]
    assert refreshed.last_update == 9_000
    assert len(repository.fetch_candles(symbol=refreshed)) == 5
    assert repository.refreshed_symbol_ids == [symbol.symbol_id]


def test_in_memory_symbol_repository_refreshes_only_stale_symbols() -> None:
    clock = _FakeClock(100_000)
    repository = InMemorySymbolRepository(clock=clock)
    symbol = _add_minute_symbol(repository, count=1, last_update=90_000)

    fresh = repository.update_candles_if_older_than(symbol=symbol, max_age_seconds=60)
    assert fresh.last_update == 90_000
    assert repository.refreshed_symbol_ids == []

    clock.now = 150_000
    stale = repository.update_candles_if_older_than(symbol=symbol, max_age_seconds=60)
    assert stale.last_update == 150_000
    assert repository.refreshed_symbol_ids == [symbol.symbol_id]


def test_in_memory_symbol_repository_backfills_from_exchange_only_with_source() -> None:
    repository = InMemorySymbolRepository(clock=_FakeClock(0))

    with pytest.raises(LookupError):
        repository.fetch_symbol_from_exchange(
            exchange=ExchangeId(2),
            ticker=Ticker("SOLUSDT"),
            timeframe=Timeframe("1m"),
        )

    sourced = InMemorySymbolRepository(
        clock=_FakeClock(0),
        candle_source=lambda symbol, after: [_candle(0), _candle(_MINUTE)],
    )
    symbol = sourced.fetch_symbol_from_exchange(
        exchange=ExchangeId(2),
        ticker=Ticker("SOLUSDT"),
        timeframe=Timeframe("1m"),
    )

    assert len(sourced.fetch_candles(symbol=symbol)) == 2
    assert (
        sourced.fetch_symbol_from_exchange(
            exchange=ExchangeId(2),
            ticker=Ticker("SOLUSDT"),
            timeframe=Timeframe("1m"),
        )
        == symbol
    )


def test_in_memory_symbol_repository_price_date_requires_fresh_data() -> None:
    repository = InMemorySymbolRepository(clock=_FakeClock(0))
    symbol = _add_minute_symbol(repository, count=1, last_update=10 * _MINUTE)

    assert (
        repository.get_price_date(from_timestamp=_MINUTE, to_timestamp=None, symbol=symbol)
        == 2 * _MINUTE
    )
    assert (
        repository.get_price_date(from_timestamp=0, to_timestamp=5 * _MINUTE, symbol=symbol)
        == 5 * _MINUTE
    )
    assert (
        repository.get_price_date(from_timestamp=10 * _MINUTE, to_timestamp=None, symbol=symbol)
        is None
    )
