from __future__ import annotations

import logging
from bisect import bisect_left, bisect_right
from typing import Callable, Iterable

from tradescan.contexts.market_data.application.ports import Clock, SymbolRepository
from tradescan.contexts.market_data.domain.entities import CandleSeries, MarketSymbol
from tradescan.shared_kernel.primitives import Candle, ExchangeId, Ticker, Timeframe

log = logging.getLogger(__name__)

CandleSource = Callable[[MarketSymbol, int | None], Iterable[Candle]]


class InMemorySymbolRepository(SymbolRepository):
    """
    InMemorySymbolRepository — deterministic in-memory SymbolRepository adapter for dev/tests.

    An optional `candle_source(symbol, after_timestamp)` callable plays the exchange role:
    it supplies candles for backfills and refreshes.

    Related:
      - src/tradescan/contexts/market_data/application/ports/symbol_repository.py
      - tests/unit/contexts/market_data/adapters/test_in_memory_symbol_repository.py
    """

    def __init__(self, *, clock: Clock, candle_source: CandleSource | None = None) -> None:
        """
        Initialize empty in-memory storage.

        Args:
            clock: Clock used to stamp refreshes.
            candle_source: Optional provider of exchange candles.
        Returns:
            None.
        Assumptions:
            Adapter lifetime is process-local and non-persistent.
        Raises:
            ValueError: If clock is missing.
        Side Effects:
            Creates mutable in-memory state.
        """
        if clock is None:  # type: ignore[truthy-bool]
            raise ValueError("InMemorySymbolRepository requires clock")
        self._clock = clock
        self._candle_source = candle_source
        self._symbols: dict[int, MarketSymbol] = {}
        self._candles: dict[int, list[Candle]] = {}
        self._next_symbol_id = 1
        self.refreshed_symbol_ids: list[int] = []

    def add_symbol(
        self,
        *,
        exchange: ExchangeId,
        ticker: Ticker,
        timeframe: Timeframe,
        candles: Iterable[Candle] = (),
        last_update: int | None = None,
    ) -> MarketSymbol:
        """
        Store a symbol with its candles, as if it had been backfilled earlier.

        Args:
            exchange: Exchange identifier.
            ticker: Instrument ticker.
            timeframe: Candle interval.
            candles: Initial candles in any order.
            last_update: Freshness marker; defaults to the clock time.
        Returns:
            MarketSymbol: Stored symbol snapshot.
        Assumptions:
            `(exchange, ticker, timeframe)` is not stored yet.
        Raises:
            ValueError: If the symbol already exists or candles repeat a timestamp.
        Side Effects:
            Writes in-memory state.
        """
        if self.fetch_symbol(exchange=exchange, ticker=ticker, timeframe=timeframe) is not None:
            raise ValueError(f"symbol already stored: {exchange}:{ticker}-{timeframe}")

        symbol = MarketSymbol(
            symbol_id=self._next_symbol_id,
            exchange=exchange,
            ticker=ticker,
            timeframe=timeframe,
            last_update=self._clock.now_ms() if last_update is None else last_update,
        )
        self._next_symbol_id += 1
        ordered = sorted(candles, key=lambda candle: candle.timestamp)
        CandleSeries.of(ordered)
        self._symbols[symbol.symbol_id] = symbol
        self._candles[symbol.symbol_id] = ordered
        return symbol

    def fetch_symbol(
        self,
        *,
        exchange: ExchangeId,
        ticker: Ticker,
        timeframe: Timeframe,
    ) -> MarketSymbol | None:
        for symbol in self._symbols.values():
            if (
                symbol.exchange == exchange
                and symbol.ticker == ticker
                and symbol.timeframe == timeframe
            ):
                return symbol
        return None

    def fetch_symbol_from_exchange(
        self,
        *,
        exchange: ExchangeId,
        ticker: Ticker,
        timeframe: Timeframe,
    ) -> MarketSymbol:
        """
        Register a new symbol and backfill it from `candle_source`.

        Args:
            exchange: Exchange identifier.
            ticker: Instrument ticker.
            timeframe: Candle interval.
        Returns:
            MarketSymbol: Newly stored symbol.
        Assumptions:
            Existing symbols are returned unchanged.
        Raises:
            LookupError: If no candle source is configured.
        Side Effects:
            Writes in-memory state.
        """
        existing = self.fetch_symbol(exchange=exchange, ticker=ticker, timeframe=timeframe)
        if existing is not None:
            return existing
        if self._candle_source is None:
            raise LookupError(f"exchange cannot backfill {exchange}:{ticker}-{timeframe}")

        symbol = self.add_symbol(exchange=exchange, ticker=ticker, timeframe=timeframe)
        return self.update_candles(symbol=symbol)

    def update_candles(self, *, symbol: MarketSymbol) -> MarketSymbol:
        stored = self._require(symbol_id=symbol.symbol_id)
        candles = self._candles[stored.symbol_id]
        if self._candle_source is not None:
            after = candles[-1].timestamp if candles else None
            fresh = [
                candle
                for candle in self._candle_source(stored, after)
                if after is None or candle.timestamp > after
            ]
            candles.extend(sorted(fresh, key=lambda candle: candle.timestamp))
            log.debug(
                "in-memory candle refresh symbol=%s appended=%d",
                stored,
                len(fresh),
            )

        refreshed = stored.refreshed(last_update=self._clock.now_ms())
        self._symbols[refreshed.symbol_id] = refreshed
        self.refreshed_symbol_ids.append(refreshed.symbol_id)
        return refreshed

    def update_candles_if_older_than(
        self,
        *,
        symbol: MarketSymbol,
        max_age_seconds: int,
    ) -> MarketSymbol:
        stored = self._require(symbol_id=symbol.symbol_id)
        age_ms = self._clock.now_ms() - stored.last_update
        if max_age_seconds <= 0 or age_ms >= max_age_seconds * 1000:
            return self.update_candles(symbol=stored)
        return stored

    def fetch_candles(
        self,
        *,
        symbol: MarketSymbol,
        limit: int | None = None,
        start: int | None = None,
        end: int | None = None,
    ) -> CandleSeries:
        candles = self._candles_of(symbol_id=symbol.symbol_id)
        selected = [
            candle
            for candle in candles
            if (start is None or candle.timestamp >= start)
            and (end is None or candle.timestamp <= end)
        ]
        if limit is not None:
            selected = selected[-limit:] if limit > 0 else []
        return CandleSeries.of(selected)

    def fetch_next_candle(self, *, symbol_id: int, after_timestamp: int) -> Candle | None:
        candles = self._candles_of(symbol_id=symbol_id)
        timestamps = [candle.timestamp for candle in candles]
        index = bisect_right(timestamps, after_timestamp)
        if index < len(candles):
            return candles[index]
        return None

    def fetch_candles_between(
        self,
        *,
        symbol: MarketSymbol,
        start: int,
        end: int,
    ) -> CandleSeries:
        return self.fetch_candles(symbol=symbol, start=start, end=end)

    def fetch_candles_limit(
        self,
        *,
        symbol: MarketSymbol,
        start: int,
        limit: int,
    ) -> CandleSeries:
        candles = self._candles_of(symbol_id=symbol.symbol_id)
        timestamps = [candle.timestamp for candle in candles]
        index = bisect_left(timestamps, start)
        return CandleSeries.of(candles[index : index + max(limit, 0)])

    def get_price_date(
        self,
        *,
        from_timestamp: int,
        to_timestamp: int | None,
        symbol: MarketSymbol,
    ) -> int | None:
        stored = self._symbols.get(symbol.symbol_id, symbol)
        price_date = (
            to_timestamp
            if to_timestamp is not None
            else from_timestamp + stored.timeframe.milliseconds
        )
        if price_date > stored.last_update:
            return None
        return price_date

    def _require(self, *, symbol_id: int) -> MarketSymbol:
        stored = self._symbols.get(symbol_id)
        if stored is None:
            raise LookupError(f"unknown symbol_id={symbol_id}")
        return stored

    def _candles_of(self, *, symbol_id: int) -> list[Candle]:
        self._require(symbol_id=symbol_id)
        return self._candles[symbol_id]
