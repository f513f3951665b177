from __future__ import annotations

from typing import Protocol

from tradescan.contexts.market_data.domain.entities import CandleSeries, MarketSymbol
from tradescan.shared_kernel.primitives import Candle, ExchangeId, Ticker, Timeframe


class SymbolRepository(Protocol):
    """
    SymbolRepository — storage port for tracked symbols and their candles.

    The indicator engine depends on it for progressive recomputation (finer candles,
    boundary candles, price dates); the strategy composer for candle windows.

    Related:
      - src/tradescan/contexts/market_data/adapters/outbound/persistence/in_memory/
        symbol_repository.py
      - src/tradescan/contexts/indicators/application/services/indicator_engine.py
      - src/tradescan/contexts/strategy/application/services/strategy_composer.py
    """

    def fetch_symbol(
        self,
        *,
        exchange: ExchangeId,
        ticker: Ticker,
        timeframe: Timeframe,
    ) -> MarketSymbol | None:
        """
        Resolve a stored symbol series.

        Args:
            exchange: Exchange identifier.
            ticker: Instrument ticker.
            timeframe: Candle interval.
        Returns:
            MarketSymbol | None: Stored symbol or `None` when it is not tracked.
        Assumptions:
            `(exchange, ticker, timeframe)` is unique in storage.
        Raises:
            None.
        Side Effects:
            Reads storage.
        """
        ...

    def fetch_symbol_from_exchange(
        self,
        *,
        exchange: ExchangeId,
        ticker: Ticker,
        timeframe: Timeframe,
    ) -> MarketSymbol:
        """
        Register and backfill a symbol series that is not stored yet.

        Args:
            exchange: Exchange identifier.
            ticker: Instrument ticker.
            timeframe: Candle interval.
        Returns:
            MarketSymbol: Newly tracked symbol.
        Assumptions:
            Backfill policy belongs to the implementation.
        Raises:
            LookupError: If the exchange does not list the instrument.
        Side Effects:
            Writes symbol and candle rows.
        """
        ...

    def update_candles(self, *, symbol: MarketSymbol) -> MarketSymbol:
        """
        Refresh candles of `symbol` up to now.

        Args:
            symbol: Symbol to refresh.
        Returns:
            MarketSymbol: Symbol snapshot with updated `last_update`.
        Assumptions:
            Retry policy for missing ranges lives in the implementation.
        Raises:
            None.
        Side Effects:
            Writes candle rows.
        """
        ...

    def update_candles_if_older_than(
        self,
        *,
        symbol: MarketSymbol,
        max_age_seconds: int,
    ) -> MarketSymbol:
        """
        Refresh candles only when the last update is older than `max_age_seconds`.

        Args:
            symbol: Symbol to refresh.
            max_age_seconds: Accepted staleness in seconds.
        Returns:
            MarketSymbol: Fresh symbol snapshot (possibly unchanged).
        Assumptions:
            Non-positive age always triggers a refresh.
        Raises:
            None.
        Side Effects:
            May write candle rows.
        """
        ...

    def fetch_candles(
        self,
        *,
        symbol: MarketSymbol,
        limit: int | None = None,
        start: int | None = None,
        end: int | None = None,
    ) -> CandleSeries:
        """
        Fetch a contiguous candle window.

        Args:
            symbol: Symbol to read.
            limit: Optional maximum count; the latest candles win.
            start: Optional inclusive lower timestamp bound.
            end: Optional inclusive upper timestamp bound.
        Returns:
            CandleSeries: Ordered candles.
        Assumptions:
            Window may be empty.
        Raises:
            None.
        Side Effects:
            Reads storage.
        """
        ...

    def fetch_next_candle(self, *, symbol_id: int, after_timestamp: int) -> Candle | None:
        """
        Return the first candle of `symbol_id` opened strictly after `after_timestamp`.
        """
        ...

    def fetch_candles_between(
        self,
        *,
        symbol: MarketSymbol,
        start: int,
        end: int,
    ) -> CandleSeries:
        """
        Return candles with `start <= timestamp <= end`.
        """
        ...

    def fetch_candles_limit(
        self,
        *,
        symbol: MarketSymbol,
        start: int,
        limit: int,
    ) -> CandleSeries:
        """
        Return at most `limit` candles opened at or after `start`.
        """
        ...

    def get_price_date(
        self,
        *,
        from_timestamp: int,
        to_timestamp: int | None,
        symbol: MarketSymbol,
    ) -> int | None:
        """
        Resolve the execution price date of a signal raised inside `[from, to)`.

        Args:
            from_timestamp: Open time of the step that raised the signal.
            to_timestamp: Open time of the following step, if known.
            symbol: Symbol whose interval defines the step length.
        Returns:
            int | None: Epoch milliseconds, or `None` while the step is still open.
        Assumptions:
            Signals are executable once the raising step closes.
        Raises:
            None.
        Side Effects:
            None.
        """
        ...
