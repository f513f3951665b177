from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Iterable, Iterator, overload

from tradescan.shared_kernel.primitives import Candle


@dataclass(frozen=True, slots=True)
class PrevNextCandles:
    """
    Base-resolution candle pair straddling a timestamp.

    `prev` is the last candle opened at or before the timestamp, `next` the first one
    opened after it. Indexes point into the owning `CandleSeries`.
    """

    prev: Candle | None
    next: Candle | None
    prev_index: int | None
    next_index: int | None


@dataclass(frozen=True, slots=True)
class CandleSeries:
    """
    CandleSeries — ordered OHLCV bars of one symbol and interval.

    Related:
      - src/tradescan/shared_kernel/primitives/candle.py
      - src/tradescan/contexts/indicators/application/services/indicator_engine.py
      - tests/unit/contexts/market_data/domain/test_candle_series.py
    """

    candles: tuple[Candle, ...] = ()
    _timestamps: tuple[int, ...] = field(init=False, repr=False, compare=False)
    _positions: dict[int, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """
        Freeze candles into a tuple and validate timestamp order.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Callers fetch contiguous ranges; gaps are not repaired here.
        Raises:
            ValueError: If timestamps are not strictly increasing.
        Side Effects:
            Builds timestamp lookup tables.
        """
        candles = tuple(self.candles)
        timestamps = tuple(candle.timestamp for candle in candles)
        for previous, current in zip(timestamps, timestamps[1:]):
            if current <= previous:
                raise ValueError(
                    "CandleSeries requires strictly increasing timestamps, "
                    f"got {previous} followed by {current}"
                )
        object.__setattr__(self, "candles", candles)
        object.__setattr__(self, "_timestamps", timestamps)
        object.__setattr__(
            self,
            "_positions",
            {timestamp: index for index, timestamp in enumerate(timestamps)},
        )

    @classmethod
    def of(cls, candles: Iterable[Candle]) -> CandleSeries:
        return cls(candles=tuple(candles))

    def __len__(self) -> int:
        return len(self.candles)

    def __iter__(self) -> Iterator[Candle]:
        return iter(self.candles)

    def __bool__(self) -> bool:
        return bool(self.candles)

    @overload
    def __getitem__(self, index: int) -> Candle: ...

    @overload
    def __getitem__(self, index: slice) -> CandleSeries: ...

    def __getitem__(self, index: int | slice) -> Candle | CandleSeries:
        if isinstance(index, slice):
            return CandleSeries(candles=self.candles[index])
        return self.candles[index]

    def timestamps(self) -> tuple[int, ...]:
        return self._timestamps

    def first(self) -> Candle | None:
        return self.candles[0] if self.candles else None

    def last(self) -> Candle | None:
        return self.candles[-1] if self.candles else None

    def get(self, index: int) -> Candle | None:
        """Candle at a non-negative index, or `None` when out of range."""
        if 0 <= index < len(self.candles):
            return self.candles[index]
        return None

    def index_of(self, timestamp: int) -> int | None:
        return self._positions.get(timestamp)

    def find(self, timestamp: int) -> Candle | None:
        index = self._positions.get(timestamp)
        if index is None:
            return None
        return self.candles[index]

    def find_prev_next(self, timestamp: int) -> PrevNextCandles:
        """
        Locate the candle pair straddling `timestamp`.

        Args:
            timestamp: Epoch milliseconds, usually a finer-interval candle open time.
        Returns:
            PrevNextCandles: `prev` opened at or before `timestamp`, `next` opened after it.
        Assumptions:
            Either side is `None` when `timestamp` lies outside the series.
        Raises:
            None.
        Side Effects:
            None.
        """
        next_index = bisect_right(self._timestamps, timestamp)
        prev_index = next_index - 1
        prev = self.candles[prev_index] if prev_index >= 0 else None
        nxt = self.candles[next_index] if next_index < len(self.candles) else None
        return PrevNextCandles(
            prev=prev,
            next=nxt,
            prev_index=prev_index if prev is not None else None,
            next_index=next_index if nxt is not None else None,
        )

    def previous_candles(self, count: int, before_index: int) -> CandleSeries:
        """
        Return up to `count` candles immediately preceding `before_index`.

        The candle at `before_index` itself is excluded.
        """
        if count <= 0 or before_index <= 0:
            return CandleSeries()
        start = max(0, before_index - count)
        return CandleSeries(candles=self.candles[start:before_index])

    def appended(self, candle: Candle) -> CandleSeries:
        """Return a new series with `candle` added after the current tail."""
        return CandleSeries(candles=self.candles + (candle,))

    def tail(self, count: int) -> CandleSeries:
        if count <= 0:
            return CandleSeries()
        return CandleSeries(candles=self.candles[-count:])
