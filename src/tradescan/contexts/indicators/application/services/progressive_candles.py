from __future__ import annotations

from typing import Iterable, Iterator

from tradescan.shared_kernel.primitives import Candle


def merge_progressive_candles(candles: Iterable[Candle]) -> Iterator[Candle]:
    """
    Yield the running merged bar after every finer candle.

    Each yielded candle shows how the coarser bar would look if it closed at that finer
    candle: open of the first sub-candle, running high/low extrema, close and timestamp of
    the latest sub-candle, summed volume.

    Args:
        candles: Finer-interval candles ordered by timestamp.
    Returns:
        Iterator[Candle]: One merged candle per input candle.
    Assumptions:
        Input already lies inside `[current.timestamp, boundary)` of one base candle.
    Raises:
        None.
    Side Effects:
        None.
    """
    open_price: float | None = None
    high = 0.0
    low = 0.0
    volume = 0.0
    for candle in candles:
        if open_price is None:
            open_price = candle.open
            high = candle.high
            low = candle.low
        else:
            high = max(high, candle.high)
            low = min(low, candle.low)
        volume += candle.volume
        yield Candle(
            timestamp=candle.timestamp,
            open=open_price,
            high=high,
            low=low,
            close=candle.close,
            volume=volume,
        )


class ProgressiveCursor:
    """
    ProgressiveCursor — resumable one-pass cursor over merged sub-candles with lookahead.

    The cursor is not restartable: once advanced, earlier candles are gone.
    """

    def __init__(self, candles: Iterable[Candle]) -> None:
        self._iterator = iter(candles)
        self._pending: Candle | None = next(self._iterator, None)
        self._last: Candle | None = None

    def advance(self) -> Candle | None:
        """Return the next merged candle, or `None` when exhausted."""
        current = self._pending
        if current is None:
            return None
        self._pending = next(self._iterator, None)
        self._last = current
        return current

    def peek(self) -> Candle | None:
        """Merged candle that `advance` would return next, without consuming it."""
        return self._pending

    @property
    def last(self) -> Candle | None:
        return self._last

    @property
    def exhausted(self) -> bool:
        return self._pending is None


CursorKey = tuple[int, int | None]


class ProgressiveCursorCache:
    """
    ProgressiveCursorCache — cursors of one engine keyed by `(start_ts, end_ts)`.

    `end_ts` is `None` for the last base candle, whose boundary is not stored yet.
    The owning engine clears the cache when a scan finishes.
    """

    def __init__(self) -> None:
        self._cursors: dict[CursorKey, ProgressiveCursor] = {}

    def get(self, key: CursorKey) -> ProgressiveCursor | None:
        return self._cursors.get(key)

    def put(self, key: CursorKey, cursor: ProgressiveCursor) -> None:
        self._cursors[key] = cursor

    def clear(self) -> None:
        self._cursors.clear()

    def __len__(self) -> int:
        return len(self._cursors)

    def __contains__(self, key: object) -> bool:
        return key in self._cursors
