from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from bisect import bisect_right
from dataclasses import replace
from types import MappingProxyType
from typing import Any, ClassVar, Iterator, Mapping, Sequence

from tradescan.contexts.indicators.application.ports import SignalRepository
from tradescan.contexts.indicators.domain.entities import (
    IndicatorConfig,
    IndicatorValue,
    ScanStep,
    Signal,
    bind_value,
)
from tradescan.contexts.market_data.application.ports import SymbolRepository
from tradescan.contexts.market_data.domain.entities import CandleSeries, MarketSymbol
from tradescan.contexts.signatures.application.ports import SignatureRegistry
from tradescan.contexts.signatures.domain.entities import Signature
from tradescan.platform.config import EngineRuntimeConfig
from tradescan.platform.errors import (
    ArgumentError,
    ConfigurationError,
    LogicError,
    RangeError,
    RecalculationError,
)
from tradescan.shared_kernel.primitives import Candle

from .progressive_candles import (
    ProgressiveCursor,
    ProgressiveCursorCache,
    merge_progressive_candles,
)
from .scan_state import ScanState
from .signal_detector import SignalDetector, verify_signal_detector

log = logging.getLogger(__name__)


class IndicatorEngine(ABC):
    """
    IndicatorEngine — one indicator computed over one symbol candle window.

    The engine computes its value series once at construction, optionally recomputes values
    at a finer interval (progressive mode) and walks the series as a cursor for signal
    detection. Values align to the tail of the candle window; the leading `gap` candles are
    the warm-up period.

    Subclasses set `name`, `config_type`, optionally `version`, and implement `calculate`.

    Related:
      - src/tradescan/contexts/indicators/adapters/outbound/catalog/
      - src/tradescan/contexts/indicators/application/services/progressive_candles.py
      - src/tradescan/contexts/indicators/application/services/signal_detector.py
      - tests/unit/contexts/indicators/application/test_indicator_engine.py
    """

    name: ClassVar[str] = ""
    version: ClassVar[str] = "1"
    config_type: ClassVar[type[IndicatorConfig]] = IndicatorConfig

    def __init__(
        self,
        symbol: MarketSymbol,
        candles: CandleSeries,
        config: IndicatorConfig | Mapping[str, Any] | None = None,
        *,
        symbol_repository: SymbolRepository,
        signal_repository: SignalRepository,
        signature_registry: SignatureRegistry,
        runtime_config: EngineRuntimeConfig | None = None,
    ) -> None:
        """
        Build config, register the engine signature and compute the value series.

        Args:
            symbol: Symbol the candle window belongs to.
            candles: Candle window, possibly empty.
            config: Typed config or plain mapping over `config_type` defaults.
            symbol_repository: Candle storage used by progressive recalculation.
            signal_repository: Storage for detected signals.
            signature_registry: Registry producing engine and detector signatures.
            runtime_config: Engine runtime settings; defaults apply when omitted.
        Returns:
            None.
        Assumptions:
            `calculate` is a pure function of its window and config.
        Raises:
            ConfigurationError: If config is invalid, the progressive interval is not finer
                than the symbol interval, or `calculate` returns more values than candles.
        Side Effects:
            Registers one signature; may fetch and refresh the progressive symbol.
        """
        if not self.name:
            raise ConfigurationError(f"{type(self).__name__} must define a name")
        if symbol_repository is None:  # type: ignore[truthy-bool]
            raise ValueError(f"{type(self).__name__} requires symbol_repository")
        if signal_repository is None:  # type: ignore[truthy-bool]
            raise ValueError(f"{type(self).__name__} requires signal_repository")
        if signature_registry is None:  # type: ignore[truthy-bool]
            raise ValueError(f"{type(self).__name__} requires signature_registry")

        self._symbol = symbol
        self._candles = candles
        self._config = self._build_config(config)
        self._symbol_repository = symbol_repository
        self._signal_repository = signal_repository
        self._signature_registry = signature_registry
        self._runtime_config = runtime_config or EngineRuntimeConfig()

        self._signature = signature_registry.register(
            payload={
                "indicator": self.name,
                "config": self._config.to_json(),
                "contents": self.contents(),
            }
        )
        self._progressive_symbol = self._load_progressive_symbol()

        self._progressive_data: dict[int, IndicatorValue] = {}
        self._cursors = ProgressiveCursorCache()
        self._signals: list[Signal] = []
        self._scan_state: ScanState | None = None
        self._gap = 0
        self._data: dict[int, IndicatorValue] = {}

        if len(candles):
            values = list(self.calculate(candles))
            self._gap = len(candles) - len(values)
            if self._gap < 0:
                raise ConfigurationError(
                    f"{self.name} data count cannot exceed the candle count."
                )
            self._data = dict(zip(candles.timestamps()[self._gap :], values))
        self._timestamps = list(self._data)

        log.debug(
            "indicator computed name=%s alias=%s symbol=%s candles=%d values=%d gap=%d "
            "progressive=%s",
            self.name,
            self.alias,
            symbol,
            len(candles),
            len(self._data),
            self._gap,
            self._progressive_symbol is not None,
        )

    @classmethod
    def contents(cls) -> str:
        """Stable computation identity hashed into the engine signature."""
        return f"{cls.__module__}.{cls.__qualname__}@{cls.version}"

    @abstractmethod
    def calculate(self, candles: CandleSeries) -> Sequence[IndicatorValue]:
        """
        Compute indicator values over `candles`.

        Must be pure: it is re-invoked over small windows during progressive
        recalculation. Returns at most `len(candles)` values aligned to the window tail.
        """

    @property
    def config(self) -> IndicatorConfig:
        return self._config

    @property
    def alias(self) -> str:
        return self._config.alias or self.name

    @property
    def gap(self) -> int:
        return self._gap

    def symbol(self) -> MarketSymbol:
        return self._symbol

    def signature(self) -> Signature:
        return self._signature

    def candles(self) -> CandleSeries:
        return self._candles

    def data(self) -> Mapping[int, IndicatorValue]:
        """Read-only value series keyed by candle timestamp."""
        return MappingProxyType(self._data)

    def signals(self) -> tuple[Signal, ...]:
        """Signals saved by scans of this engine, in detection order."""
        return tuple(self._signals)

    def has_data(self) -> bool:
        return bool(self._data)

    def is_progressive(self) -> bool:
        return self._progressive_symbol is not None

    def progressive_symbol(self) -> MarketSymbol | None:
        return self._progressive_symbol

    def progressive_data(self) -> Mapping[int, IndicatorValue]:
        """Read-only values recomputed at sub-candle timestamps."""
        return MappingProxyType(self._progressive_data)

    def bindable(self) -> list[str]:
        """Field names of mapping values, or the indicator name for scalar values."""
        if self._data:
            first = next(iter(self._data.values()))
            if isinstance(first, Mapping):
                return list(first.keys())
        return [self.name]

    def value_at(
        self,
        bind: str | None = None,
        timestamp: int | None = None,
        progressive_symbol: MarketSymbol | None = None,
    ) -> float | None:
        """
        Resolve one bindable value.

        Args:
            bind: Field name for mapping values; ignored for scalar values.
            timestamp: Lookup timestamp; the current scan value is used when omitted.
            progressive_symbol: Finer-interval symbol enabling progressive lookup.
        Returns:
            float | None: Value, or `None` when no value precedes `timestamp`.
        Assumptions:
            Without exact match the closest preceding value is used.
        Raises:
            ArgumentError: If progressive lookup arguments are inconsistent.
            LogicError: If no timestamp is given outside a scan.
            RecalculationError: If progressive recalculation cannot reach `timestamp`.
        Side Effects:
            May fetch finer candles and fill progressive data.
        """
        if (
            progressive_symbol is None
            or progressive_symbol.timeframe == self._symbol.timeframe
            or not self._config.recalculate
        ):
            if timestamp is not None:
                return bind_value(self._equal_or_closest_value(timestamp), bind)
            return bind_value(self.current(), bind)

        if timestamp is None:
            raise ArgumentError("Progressive lookup requires a timestamp")
        return bind_value(self.get_progressive_value(progressive_symbol, timestamp), bind)

    def get_progressive_value(
        self,
        progressive_symbol: MarketSymbol,
        timestamp: int,
    ) -> IndicatorValue:
        """
        Recompute the value at a sub-candle timestamp.

        Args:
            progressive_symbol: Same instrument at a different interval.
            timestamp: Sub-candle open time.
        Returns:
            IndicatorValue: Value recomputed over the merged bar ending at `timestamp`.
        Assumptions:
            Cursors are reused per `(prev, next)` base candle pair until the scan ends.
        Raises:
            ArgumentError: If symbol identity differs or the interval is the same.
            RangeError: If no base candle precedes `timestamp` or finer candles are missing.
            RecalculationError: If the merged sequence ends before reaching `timestamp`.
        Side Effects:
            Fills progressive data; may fetch finer candles.
        """
        self._assert_same_symbol_different_interval(progressive_symbol)

        cached = self._progressive_data.get(timestamp)
        if cached is not None:
            return cached

        around = self._candles.find_prev_next(timestamp)
        if around.prev is None or around.prev_index is None:
            raise RangeError(f"No {self._symbol} candle opened at or before {timestamp}")

        key = (around.prev.timestamp, around.next.timestamp if around.next else None)
        cursor = self._cursors.get(key)
        if cursor is None:
            cursor = ProgressiveCursor(
                self.progressive_candles(progressive_symbol, around.prev, around.next)
            )
            self._cursors.put(key, cursor)

        while True:
            candle = cursor.advance()
            if candle is None:
                break
            value = self._recalculate_progressively(around.prev_index, candle)
            if candle.timestamp == timestamp:
                return value

        raise RecalculationError(timestamp=timestamp)

    def progressive_candles(
        self,
        progressive_symbol: MarketSymbol,
        current: Candle,
        next: Candle | None,
    ) -> Iterator[Candle]:
        """
        Fetch finer candles inside `[current.timestamp, boundary)` and merge them lazily.

        Args:
            progressive_symbol: Finer-interval symbol to read.
            current: Base candle being replayed.
            next: Following base candle; looked up in storage when omitted.
        Returns:
            Iterator[Candle]: Running merged bar per finer candle.
        Assumptions:
            Without a stored boundary candle the bar closes after one base interval and
            at most `progressive_fetch_limit` finer candles are read.
        Raises:
            RangeError: If the fetched range is empty or leaves the expected bounds.
        Side Effects:
            Reads candle storage.
        """
        boundary = next
        if boundary is None:
            boundary = self._symbol_repository.fetch_next_candle(
                symbol_id=self._symbol.symbol_id,
                after_timestamp=current.timestamp,
            )

        if boundary is not None:
            end = boundary.timestamp
            fetched = list(
                self._symbol_repository.fetch_candles_between(
                    symbol=progressive_symbol,
                    start=current.timestamp,
                    end=end,
                )
            )
            if fetched and fetched[-1].timestamp >= end:
                fetched.pop()
        else:
            end = current.timestamp + self._symbol.timeframe.milliseconds
            fetched = [
                candle
                for candle in self._symbol_repository.fetch_candles_limit(
                    symbol=progressive_symbol,
                    start=current.timestamp,
                    limit=self._runtime_config.progressive_fetch_limit,
                )
                if candle.timestamp < end
            ]

        if not fetched:
            raise RangeError(
                f"Progressive candles are missing for {progressive_symbol} "
                f"in [{current.timestamp}, {end})"
            )
        if fetched[0].timestamp < current.timestamp or fetched[-1].timestamp >= end:
            raise RangeError("Progressive candles are not properly ranged.")

        return merge_progressive_candles(fetched)

    def current(self) -> IndicatorValue:
        state = self._require_scan_state()
        return self._data[state.current]

    def prev(self) -> IndicatorValue | None:
        state = self._require_scan_state()
        if state.prev is None:
            return None
        return self._data[state.prev]

    def next(self) -> IndicatorValue | None:
        state = self._require_scan_state()
        if state.next is None:
            return None
        return self._data[state.next]

    def scan_state(self) -> ScanState | None:
        return self._scan_state

    def price(self) -> float:
        """Close of the current candle, or of the merged sub-candle in progressive mode."""
        return float(self.candle().close)

    def candle(self, offset: int = 0, timestamp: int | None = None) -> Candle:
        """
        Access the scan candle, shifted by `offset`, or the candle at `timestamp`.

        Args:
            offset: Base candle offset from the current step; negative looks back.
            timestamp: Exact candle timestamp; works outside scans.
        Returns:
            Candle: Matching candle; the merged sub-candle in progressive mode at offset 0.
        Assumptions:
            Offsets are relative to the current value index plus the gap.
        Raises:
            LogicError: If no candle matches or the cursor is outside a scan.
        Side Effects:
            None.
        """
        if timestamp is not None:
            found = self._candles.find(timestamp)
            if found is None:
                raise LogicError(f"Candle for timestamp {timestamp} not found.")
            return found

        state = self._require_scan_state()
        if offset == 0 and state.progressing_candle is not None:
            return state.progressing_candle

        position = state.index + self._gap + offset
        found = self._candles.get(position)
        if found is None:
            raise LogicError(f"Candle offset {offset} is outside the window at step {state.index}")
        if offset == 0 and found.timestamp != state.current:
            raise LogicError(f"Expected timestamp: {state.current}, given: {found.timestamp}")
        return found

    def scan(self, detector: SignalDetector | None = None) -> Iterator[ScanStep]:
        """
        Walk the value series, one step per value, optionally detecting signals.

        Args:
            detector: Detection callback; without it every step yields a null signal.
        Returns:
            Iterator[ScanStep]: Lazy steps in timestamp order.
        Assumptions:
            At most one signal is saved per base step, even in progressive mode.
        Raises:
            ArgumentError: If the detector contract is violated; raised before any step.
        Side Effects:
            Registers the detector signature; saves detected signals while iterating.
        """
        detector_signature = None
        if detector is not None:
            verify_signal_detector(detector)
            detector_signature = self._signature_registry.register(
                payload={
                    "config": self._config.to_json(),
                    "detector": detector.identity,
                }
            )
        return self._scan_steps(detector, detector_signature)

    def _scan_steps(
        self,
        detector: SignalDetector | None,
        detector_signature: Signature | None,
    ) -> Iterator[ScanStep]:
        template: Signal | None = None
        if detector_signature is not None:
            template = Signal(
                symbol_id=self._symbol.symbol_id,
                indicator_signature=self._signature,
                detector_signature=detector_signature,
            )

        timestamps = self._timestamps
        detected = 0
        try:
            for index, timestamp in enumerate(timestamps):
                next_timestamp = timestamps[index + 1] if index + 1 < len(timestamps) else None
                self._scan_state = ScanState(
                    index=index,
                    current=timestamp,
                    prev=timestamps[index - 1] if index > 0 else None,
                    next=next_timestamp,
                )

                if detector is None or template is None:
                    yield ScanStep(signal=None, timestamp=timestamp, price_date=None)
                    continue

                if self._progressive_symbol is not None:
                    found, signal_timestamp, price_date = self._detect_progressively(
                        detector, template, index
                    )
                else:
                    found = self._detect(detector, template, self._data[timestamp])
                    signal_timestamp = timestamp
                    price_date = self._symbol_repository.get_price_date(
                        from_timestamp=timestamp,
                        to_timestamp=next_timestamp,
                        symbol=self._symbol,
                    )

                saved = None
                if found is not None:
                    price = found.price if found.price is not None else self.price()
                    saved = self._save_signal(
                        found.stamped(
                            timestamp=signal_timestamp,
                            price=price,
                            price_date=price_date,
                        )
                    )
                    detected += 1
                elif self._progressive_symbol is not None:
                    price_date = self._symbol_repository.get_price_date(
                        from_timestamp=timestamp,
                        to_timestamp=next_timestamp,
                        symbol=self._symbol,
                    )

                yield ScanStep(signal=saved, timestamp=timestamp, price_date=price_date)
        finally:
            self._scan_state = None
            self._cursors.clear()
            log.debug(
                "indicator scan finished name=%s alias=%s symbol=%s steps=%d signals=%d",
                self.name,
                self.alias,
                self._symbol,
                len(timestamps),
                detected,
            )

    def _detect_progressively(
        self,
        detector: SignalDetector,
        template: Signal,
        index: int,
    ) -> tuple[Signal | None, int, int | None]:
        progressive_symbol = self._progressive_symbol
        if progressive_symbol is None:
            raise LogicError("Indicator is not progressive.")
        state = self._require_scan_state()
        start_index = index + self._gap
        current_candle = self._candles[start_index]
        next_candle = self._candles.get(start_index + 1)
        value = self._data[state.current]

        cursor = ProgressiveCursor(
            self.progressive_candles(progressive_symbol, current_candle, next_candle)
        )
        while True:
            candle = cursor.advance()
            if candle is None:
                break
            self._scan_state = replace(state, progressing_candle=candle)
            if self._config.recalculate:
                value = self._recalculate_progressively(start_index, candle)

            found = self._detect(detector, template, value)
            if found is not None:
                following = cursor.peek()
                price_date = self._symbol_repository.get_price_date(
                    from_timestamp=candle.timestamp,
                    to_timestamp=(
                        following.timestamp
                        if following is not None
                        else next_candle.timestamp if next_candle is not None else None
                    ),
                    symbol=progressive_symbol,
                )
                return found, candle.timestamp, price_date

        return None, state.current, None

    def _detect(
        self,
        detector: SignalDetector,
        template: Signal,
        value: IndicatorValue,
    ) -> Signal | None:
        found = detector(signal=template, indicator=self, value=value)
        if found is not None and not isinstance(found, Signal):
            raise ArgumentError(
                f"Detector {detector.identity} returned {type(found).__name__}, expected Signal"
            )
        if found is not None and found.is_template:
            raise ArgumentError(f"Detector {detector.identity} returned an unemitted signal")
        return found

    def _save_signal(self, signal: Signal) -> Signal:
        saved = self._signal_repository.save_unique(signal=signal)
        self._signals.append(saved)
        log.debug(
            "signal saved indicator=%s symbol=%s name=%s side=%s timestamp=%s",
            self.alias,
            self._symbol,
            saved.name,
            saved.side.value if saved.side else None,
            saved.timestamp,
        )
        return saved

    def _recalculate_progressively(self, start_index: int, candle: Candle) -> IndicatorValue:
        window = self._candles.previous_candles(self._gap, start_index).appended(candle)
        values = self.calculate(window)
        if len(values) == 0:
            raise LogicError("Recalculation resulted in zero values. Expected at least one.")
        value = values[-1]
        self._progressive_data[candle.timestamp] = value
        return value

    def _equal_or_closest_value(self, timestamp: int) -> IndicatorValue | None:
        exact = self._progressive_data.get(timestamp)
        if exact is None:
            exact = self._data.get(timestamp)
        if exact is not None:
            return exact

        position = bisect_right(self._timestamps, timestamp)
        if position == 0:
            return None
        return self._data[self._timestamps[position - 1]]

    def _require_scan_state(self) -> ScanState:
        if self._scan_state is None:
            raise LogicError("Indicator is not in a loop.")
        return self._scan_state

    def _assert_same_symbol_different_interval(self, symbol: MarketSymbol) -> None:
        if not symbol.same_instrument(self._symbol):
            raise ArgumentError(
                f"Symbol {symbol} does not match the exchange and ticker of {self._symbol}"
            )
        if symbol.timeframe == self._symbol.timeframe:
            raise ArgumentError(
                f"Symbol {symbol} interval should differ from {self._symbol.timeframe}"
            )

    def _build_config(self, config: IndicatorConfig | Mapping[str, Any] | None) -> IndicatorConfig:
        if isinstance(config, IndicatorConfig):
            if not isinstance(config, self.config_type):
                raise ConfigurationError(
                    f"{self.name} expects {self.config_type.__name__}, "
                    f"got {type(config).__name__}"
                )
            return config
        return self.config_type.from_mapping(config)

    def _load_progressive_symbol(self) -> MarketSymbol | None:
        interval = self._config.progressive_interval
        if interval is None:
            return None
        if not interval.is_finer_than(self._symbol.timeframe):
            raise ConfigurationError(
                f"{self.name} progressive_interval {interval} must be finer than "
                f"{self._symbol.timeframe}"
            )

        repository = self._symbol_repository
        progressive = repository.fetch_symbol(
            exchange=self._symbol.exchange,
            ticker=self._symbol.ticker,
            timeframe=interval,
        )
        if progressive is None:
            progressive = repository.fetch_symbol_from_exchange(
                exchange=self._symbol.exchange,
                ticker=self._symbol.ticker,
                timeframe=interval,
            )
        return repository.update_candles_if_older_than(
            symbol=progressive,
            max_age_seconds=(self._symbol.last_update - progressive.last_update) // 1000,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(alias={self.alias!r}, symbol={self._symbol})"
