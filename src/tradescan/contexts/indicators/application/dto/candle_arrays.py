from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from tradescan.contexts.market_data.domain.entities import CandleSeries


@dataclass(frozen=True, slots=True)
class CandleArrays:
    """
    Dense float64 candle arrays consumed by numpy indicator kernels.

    Related: ...adapters.outbound.compute_numpy, ...adapters.outbound.catalog
    """

    ts_open: np.ndarray
    open: np.ndarray
    high: np.ndarray
    low: np.ndarray
    close: np.ndarray
    volume: np.ndarray

    def __post_init__(self) -> None:
        """
        Validate array contracts for dense OHLCV transport.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            All arrays represent the same timeline and are aligned by index.
        Raises:
            ValueError: If array shape, dtype, length, or ordering invariants are violated.
        Side Effects:
            None.
        """
        length = self._validate_array("ts_open", self.ts_open, np.int64, None)
        self._validate_array("open", self.open, np.float64, length)
        self._validate_array("high", self.high, np.float64, length)
        self._validate_array("low", self.low, np.float64, length)
        self._validate_array("close", self.close, np.float64, length)
        self._validate_array("volume", self.volume, np.float64, length)
        if length > 1 and not np.all(self.ts_open[1:] > self.ts_open[:-1]):
            raise ValueError("ts_open must be strictly increasing")

    @classmethod
    def from_series(cls, candles: CandleSeries) -> CandleArrays:
        """Copy a candle series into column arrays."""
        return cls(
            ts_open=np.fromiter((c.timestamp for c in candles), dtype=np.int64, count=len(candles)),
            open=np.fromiter((c.open for c in candles), dtype=np.float64, count=len(candles)),
            high=np.fromiter((c.high for c in candles), dtype=np.float64, count=len(candles)),
            low=np.fromiter((c.low for c in candles), dtype=np.float64, count=len(candles)),
            close=np.fromiter((c.close for c in candles), dtype=np.float64, count=len(candles)),
            volume=np.fromiter((c.volume for c in candles), dtype=np.float64, count=len(candles)),
        )

    def __len__(self) -> int:
        return int(self.ts_open.shape[0])

    def _validate_array(
        self,
        name: str,
        values: np.ndarray,
        expected_dtype: npt.DTypeLike,
        expected_length: int | None,
    ) -> int:
        normalized_expected_dtype = np.dtype(expected_dtype)
        try:
            if values.ndim != 1:
                raise ValueError(f"{name} must be a 1D array")
            if values.dtype != normalized_expected_dtype:
                raise ValueError(
                    f"{name} must have dtype {normalized_expected_dtype}, got {values.dtype}"
                )
        except AttributeError as error:
            raise ValueError(f"{name} must be a numpy ndarray") from error

        length = values.shape[0]
        if expected_length is not None and length != expected_length:
            raise ValueError(
                f"{name} length must match baseline length {expected_length}, got {length}"
            )
        return length
