from __future__ import annotations

from dataclasses import dataclass

# Supported interval codes, value is the duration in milliseconds.
_MINUTE_MS = 60 * 1000
_SUPPORTED_MS = {
    "1m": _MINUTE_MS,
    "3m": 3 * _MINUTE_MS,
    "5m": 5 * _MINUTE_MS,
    "15m": 15 * _MINUTE_MS,
    "30m": 30 * _MINUTE_MS,
    "1h": 60 * _MINUTE_MS,
    "2h": 2 * 60 * _MINUTE_MS,
    "4h": 4 * 60 * _MINUTE_MS,
    "6h": 6 * 60 * _MINUTE_MS,
    "12h": 12 * 60 * _MINUTE_MS,
    "1d": 24 * 60 * _MINUTE_MS,
    "1w": 7 * 24 * 60 * _MINUTE_MS,
}


@dataclass(frozen=True, slots=True)
class Timeframe:
    """
    Timeframe — candle interval of a symbol series.

    Representation:
    - code: "1m", "5m", "1h", ...
    """

    code: str

    def __post_init__(self) -> None:
        normalized = self.code.strip().lower()
        object.__setattr__(self, "code", normalized)

        if normalized not in _SUPPORTED_MS:
            raise ValueError(
                f"Unsupported timeframe={normalized!r}. Supported: {sorted(_SUPPORTED_MS.keys())}"  # noqa: E501
            )

    @property
    def milliseconds(self) -> int:
        """Interval duration in milliseconds."""
        return _SUPPORTED_MS[self.code]

    def is_finer_than(self, other: Timeframe) -> bool:
        """True when this interval is strictly shorter than `other`."""
        return self.milliseconds < other.milliseconds

    def bucket_open(self, timestamp: int) -> int:
        """
        Epoch-aligned open time of the bucket containing `timestamp` (ms).

        This is plain time alignment, not a candle rollup.
        """
        return (timestamp // self.milliseconds) * self.milliseconds

    def __str__(self) -> str:
        return self.code
