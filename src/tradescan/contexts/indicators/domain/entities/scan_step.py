from __future__ import annotations

from dataclasses import dataclass

from .signal import Signal


@dataclass(frozen=True, slots=True)
class ScanStep:
    """
    ScanStep — one base time step yielded by an indicator scan.

    `timestamp` is the base candle timestamp even when the signal was raised by a
    progressive sub-candle.
    """

    signal: Signal | None
    timestamp: int
    price_date: int | None = None
