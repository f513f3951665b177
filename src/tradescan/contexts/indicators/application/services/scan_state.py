from __future__ import annotations

from dataclasses import dataclass

from tradescan.shared_kernel.primitives import Candle


@dataclass(frozen=True, slots=True)
class ScanState:
    """
    ScanState — cursor position of an indicator scan at one base time step.

    `prev`, `current` and `next` are value-series timestamps; `progressing_candle` is the
    merged sub-candle being evaluated in progressive mode.
    """

    index: int
    current: int
    prev: int | None = None
    next: int | None = None
    progressing_candle: Candle | None = None
