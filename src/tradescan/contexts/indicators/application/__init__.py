from .dto import CandleArrays
from .ports import SignalRepository
from .services import (
    IndicatorEngine,
    ProgressiveCursor,
    ProgressiveCursorCache,
    ScanState,
    SignalDetector,
    merge_progressive_candles,
    verify_signal_detector,
)

__all__ = [
    "CandleArrays",
    "IndicatorEngine",
    "ProgressiveCursor",
    "ProgressiveCursorCache",
    "ScanState",
    "SignalDetector",
    "SignalRepository",
    "merge_progressive_candles",
    "verify_signal_detector",
]
