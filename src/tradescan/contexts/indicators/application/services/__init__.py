from .indicator_engine import IndicatorEngine
from .progressive_candles import (
    ProgressiveCursor,
    ProgressiveCursorCache,
    merge_progressive_candles,
)
from .scan_state import ScanState
from .signal_detector import DetectFn, SignalDetector, verify_signal_detector

__all__ = [
    "DetectFn",
    "IndicatorEngine",
    "ProgressiveCursor",
    "ProgressiveCursorCache",
    "ScanState",
    "SignalDetector",
    "merge_progressive_candles",
    "verify_signal_detector",
]
