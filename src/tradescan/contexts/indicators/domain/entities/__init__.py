from .indicator_config import IndicatorConfig, require_positive_float, require_positive_int
from .indicator_value import IndicatorValue, bind_value
from .scan_step import ScanStep
from .signal import Signal, SignalSide

__all__ = [
    "IndicatorConfig",
    "IndicatorValue",
    "ScanStep",
    "Signal",
    "SignalSide",
    "bind_value",
    "require_positive_float",
    "require_positive_int",
]
