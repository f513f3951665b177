from .entities import (
    IndicatorConfig,
    IndicatorValue,
    ScanStep,
    Signal,
    SignalSide,
    bind_value,
)
from .errors import UnknownIndicatorError

__all__ = [
    "IndicatorConfig",
    "IndicatorValue",
    "ScanStep",
    "Signal",
    "SignalSide",
    "UnknownIndicatorError",
    "bind_value",
]
