from .argument_error import ArgumentError
from .configuration_error import ConfigurationError
from .logic_error import LogicError
from .range_error import RangeError
from .recalculation_error import RecalculationError
from .storage_error import StorageError

__all__ = [
    "ArgumentError",
    "ConfigurationError",
    "LogicError",
    "RangeError",
    "RecalculationError",
    "StorageError",
]
