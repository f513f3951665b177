from __future__ import annotations

from typing import Mapping, Union

IndicatorValue = Union[float, Mapping[str, float]]


def bind_value(value: IndicatorValue | None, bind: str | None) -> float | None:
    """
    Extract a bindable number from one indicator value.

    Mapping values yield their `bind` field; scalar values are returned as-is regardless
    of `bind`. A missing field in a mapping raises `KeyError` for the caller.
    """
    if value is None:
        return None
    if isinstance(value, Mapping):
        if bind is None:
            raise KeyError("bind field is required for mapping indicator values")
        return value[bind]
    return value
