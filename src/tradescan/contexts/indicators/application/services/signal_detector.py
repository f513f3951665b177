from __future__ import annotations

import inspect
import types
import typing
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional

from tradescan.contexts.indicators.domain.entities import IndicatorValue, Signal
from tradescan.platform.errors import ArgumentError

if TYPE_CHECKING:
    from .indicator_engine import IndicatorEngine

DetectFn = Callable[[Signal, "IndicatorEngine", IndicatorValue], Optional[Signal]]

_DETECT_PARAMETERS = ("signal", "indicator", "value")


@dataclass(frozen=True, slots=True)
class SignalDetector:
    """
    SignalDetector — named, versioned detection callback used by indicator scans.

    `detect(signal=..., indicator=..., value=...)` receives the template signal, the
    scanning engine and the current value, and returns `signal.emit(...)` or `None`.
    `name@version` is the stable identity hashed into the detector signature, so bump
    `version` whenever detection logic changes.

    Related:
      - src/tradescan/contexts/indicators/application/services/indicator_engine.py
      - tests/unit/contexts/indicators/application/test_signal_detector.py
    """

    name: str
    detect: DetectFn
    version: str = "1"

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ArgumentError("SignalDetector.name must be non-empty string")
        if not isinstance(self.version, str) or not self.version.strip():
            raise ArgumentError("SignalDetector.version must be non-empty string")
        if not callable(self.detect):
            raise ArgumentError(f"SignalDetector {self.name!r} detect must be callable")
        object.__setattr__(self, "name", self.name.strip())
        object.__setattr__(self, "version", self.version.strip())

    @property
    def identity(self) -> str:
        return f"{self.name}@{self.version}"

    def __call__(
        self,
        *,
        signal: Signal,
        indicator: IndicatorEngine,
        value: IndicatorValue,
    ) -> Signal | None:
        return self.detect(signal=signal, indicator=indicator, value=value)  # type: ignore[call-arg]


def verify_signal_detector(detector: SignalDetector) -> None:
    """
    Check that the detection callback accepts `(signal, indicator, value)` and is annotated
    to return `Signal | None`.

    Args:
        detector: Detector about to drive a scan.
    Returns:
        None.
    Assumptions:
        Annotations are resolvable from the callback's module globals.
    Raises:
        ArgumentError: If the callback signature or return annotation is wrong.
    Side Effects:
        None.
    """
    if not isinstance(detector, SignalDetector):
        raise ArgumentError(f"Expected SignalDetector, got {type(detector).__name__}")

    try:
        signature = inspect.signature(detector.detect)
    except (TypeError, ValueError) as error:
        raise ArgumentError(f"Detector {detector.identity} is not introspectable") from error

    try:
        signature.bind(**{name: None for name in _DETECT_PARAMETERS})
    except TypeError as error:
        raise ArgumentError(
            f"Detector {detector.identity} must accept parameters "
            f"{', '.join(_DETECT_PARAMETERS)}"
        ) from error

    try:
        hints = typing.get_type_hints(_annotation_target(detector.detect))
    except Exception as error:  # noqa: BLE001
        raise ArgumentError(
            f"Detector {detector.identity} annotations cannot be resolved"
        ) from error

    if not _is_optional_signal(hints.get("return")):
        raise ArgumentError(
            f"Detector {detector.identity} must have a return type of Signal and be nullable."
        )


def _annotation_target(detect: Any) -> Any:
    if inspect.isfunction(detect) or inspect.ismethod(detect):
        return detect
    return type(detect).__call__


def _is_optional_signal(hint: Any) -> bool:
    if hint is None:
        return False
    if typing.get_origin(hint) not in (typing.Union, types.UnionType):
        return False
    return set(typing.get_args(hint)) == {Signal, type(None)}
