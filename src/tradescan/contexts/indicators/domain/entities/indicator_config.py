from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping, TypeVar

from tradescan.platform.errors import ConfigurationError
from tradescan.shared_kernel.primitives import Timeframe

_ConfigT = TypeVar("_ConfigT", bound="IndicatorConfig")


@dataclass(frozen=True, slots=True)
class IndicatorConfig:
    """
    IndicatorConfig — typed settings shared by every indicator engine.

    Concrete indicators subclass it and add their own parameters with documented defaults.
    `alias` names the engine inside a strategy; `progressive_interval` enables progressive
    recalculation over finer candles; `recalculate=False` keeps progressive scanning but
    reuses the base value for every sub-candle.

    Related:
      - src/tradescan/contexts/indicators/application/services/indicator_engine.py
      - src/tradescan/contexts/indicators/adapters/outbound/catalog/
      - tests/unit/contexts/indicators/domain/test_indicator_config.py
    """

    alias: str | None = None
    progressive_interval: Timeframe | None = None
    recalculate: bool = True

    def __post_init__(self) -> None:
        """
        Normalize shared settings and run indicator-specific checks.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            `progressive_interval` may be given as a timeframe code string.
        Raises:
            ConfigurationError: If any setting is malformed.
        Side Effects:
            None.
        """
        if self.alias is not None:
            if not isinstance(self.alias, str) or not self.alias.strip():
                raise ConfigurationError(f"{type(self).__name__}.alias must be non-empty string")
            object.__setattr__(self, "alias", self.alias.strip())

        interval = self.progressive_interval
        if isinstance(interval, str):
            try:
                interval = Timeframe(code=interval)
            except ValueError as error:
                raise ConfigurationError(str(error)) from error
            object.__setattr__(self, "progressive_interval", interval)
        if interval is not None and not isinstance(interval, Timeframe):
            raise ConfigurationError(
                f"{type(self).__name__}.progressive_interval must be Timeframe or code, "
                f"got {interval!r}"
            )

        if not isinstance(self.recalculate, bool):
            raise ConfigurationError(f"{type(self).__name__}.recalculate must be bool")

        self._validate_params()

    def _validate_params(self) -> None:
        """Indicator-specific parameter checks; the base config has none."""

    @classmethod
    def from_mapping(
        cls: type[_ConfigT],
        payload: Mapping[str, Any] | None = None,
    ) -> _ConfigT:
        """
        Build config from a plain mapping over the documented defaults.

        Args:
            payload: Partial settings mapping; omitted keys keep their defaults.
        Returns:
            IndicatorConfig: Typed config of the concrete class.
        Assumptions:
            Keys are dataclass field names.
        Raises:
            ConfigurationError: If a key is unknown or a value is invalid.
        Side Effects:
            None.
        """
        values = dict(payload or {})
        known = {item.name for item in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(f"{cls.__name__} got unknown config keys: {unknown}")
        try:
            return cls(**values)
        except ConfigurationError:
            raise
        except (TypeError, ValueError) as error:
            raise ConfigurationError(f"{cls.__name__} config is invalid: {error}") from error

    def to_json(self) -> dict[str, Any]:
        """JSON-ready mapping of every setting; timeframes are rendered as codes."""
        payload: dict[str, Any] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if isinstance(value, Timeframe):
                value = value.code
            payload[item.name] = value
        return payload


def require_positive_int(*, owner: str, name: str, value: Any) -> None:
    """
    Validate one integer window-like parameter.

    Args:
        owner: Config class name used in diagnostics.
        name: Parameter name.
        value: Candidate value.
    Returns:
        None.
    Assumptions:
        Booleans are not accepted as integers.
    Raises:
        ConfigurationError: If value is not a positive integer.
    Side Effects:
        None.
    """
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigurationError(f"{owner}.{name} must be positive int, got {value!r}")


def require_positive_float(*, owner: str, name: str, value: Any) -> None:
    """Validate one positive numeric multiplier parameter."""
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigurationError(f"{owner}.{name} must be positive number, got {value!r}")
