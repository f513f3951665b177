from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional

from tradescan.platform.errors import ConfigurationError

if TYPE_CHECKING:
    from tradescan.contexts.indicators.domain.entities import Signal

    from .trade_setup import TradeSetup

SetupTransform = Callable[["TradeSetup", "tuple[Signal, ...]"], Optional["TradeSetup"]]


@dataclass(frozen=True, slots=True)
class TradeSetupRule:
    """
    TradeSetupRule — declarative requirement for one trade setup.

    `indicators` lists indicator aliases in chain order; one signal per alias is required.
    `signal_names` optionally restricts accepted signal names per alias. `transform`
    receives each matched setup with its signals and returns an enriched setup or `None`
    to veto it.

    Related:
      - src/tradescan/contexts/strategy/domain/services/setup_matcher.py
      - src/tradescan/contexts/strategy/domain/entities/strategy_definition.py
    """

    key: str
    indicators: tuple[str, ...]
    signal_names: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    transform: SetupTransform | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        """
        Normalize aliases and name filters.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Name filters may only reference aliases listed in `indicators`.
        Raises:
            ConfigurationError: If the rule is empty or inconsistent.
        Side Effects:
            None.
        """
        if not isinstance(self.key, str) or not self.key.strip():
            raise ConfigurationError("TradeSetupRule.key must be non-empty string")
        object.__setattr__(self, "key", self.key.strip())

        aliases = tuple(str(alias).strip() for alias in self.indicators)
        if not aliases:
            raise ConfigurationError(f"Invalid signal config for trade setup: {self.key}")
        if any(not alias for alias in aliases):
            raise ConfigurationError(f"TradeSetupRule {self.key} has an empty indicator alias")
        if len(set(aliases)) != len(aliases):
            raise ConfigurationError(f"TradeSetupRule {self.key} lists an indicator twice")
        object.__setattr__(self, "indicators", aliases)

        filters: dict[str, tuple[str, ...]] = {}
        for alias, names in dict(self.signal_names).items():
            if alias not in aliases:
                raise ConfigurationError(
                    f"TradeSetupRule {self.key} filters signals of unlisted indicator {alias}"
                )
            filters[alias] = tuple(str(name) for name in names)
        object.__setattr__(self, "signal_names", MappingProxyType(filters))

        if self.transform is not None and not callable(self.transform):
            raise ConfigurationError(f"TradeSetupRule {self.key} transform must be callable")

    @property
    def signal_count(self) -> int:
        return len(self.indicators)

    def accepts(self, alias: str, signal_name: str | None) -> bool:
        """Whether `signal_name` passes the name filter of `alias`; unfiltered aliases pass all."""
        allowed = self.signal_names.get(alias)
        return allowed is None or signal_name in allowed

    @classmethod
    def from_mapping(
        cls,
        key: str,
        payload: Mapping[str, Any],
        transform: SetupTransform | None = None,
    ) -> TradeSetupRule:
        """
        Build rule from a `{"signals": [...]}` mapping.

        Args:
            key: Rule key.
            payload: Mapping whose `signals` list holds aliases, or one-item mappings
                `{alias: [allowed names]}`.
            transform: Optional setup transform callback.
        Returns:
            TradeSetupRule: Parsed rule.
        Assumptions:
            List order defines chain order.
        Raises:
            ConfigurationError: If payload shape is invalid.
        Side Effects:
            None.
        """
        unknown = sorted(set(payload) - {"signals"})
        if unknown:
            raise ConfigurationError(f"TradeSetupRule {key} got unknown config keys: {unknown}")
        entries = payload.get("signals")
        if not isinstance(entries, (list, tuple)):
            raise ConfigurationError(f"Invalid signal config for trade setup: {key}")

        aliases: list[str] = []
        filters: dict[str, tuple[str, ...]] = {}
        for entry in entries:
            if isinstance(entry, str):
                aliases.append(entry)
                continue
            if isinstance(entry, Mapping) and len(entry) == 1:
                alias, names = next(iter(entry.items()))
                if isinstance(names, str) or not isinstance(names, (list, tuple)):
                    raise ConfigurationError(
                        f"TradeSetupRule {key} signal names of {alias} must be a list"
                    )
                aliases.append(str(alias))
                filters[str(alias)] = tuple(str(name) for name in names)
                continue
            raise ConfigurationError(f"TradeSetupRule {key} got invalid signal entry {entry!r}")

        return cls(key=key, indicators=tuple(aliases), signal_names=filters, transform=transform)

    def to_json(self) -> dict[str, Any]:
        signals: list[Any] = []
        for alias in self.indicators:
            names = self.signal_names.get(alias)
            signals.append(alias if names is None else {alias: list(names)})
        return {
            "key": self.key,
            "signals": signals,
            "signal_count": self.signal_count,
        }
