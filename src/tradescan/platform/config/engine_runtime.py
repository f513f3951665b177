"""
Runtime config loader for the indicator engine and strategy composer.

Related: tradescan.contexts.indicators.application.services.indicator_engine,
  tradescan.contexts.strategy.application.services.strategy_composer
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

_ENV_NAME_KEY = "TRADESCAN_ENV"
_CONFIG_PATH_KEY = "TRADESCAN_ENGINE_CONFIG"
_ALLOWED_ENVS = ("dev", "prod", "test")

_FETCH_LIMIT_ENV_KEYS = ("TRADESCAN_PROGRESSIVE_FETCH_LIMIT",)
_MAX_CANDLES_ENV_KEYS = ("TRADESCAN_DEFAULT_MAX_CANDLES",)
_REFRESH_ENV_KEYS = ("TRADESCAN_EVALUATION_REFRESH_SECONDS",)
_DSN_ENV_KEYS = ("TRADESCAN_POSTGRES_DSN", "DATABASE_URL")

_DEFAULT_PROGRESSIVE_FETCH_LIMIT = 1000
_DEFAULT_MAX_CANDLES = 1000
_DEFAULT_EVALUATION_REFRESH_SECONDS = 60


@dataclass(frozen=True, slots=True)
class EngineRuntimeConfig:
    """
    Immutable runtime settings shared by indicator engines and strategy composers.

    Fields:
    - progressive_fetch_limit: finer candles fetched forward when no boundary candle exists.
    - default_max_candles: candle window size used when a strategy does not set one.
    - evaluation_refresh_seconds: max age of the evaluation symbol before a candle refresh.
    - postgres_dsn: optional DSN for Postgres persistence adapters.
    """

    progressive_fetch_limit: int = _DEFAULT_PROGRESSIVE_FETCH_LIMIT
    default_max_candles: int = _DEFAULT_MAX_CANDLES
    evaluation_refresh_seconds: int = _DEFAULT_EVALUATION_REFRESH_SECONDS
    postgres_dsn: str | None = None

    def __post_init__(self) -> None:
        """
        Validate runtime config invariants.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            All numeric settings are positive integers.
        Raises:
            ValueError: If any value violates required bounds.
        Side Effects:
            Normalizes blank DSN to `None`.
        """
        if self.progressive_fetch_limit <= 0:
            raise ValueError(
                f"progressive_fetch_limit must be > 0, got {self.progressive_fetch_limit}"
            )
        if self.default_max_candles <= 0:
            raise ValueError(f"default_max_candles must be > 0, got {self.default_max_candles}")
        if self.evaluation_refresh_seconds <= 0:
            raise ValueError(
                "evaluation_refresh_seconds must be > 0, "
                f"got {self.evaluation_refresh_seconds}"
            )
        if self.postgres_dsn is not None and not self.postgres_dsn.strip():
            object.__setattr__(self, "postgres_dsn", None)


def load_engine_runtime_config(*, environ: Mapping[str, str]) -> EngineRuntimeConfig:
    """
    Load engine runtime config from YAML and env overrides.

    Args:
        environ: Environment mapping used to resolve env and override values.
    Returns:
        EngineRuntimeConfig: Validated runtime settings.
    Assumptions:
        Optional `engine` section lives in `configs/<env>/engine.yaml`.
    Raises:
        FileNotFoundError: If an explicitly configured YAML path does not exist.
        ValueError: If YAML or environment values are invalid.
    Side Effects:
        Reads at most one YAML file from disk.
    """
    config_path, explicit = _resolve_engine_config_path(environ=environ)
    payload = _load_engine_payload(path=config_path, required=explicit)

    return EngineRuntimeConfig(
        progressive_fetch_limit=_resolve_int_setting(
            environ=environ,
            env_keys=_FETCH_LIMIT_ENV_KEYS,
            payload=payload,
            payload_key="progressive_fetch_limit",
            default=_DEFAULT_PROGRESSIVE_FETCH_LIMIT,
        ),
        default_max_candles=_resolve_int_setting(
            environ=environ,
            env_keys=_MAX_CANDLES_ENV_KEYS,
            payload=payload,
            payload_key="default_max_candles",
            default=_DEFAULT_MAX_CANDLES,
        ),
        evaluation_refresh_seconds=_resolve_int_setting(
            environ=environ,
            env_keys=_REFRESH_ENV_KEYS,
            payload=payload,
            payload_key="evaluation_refresh_seconds",
            default=_DEFAULT_EVALUATION_REFRESH_SECONDS,
        ),
        postgres_dsn=_resolve_optional_str_setting(
            environ=environ,
            env_keys=_DSN_ENV_KEYS,
            payload=payload,
            payload_key="postgres_dsn",
        ),
    )


def _resolve_engine_config_path(*, environ: Mapping[str, str]) -> tuple[Path, bool]:
    """
    Resolve engine YAML path using explicit override or `TRADESCAN_ENV`.

    Args:
        environ: Environment mapping.
    Returns:
        tuple[Path, bool]: YAML path and whether it was set explicitly.
    Assumptions:
        `TRADESCAN_ENGINE_CONFIG` has priority over env-derived path.
    Raises:
        ValueError: If env value is invalid.
    Side Effects:
        None.
    """
    override = environ.get(_CONFIG_PATH_KEY, "").strip()
    if override:
        return Path(override), True

    raw_env = environ.get(_ENV_NAME_KEY, "dev").strip().lower()
    if raw_env not in _ALLOWED_ENVS:
        raise ValueError(f"{_ENV_NAME_KEY} must be one of {_ALLOWED_ENVS}, got {raw_env!r}")
    return Path("configs") / raw_env / "engine.yaml", False


def _load_engine_payload(*, path: Path, required: bool) -> Mapping[str, Any]:
    """
    Load optional `engine` mapping from YAML.

    Args:
        path: Engine config path.
        required: Raise when the file is missing instead of using defaults.
    Returns:
        Mapping[str, Any]: `engine` section, or empty mapping.
    Assumptions:
        Unknown keys are ignored by this loader.
    Raises:
        FileNotFoundError: If a required YAML path does not exist.
        ValueError: If YAML structure is invalid.
    Side Effects:
        Reads one UTF-8 file from disk when it exists.
    """
    if not path.exists():
        if required:
            raise FileNotFoundError(f"engine config not found: {path}")
        return {}
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError("engine config must be a mapping at top-level")

    engine_map = raw.get("engine")
    if engine_map is None:
        return {}
    if not isinstance(engine_map, dict):
        raise ValueError("engine section must be a mapping")
    return engine_map


def _resolve_int_setting(
    *,
    environ: Mapping[str, str],
    env_keys: tuple[str, ...],
    payload: Mapping[str, Any],
    payload_key: str,
    default: int,
) -> int:
    """Resolve a positive integer with env -> payload -> default precedence."""
    for env_key in env_keys:
        raw = environ.get(env_key, "").strip()
        if raw:
            return _parse_positive_int(raw, key=env_key)

    payload_value = payload.get(payload_key)
    if payload_value is None:
        return default

    if isinstance(payload_value, bool) or not isinstance(payload_value, int):
        raise ValueError(
            f"expected int for engine.{payload_key}, got {type(payload_value).__name__}"
        )
    if payload_value <= 0:
        raise ValueError(f"engine.{payload_key} must be > 0, got {payload_value}")
    return payload_value


def _resolve_optional_str_setting(
    *,
    environ: Mapping[str, str],
    env_keys: tuple[str, ...],
    payload: Mapping[str, Any],
    payload_key: str,
) -> str | None:
    """Resolve an optional string with env -> payload precedence."""
    for env_key in env_keys:
        raw = environ.get(env_key, "").strip()
        if raw:
            return raw

    payload_value = payload.get(payload_key)
    if payload_value is None:
        return None
    if not isinstance(payload_value, str):
        raise ValueError(
            f"expected string for engine.{payload_key}, got {type(payload_value).__name__}"
        )
    return payload_value.strip() or None


def _parse_positive_int(raw: str, *, key: str) -> int:
    try:
        parsed = int(raw, 10)
    except ValueError as error:
        raise ValueError(f"{key} must be int, got {raw!r}") from error
    if parsed <= 0:
        raise ValueError(f"{key} must be > 0, got {parsed}")
    return parsed


__all__ = [
    "EngineRuntimeConfig",
    "load_engine_runtime_config",
]
