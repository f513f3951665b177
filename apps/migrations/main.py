from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import Mapping

from psycopg.conninfo import conninfo_to_dict
from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Connection
from sqlalchemy.engine.url import make_url

from alembic import command
from alembic.config import Config

log = logging.getLogger(__name__)

_DSN_ENV_KEYS = ("TRADESCAN_POSTGRES_DSN", "DATABASE_URL")
_DEFAULT_LOCK_KEY = 71930245518
_URL_PREFIXES: tuple[str, ...] = (
    "postgresql+psycopg://",
    "postgresql://",
    "postgres://",
)
_URL_ONLY_CONNINFO_KEYS = frozenset({"dbname", "host", "hostaddr", "password", "port", "user"})


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tradescan-migrations")
    parser.add_argument(
        "--dsn",
        default="",
        help="Postgres DSN. Falls back to $TRADESCAN_POSTGRES_DSN, then $DATABASE_URL.",
    )
    parser.add_argument(
        "--lock-key",
        type=int,
        default=_DEFAULT_LOCK_KEY,
        help="pg_advisory_lock key held while `alembic upgrade head` runs.",
    )
    return parser


def resolve_dsn(*, arg_dsn: str, environ: Mapping[str, str]) -> str:
    """
    Pick the migration DSN from CLI argument or environment.

    Args:
        arg_dsn: `--dsn` value.
        environ: Environment mapping.
    Returns:
        str: Non-empty DSN.
    Assumptions:
        CLI value wins; then keys of `_DSN_ENV_KEYS` in order.
    Raises:
        ValueError: If no DSN is configured.
    Side Effects:
        None.
    """
    candidates = [arg_dsn] + [environ.get(key, "") for key in _DSN_ENV_KEYS]
    for candidate in candidates:
        if candidate.strip():
            return candidate.strip()
    raise ValueError("Migration DSN is required via --dsn or TRADESCAN_POSTGRES_DSN")


def to_sqlalchemy_url(*, dsn: str) -> URL:
    """
    Convert a Postgres URL or libpq conninfo DSN into a `postgresql+psycopg` SQLAlchemy URL.

    Args:
        dsn: Raw DSN.
    Returns:
        URL: SQLAlchemy URL with the psycopg driver.
    Assumptions:
        Conninfo passwords may hold raw special characters; `URL.create` keeps them intact.
    Raises:
        ValueError: If DSN is empty, malformed or names another database driver.
    Side Effects:
        None.

    Related:
      - alembic/env.py
      - tests/unit/apps/migrations/test_migrations_main.py
    """
    normalized = dsn.strip()
    if not normalized:
        raise ValueError("Postgres DSN cannot be empty")

    if normalized.startswith(_URL_PREFIXES):
        parsed = make_url(normalized)
        if parsed.drivername not in {"postgresql", "postgres", "postgresql+psycopg"}:
            raise ValueError("Postgres URL DSN must use postgresql:// or postgres:// scheme")
        return parsed.set(drivername="postgresql+psycopg")

    try:
        fields = conninfo_to_dict(normalized)
    except Exception as error:  # noqa: BLE001
        raise ValueError("Postgres DSN must be URL or libpq conninfo format") from error

    raw_port = str(fields.get("port", "")).strip()
    try:
        port = int(raw_port) if raw_port else None
    except ValueError as error:
        raise ValueError("Conninfo port must be numeric when provided") from error

    return URL.create(
        "postgresql+psycopg",
        username=str(fields.get("user", "")).strip() or None,
        password=str(fields.get("password", "")).strip() or None,
        host=str(fields.get("host", fields.get("hostaddr", ""))).strip() or None,
        port=port,
        database=str(fields.get("dbname", "")).strip() or None,
        query={
            key: str(value)
            for key, value in sorted(fields.items())
            if key not in _URL_ONLY_CONNINFO_KEYS and str(value)
        },
    )


def _build_alembic_config(*, repo_root: Path) -> Config:
    alembic_ini = repo_root / "alembic.ini"
    if not alembic_ini.exists():
        raise ValueError(f"Missing Alembic config file: {alembic_ini}")
    config = Config(str(alembic_ini))
    config.set_main_option("script_location", str(repo_root / "alembic"))
    return config


def _upgrade_head_under_lock(*, config: Config, sqlalchemy_url: URL, lock_key: int) -> None:
    """
    Run `alembic upgrade head` on one connection holding `pg_advisory_lock`.

    Args:
        config: Alembic config.
        sqlalchemy_url: Target database URL.
        lock_key: Advisory lock key shared by all migration runners.
    Returns:
        None.
    Assumptions:
        Alembic receives the locked connection through `config.attributes["connection"]`.
    Raises:
        Exception: Database or Alembic failures propagate after rollback.
    Side Effects:
        Applies schema migrations.
    """
    engine = create_engine(sqlalchemy_url, pool_pre_ping=True)
    with engine.connect() as connection:
        _advisory_lock(connection=connection, lock_key=lock_key, acquire=True)
        try:
            config.attributes["connection"] = connection
            log.info("running alembic upgrade head")
            command.upgrade(config, "head")
            connection.commit()
            log.info("migration success")
        except Exception:  # noqa: BLE001
            connection.rollback()
            raise
        finally:
            _advisory_lock(connection=connection, lock_key=lock_key, acquire=False)
            connection.commit()


def _advisory_lock(*, connection: Connection, lock_key: int, acquire: bool) -> None:
    function = "pg_advisory_lock" if acquire else "pg_advisory_unlock"
    log.info("%s(%s)", function, lock_key)
    connection.execute(text(f"SELECT {function}(:lock_key)"), {"lock_key": lock_key})


def main(argv: list[str] | None = None) -> int:
    """
    Apply tradescan migrations and report failure through the exit code.

    Args:
        argv: CLI arguments without program name.
    Returns:
        int: Zero on success, one on failure.
    Assumptions:
        Runner is started before services that use the storage tables.
    Raises:
        None.
    Side Effects:
        Reads environment, connects to Postgres, applies migrations.

    Related:
      - alembic/env.py
      - alembic/versions/20261019_0001_tradescan_storage_v1.py
    """
    args = _build_parser().parse_args(argv)
    try:
        dsn = resolve_dsn(arg_dsn=args.dsn, environ=os.environ)
        sqlalchemy_url = to_sqlalchemy_url(dsn=dsn)
        config = _build_alembic_config(repo_root=Path(__file__).resolve().parents[2])
        _upgrade_head_under_lock(
            config=config,
            sqlalchemy_url=sqlalchemy_url,
            lock_key=args.lock_key,
        )
    except Exception as error:  # noqa: BLE001
        log.error("migration failed: %s", error)
        return 1
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")
    raise SystemExit(main())
