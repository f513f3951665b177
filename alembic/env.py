"""
Alembic environment for the tradescan storage schema: signatures, signals, trade setups
and the links between setups and their signals.

Migrations are raw SQL revisions, so no SQLAlchemy metadata is attached. The usual entry
point is `apps.migrations.main`, which takes the advisory lock and hands its connection
in through `config.attributes["connection"]`; a bare `alembic upgrade head` connects on
its own using `TRADESCAN_SQLALCHEMY_URL` or `sqlalchemy.url`.
"""

from __future__ import annotations

import os

from sqlalchemy import engine_from_config, pool
from sqlalchemy.engine import Connection

from alembic import context

config = context.config

_URL_ENV_KEY = "TRADESCAN_SQLALCHEMY_URL"


def _storage_url() -> str | None:
    override = os.environ.get(_URL_ENV_KEY, "").strip()
    if override:
        # configparser interpolation: a literal percent must be doubled
        config.set_main_option("sqlalchemy.url", override.replace("%", "%%"))
        return override
    return config.get_main_option("sqlalchemy.url")


def _apply_revisions(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=None)
    with context.begin_transaction():
        context.run_migrations()


def render_storage_sql() -> None:
    """Print the storage DDL for review instead of touching a database."""
    context.configure(
        url=_storage_url(),
        target_metadata=None,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def upgrade_storage() -> None:
    """
    Bring the storage schema to the requested revision.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        A connection handed in by the migration runner already holds the advisory lock,
        so concurrent deploys never apply the same revision twice.
    Raises:
        sqlalchemy.exc.SQLAlchemyError: On connection or DDL failures.
    Side Effects:
        Creates or alters tradescan tables.
    """
    runner_connection = config.attributes.get("connection")
    if isinstance(runner_connection, Connection):
        _apply_revisions(runner_connection)
        return

    _storage_url()
    engine = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with engine.connect() as connection:
        _apply_revisions(connection)


if context.is_offline_mode():
    render_storage_sql()
else:
    upgrade_storage()
