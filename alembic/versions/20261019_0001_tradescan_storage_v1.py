"""Create signature, signal and trade setup tables for indicator scans."""

from __future__ import annotations

from alembic import op

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """
    Apply tradescan storage schema.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Migration is additive; `IF NOT EXISTS` keeps it safe on partially created schemas.
    Raises:
        Exception: Postgres execution errors from Alembic runtime.
    Side Effects:
        Creates signature, signal, trade setup and link tables with their indexes.
    """
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS tradescan_signatures (
            signature_id BIGSERIAL PRIMARY KEY,
            hash TEXT NOT NULL,
            payload JSONB NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT tradescan_signatures_hash_uq UNIQUE (hash),
            CONSTRAINT tradescan_signatures_hash_chk CHECK (hash ~ '^[0-9a-f]{64}$')
        )
        """
    )

    op.execute(
        """
        CREATE TABLE IF NOT EXISTS tradescan_signals (
            signal_id BIGSERIAL PRIMARY KEY,
            symbol_id BIGINT NOT NULL,
            indicator_signature_id BIGINT NOT NULL
                REFERENCES tradescan_signatures (signature_id),
            detector_signature_id BIGINT NOT NULL
                REFERENCES tradescan_signatures (signature_id),
            side TEXT NOT NULL,
            name TEXT NOT NULL,
            timestamp BIGINT NOT NULL,
            price DOUBLE PRECISION NOT NULL,
            price_date BIGINT NULL,
            CONSTRAINT tradescan_signals_side_chk CHECK (side IN ('BUY', 'SELL')),
            CONSTRAINT tradescan_signals_unique_uq
                UNIQUE (symbol_id, indicator_signature_id, timestamp, name)
        )
        """
    )
    op.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_tradescan_signals_symbol_timestamp
            ON tradescan_signals (symbol_id, timestamp, signal_id)
        """
    )

    op.execute(
        """
        CREATE TABLE IF NOT EXISTS tradescan_trade_setups (
            setup_id BIGSERIAL PRIMARY KEY,
            signature_id BIGINT NOT NULL REFERENCES tradescan_signatures (signature_id),
            symbol_id BIGINT NOT NULL,
            rule_key TEXT NOT NULL,
            side TEXT NOT NULL,
            name TEXT NOT NULL,
            signal_count INTEGER NOT NULL,
            timestamp BIGINT NOT NULL,
            price DOUBLE PRECISION NOT NULL,
            price_date BIGINT NULL,
            CONSTRAINT tradescan_trade_setups_side_chk CHECK (side IN ('BUY', 'SELL')),
            CONSTRAINT tradescan_trade_setups_signal_count_chk CHECK (signal_count > 0),
            CONSTRAINT tradescan_trade_setups_unique_uq
                UNIQUE (signature_id, symbol_id, timestamp)
        )
        """
    )
    op.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_tradescan_trade_setups_symbol_timestamp
            ON tradescan_trade_setups (symbol_id, timestamp, setup_id)
        """
    )

    op.execute(
        """
        CREATE TABLE IF NOT EXISTS tradescan_trade_setup_signals (
            setup_id BIGINT NOT NULL
                REFERENCES tradescan_trade_setups (setup_id) ON DELETE CASCADE,
            position INTEGER NOT NULL,
            signal_id BIGINT NOT NULL REFERENCES tradescan_signals (signal_id),
            PRIMARY KEY (setup_id, position),
            CONSTRAINT tradescan_trade_setup_signals_position_chk CHECK (position >= 0)
        )
        """
    )


def downgrade() -> None:
    """
    Drop tradescan storage tables in dependency order.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Downgrade is used only on disposable environments.
    Raises:
        Exception: Postgres execution errors from Alembic runtime.
    Side Effects:
        Drops all tradescan tables and their data.
    """
    op.execute("DROP TABLE IF EXISTS tradescan_trade_setup_signals")
    op.execute("DROP TABLE IF EXISTS tradescan_trade_setups")
    op.execute("DROP TABLE IF EXISTS tradescan_signals")
    op.execute("DROP TABLE IF EXISTS tradescan_signatures")
