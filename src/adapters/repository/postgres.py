"""
PostgreSQL repository adapters - Implement ConversationRepository and
RefundArchive protocols.

This module provides the PostgreSQL implementations of the domain's
persistence ports using psycopg3 with raw SQL.

Merge Semantics:
----------------
merge() reads the current row with SELECT ... FOR UPDATE, overlays the
given fields in Python, and writes the full row back with
INSERT ... ON CONFLICT DO UPDATE inside the same transaction. Concurrent
merges on one conversation therefore serialize on the row lock instead
of losing fields.

Prices are stored as NUMERIC(78, 0) so any uint256 wei amount fits.
"""

import logging
from dataclasses import fields as dataclass_fields
from dataclasses import replace
from pathlib import Path

from psycopg_pool import ConnectionPool

from src.domain.models import ConversationState, ConversationStatus, RefundItem

logger = logging.getLogger(__name__)

_COLUMNS = (
    "status",
    "last_processed_message_id",
    "name",
    "requester_id",
    "deposit_address",
    "derivation_path",
    "price",
    "attempts",
)

_STATE_FIELDS = frozenset(f.name for f in dataclass_fields(ConversationState))


def _row_to_state(row: tuple) -> ConversationState:
    status, last_id, name, requester_id, address, path, price, attempts = row
    return ConversationState(
        status=ConversationStatus(status),
        last_processed_message_id=last_id,
        name=name,
        requester_id=requester_id,
        deposit_address=address,
        derivation_path=path,
        price=int(price) if price is not None else None,
        attempts=attempts,
    )


def _state_to_params(state: ConversationState) -> tuple:
    return (
        state.status.value,
        state.last_processed_message_id,
        state.name,
        state.requester_id,
        state.deposit_address,
        state.derivation_path,
        state.price,
        state.attempts,
    )


class PostgresConversationRepository:
    """
    Implements ConversationRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def get(self, conversation_id: str) -> ConversationState | None:
        sql = f"SELECT {', '.join(_COLUMNS)} FROM conversations WHERE conversation_id = %s"

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (conversation_id,))
            row = cursor.fetchone()
        return _row_to_state(row) if row is not None else None

    def merge(self, conversation_id: str, **fields: object) -> ConversationState:
        """
        Overlay fields onto the stored conversation, creating it if absent.

        Args:
            conversation_id: External thread identifier
            **fields: ConversationState attributes to overwrite

        Returns:
            The merged state as written

        Raises:
            TypeError: If a field is not a ConversationState attribute
        """
        unknown = set(fields) - _STATE_FIELDS
        if unknown:
            raise TypeError(f"Unknown conversation fields: {sorted(unknown)}")

        select_sql = f"""
            SELECT {', '.join(_COLUMNS)}
            FROM conversations
            WHERE conversation_id = %s
            FOR UPDATE
        """

        upsert_sql = f"""
            INSERT INTO conversations (conversation_id, {', '.join(_COLUMNS)}, updated_at)
            VALUES (%s, {', '.join(['%s'] * len(_COLUMNS))}, NOW())
            ON CONFLICT (conversation_id) DO UPDATE
            SET {', '.join(f'{column} = EXCLUDED.{column}' for column in _COLUMNS)},
                updated_at = NOW()
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(select_sql, (conversation_id,))
            row = cursor.fetchone()
            current = _row_to_state(row) if row is not None else ConversationState()
            merged = replace(current, **fields)
            cursor.execute(upsert_sql, (conversation_id, *_state_to_params(merged)))
            conn.commit()
        return merged


class PostgresRefundArchive:
    """Implements RefundArchive protocol via psycopg3. Insert-only."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def append(self, item: RefundItem) -> None:
        sql = """
            INSERT INTO refund_archive (request_id, requester_id, derivation_path, deposit_address)
            VALUES (%s, %s, %s, %s)
        """

        with self._pool.connection() as conn:
            conn.execute(
                sql,
                (item.request_id, item.requester_id, item.derivation_path, item.deposit_address),
            )
            conn.commit()

    def entries(self) -> list[RefundItem]:
        sql = """
            SELECT request_id, requester_id, derivation_path, deposit_address
            FROM refund_archive
            ORDER BY id
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql)
            rows = cursor.fetchall()
        return [
            RefundItem(
                request_id=request_id,
                requester_id=requester_id,
                derivation_path=path,
                deposit_address=address,
            )
            for request_id, requester_id, path, address in rows
        ]


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info("Running %d migration(s)", len(sql_files))

    for sql_file in sql_files:
        logger.info("Executing migration: %s", sql_file.name)
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info("Migration complete: %s", sql_file.name)
        except Exception as e:
            logger.error("Migration failed: %s - %s", sql_file.name, e)
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
