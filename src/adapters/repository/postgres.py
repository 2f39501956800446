"""
PostgreSQL repository adapter - Implements CredentialStore protocol.

This module provides the PostgreSQL implementation of the domain's
credential store port using psycopg3 with raw SQL.

Atomicity Design:
-----------------
Every public method runs inside one transaction on one pooled connection.

1. **upsert_pending_user**: ``INSERT ... ON CONFLICT (email) DO UPDATE ...
   WHERE users.status = 'PENDING'`` takes the row lock on the user, so
   concurrent pre-registrations for one email are serialized and the last
   committed one wins. Prior tokens are deleted and the new one inserted
   in the same transaction. ACTIVE users are never touched.

2. **consume_token_and_activate**: ``SELECT ... FOR UPDATE`` locks the
   token and user rows. A concurrent caller for the same token blocks,
   then re-reads the committed row and sees ``consumed = TRUE``
   (ALREADY_USED) or no row at all if the winner purged an expired token
   (NOT_FOUND).

3. **Deadlines**: a caller-supplied timeout becomes a transaction-local
   ``statement_timeout``. A cancelled statement aborts the whole
   transaction, so nothing partial is ever committed.

Activation tokens are stored as SHA-256 digests; the raw token only
exists in the notification.
"""

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any
from uuid import UUID

import psycopg
from psycopg.errors import QueryCanceled
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool, PoolTimeout

from src.domain.credentials import token_digest
from src.domain.exceptions import DeadlineExceeded, StoreUnavailable
from src.domain.ports import ActivationOutcome, ActivationResult, User, UserStatus

logger = logging.getLogger(__name__)

_USER_COLUMNS = "id, email, password_hash, status, profile, created_at, activated_at"


def _row_to_user(row: tuple[Any, ...]) -> User:
    return User(
        id=row[0],
        email=row[1],
        password_hash=row[2],
        status=UserStatus(row[3]),
        profile=row[4] or {},
        created_at=row[5],
        activated_at=row[6],
    )


class PostgresCredentialStore:
    """
    Implements CredentialStore protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    @contextmanager
    def _transaction(self, timeout: float | None) -> Iterator[psycopg.Cursor]:
        """
        Yield a cursor inside a transaction, bounded by timeout seconds.

        Translates driver failures into domain dependency errors.
        """
        try:
            with self._pool.connection(timeout=timeout) as conn:
                with conn.transaction(), conn.cursor() as cursor:
                    if timeout is not None:
                        cursor.execute(
                            "SELECT set_config('statement_timeout', %s, true)",
                            (str(max(1, int(timeout * 1000))),),
                        )
                    yield cursor
        except QueryCanceled as e:
            logger.warning("Store statement cancelled after %.3fs", timeout or 0.0)
            raise DeadlineExceeded("Store operation timed out") from e
        except PoolTimeout as e:
            if timeout is not None:
                raise DeadlineExceeded("No database connection within deadline") from e
            logger.error("Connection pool exhausted: %s", e)
            raise StoreUnavailable("No database connection available") from e
        except psycopg.OperationalError as e:
            logger.error("Credential store unavailable: %s", e)
            raise StoreUnavailable("Credential store unavailable") from e
        except psycopg.Error as e:
            logger.error("Credential store failed: %s: %s", type(e).__name__, e)
            raise StoreUnavailable("Credential store failed") from e

    def find_user_by_email(self, email: str, *, timeout: float | None = None) -> User | None:
        """
        Look up a user by normalized email.

        Args:
            email: Normalized email address (lowercase, stripped)
            timeout: Optional statement budget in seconds

        Returns:
            User record or None
        """
        sql = f"SELECT {_USER_COLUMNS} FROM users WHERE email = %s"
        with self._transaction(timeout) as cursor:
            cursor.execute(sql, (email,))
            row = cursor.fetchone()
        return _row_to_user(row) if row is not None else None

    def find_user_by_id(self, user_id: UUID, *, timeout: float | None = None) -> User | None:
        """Look up a user by id. None if absent."""
        sql = f"SELECT {_USER_COLUMNS} FROM users WHERE id = %s"
        with self._transaction(timeout) as cursor:
            cursor.execute(sql, (user_id,))
            row = cursor.fetchone()
        return _row_to_user(row) if row is not None else None

    def upsert_pending_user(
        self,
        email: str,
        password_hash: str,
        profile: Mapping[str, str],
        token: str,
        issued_at: datetime,
        expires_at: datetime,
        *,
        timeout: float | None = None,
    ) -> UUID | None:
        """
        Atomically create or supersede a PENDING user and its token.

        The WHERE clause on the conflict branch ensures ACTIVE users are
        never overwritten; in that case RETURNING yields no row.

        Returns:
            User id, or None if the email belongs to an ACTIVE user
        """
        upsert_sql = """
            INSERT INTO users (email, password_hash, status, profile, created_at)
            VALUES (%s, %s, %s, %s, %s)
            ON CONFLICT (email) DO UPDATE
            SET password_hash = EXCLUDED.password_hash,
                profile = EXCLUDED.profile,
                created_at = EXCLUDED.created_at
            WHERE users.status = %s
            RETURNING id
        """

        # Invalidate every token previously issued to this user
        purge_sql = "DELETE FROM activation_tokens WHERE user_id = %s"

        insert_token_sql = """
            INSERT INTO activation_tokens (token_hash, user_id, issued_at, expires_at)
            VALUES (%s, %s, %s, %s)
        """

        with self._transaction(timeout) as cursor:
            cursor.execute(
                upsert_sql,
                (
                    email,
                    password_hash,
                    UserStatus.PENDING.value,
                    Jsonb(dict(profile)),
                    issued_at,
                    UserStatus.PENDING.value,
                ),
            )
            row = cursor.fetchone()
            if row is None:
                return None

            user_id = row[0]
            cursor.execute(purge_sql, (user_id,))
            if cursor.rowcount:
                logger.info("Superseded %d activation token(s) for user %s", cursor.rowcount, user_id)
            cursor.execute(insert_token_sql, (token_digest(token), user_id, issued_at, expires_at))
            return user_id

    def consume_token_and_activate(
        self, token: str, now: datetime, *, timeout: float | None = None
    ) -> ActivationResult:
        """
        Redeem a token and activate its user under row-level locks.

        Check order: existence, consumed, user status, expiry.

        Args:
            token: Raw activation token
            now: Current time (UTC) for expiry check and activated_at
            timeout: Optional statement budget in seconds

        Returns:
            ActivationResult with outcome and bound user id (if any)
        """
        select_sql = """
            SELECT t.user_id, t.expires_at, t.consumed, u.status
            FROM activation_tokens t
            JOIN users u ON u.id = t.user_id
            WHERE t.token_hash = %s
            FOR UPDATE OF t, u
        """

        delete_sql = "DELETE FROM activation_tokens WHERE token_hash = %s"

        consume_sql = """
            UPDATE activation_tokens
            SET consumed = TRUE, consumed_at = %s
            WHERE token_hash = %s AND consumed = FALSE
        """

        activate_sql = """
            UPDATE users
            SET status = %s, activated_at = %s
            WHERE id = %s AND status = %s
        """

        digest = token_digest(token)
        with self._transaction(timeout) as cursor:
            cursor.execute(select_sql, (digest,))
            row = cursor.fetchone()

            if row is None:
                return ActivationResult(ActivationOutcome.NOT_FOUND)

            user_id, expires_at, consumed, status = row

            if consumed:
                return ActivationResult(ActivationOutcome.ALREADY_USED, user_id)

            if status == UserStatus.ACTIVE.value:
                return ActivationResult(ActivationOutcome.ALREADY_ACTIVE, user_id)

            if expires_at <= now:
                # Purge so a retry reports NOT_FOUND
                cursor.execute(delete_sql, (digest,))
                return ActivationResult(ActivationOutcome.EXPIRED, user_id)

            cursor.execute(consume_sql, (now, digest))
            cursor.execute(
                activate_sql,
                (UserStatus.ACTIVE.value, now, user_id, UserStatus.PENDING.value),
            )
            return ActivationResult(ActivationOutcome.SUCCESS, user_id)


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
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
