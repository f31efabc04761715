"""
PostgreSQL repository adapter - Implements AccountRepository protocol.

This module provides the PostgreSQL implementation of the domain's
repository port using psycopg3 with raw SQL.

Atomicity Design:
-----------------
Every mutation is one UPDATE/INSERT statement against a single row, with
``RETURNING`` to hand back the updated row in the same round trip. There
are no multi-statement transactions and no row locks held across calls.

1. **create_account**: ``INSERT ... ON CONFLICT (email) DO NOTHING``. The
   UNIQUE constraint on email settles concurrent registrations.

2. **record_failed_login**: the attempt increment and the lockout decision
   are computed in SQL from the row's current values, so two concurrent
   failures are both counted. The ``WHERE`` guard skips the update when
   the account is already locked.

3. **mark_verified / set_verification_token**: guarded on
   ``is_verified = FALSE`` so verification happens exactly once;
   mark_verified also requires the presented token to still be the
   outstanding, unexpired one.

4. **consume_reset_token**: the reset token is matched and cleared by the
   same UPDATE that stores the new hash, making it single-use under
   concurrency.

Connections are acquired with a bounded wait (``PoolTimeout`` on
exhaustion). A connection held longer than the configured threshold is
logged as a warning; it is not terminated.
"""

import logging
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

from psycopg import Connection
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from accountguard.domain.account import Account

logger = logging.getLogger(__name__)

_COLUMNS = """
    id, name, email, password_hash, is_verified,
    verification_token, verification_token_expires_at, verified_token_hash,
    reset_token, reset_token_expires_at,
    login_attempts, lockout_until, created_at, updated_at
"""


def _row_to_account(row: dict[str, Any]) -> Account:
    return Account(
        id=str(row["id"]),
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        is_verified=row["is_verified"],
        verification_token=row["verification_token"],
        verification_token_expires_at=row["verification_token_expires_at"],
        verified_token_hash=row["verified_token_hash"],
        reset_token=row["reset_token"],
        reset_token_expires_at=row["reset_token_expires_at"],
        login_attempts=row["login_attempts"],
        lockout_until=row["lockout_until"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _as_uuid(account_id: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(account_id)
    except ValueError:
        return None


class PostgresAccountRepository:
    """
    Implements AccountRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(
        self,
        pool: ConnectionPool,
        *,
        acquire_timeout: float | None = None,
        hold_warning_seconds: float = 5.0,
    ) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
            acquire_timeout: Max seconds to wait for a free connection
                (None uses the pool's own timeout)
            hold_warning_seconds: Log a warning when a connection is held longer
        """
        self._pool = pool
        self._acquire_timeout = acquire_timeout
        self._hold_warning_seconds = hold_warning_seconds

    @contextmanager
    def _connection(self) -> Iterator[Connection]:
        started = time.monotonic()
        with self._pool.connection(timeout=self._acquire_timeout) as conn:
            yield conn
        held = time.monotonic() - started
        if held > self._hold_warning_seconds:
            logger.warning("Database connection held for %.1fs", held)

    def _fetch_one(self, sql: str, params: tuple | dict) -> Account | None:
        with self._connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, params)
            row = cursor.fetchone()
            conn.commit()
        return _row_to_account(row) if row is not None else None

    def ping(self) -> None:
        """Round-trip a trivial query; raises if the database is unreachable."""
        with self._connection() as conn:
            conn.execute("SELECT 1")

    def create_account(
        self,
        name: str,
        email: str,
        password_hash: str,
        verification_token: str,
        verification_token_expires_at: datetime,
    ) -> Account | None:
        """
        Insert a new unverified account.

        Returns:
            The created Account, or None if the email already exists
        """
        sql = f"""
            INSERT INTO accounts (
                name, email, password_hash, is_verified,
                verification_token, verification_token_expires_at, login_attempts
            )
            VALUES (%s, %s, %s, FALSE, %s, %s, 0)
            ON CONFLICT (email) DO NOTHING
            RETURNING {_COLUMNS}
        """
        return self._fetch_one(
            sql,
            (name, email, password_hash, verification_token, verification_token_expires_at),
        )

    def get_by_id(self, account_id: str) -> Account | None:
        key = _as_uuid(account_id)
        if key is None:
            return None
        return self._fetch_one(f"SELECT {_COLUMNS} FROM accounts WHERE id = %s", (key,))

    def get_by_email(self, email: str) -> Account | None:
        return self._fetch_one(f"SELECT {_COLUMNS} FROM accounts WHERE email = %s", (email,))

    def get_by_verification_token(self, token: str) -> Account | None:
        return self._fetch_one(
            f"SELECT {_COLUMNS} FROM accounts WHERE verification_token = %s", (token,)
        )

    def get_by_verified_token_hash(self, token_hash: str) -> Account | None:
        return self._fetch_one(
            f"SELECT {_COLUMNS} FROM accounts WHERE verified_token_hash = %s", (token_hash,)
        )

    def get_by_reset_token(self, token: str) -> Account | None:
        return self._fetch_one(f"SELECT {_COLUMNS} FROM accounts WHERE reset_token = %s", (token,))

    def mark_verified(
        self,
        account_id: str,
        token: str,
        verified_token_hash: str,
        *,
        now: datetime,
    ) -> Account | None:
        sql = f"""
            UPDATE accounts
            SET is_verified = TRUE,
                verification_token = NULL,
                verification_token_expires_at = NULL,
                verified_token_hash = %(hash)s,
                updated_at = NOW()
            WHERE id = %(id)s
              AND is_verified = FALSE
              AND verification_token = %(token)s
              AND verification_token_expires_at > %(now)s
            RETURNING {_COLUMNS}
        """
        params = {
            "id": _as_uuid(account_id),
            "token": token,
            "hash": verified_token_hash,
            "now": now,
        }
        return self._fetch_one(sql, params)

    def set_verification_token(
        self, account_id: str, token: str, expires_at: datetime
    ) -> Account | None:
        sql = f"""
            UPDATE accounts
            SET verification_token = %s,
                verification_token_expires_at = %s,
                updated_at = NOW()
            WHERE id = %s AND is_verified = FALSE
            RETURNING {_COLUMNS}
        """
        return self._fetch_one(sql, (token, expires_at, _as_uuid(account_id)))

    def set_reset_token(self, account_id: str, token: str, expires_at: datetime) -> Account | None:
        sql = f"""
            UPDATE accounts
            SET reset_token = %s,
                reset_token_expires_at = %s,
                updated_at = NOW()
            WHERE id = %s
            RETURNING {_COLUMNS}
        """
        return self._fetch_one(sql, (token, expires_at, _as_uuid(account_id)))

    def record_failed_login(
        self,
        account_id: str,
        *,
        now: datetime,
        threshold: int,
        lockout_until: datetime,
    ) -> Account | None:
        """
        Count a failed login and set the lockout in one conditional UPDATE.

        SET expressions see the pre-update row, so the new attempt count is
        computed once in ``next_attempts`` terms for both columns. A lapsed
        lockout restarts the count at 1.
        """
        next_attempts = """
            CASE
                WHEN lockout_until IS NOT NULL AND lockout_until <= %(now)s THEN 1
                ELSE login_attempts + 1
            END
        """
        sql = f"""
            UPDATE accounts
            SET login_attempts = {next_attempts},
                lockout_until = CASE
                    WHEN {next_attempts} >= %(threshold)s THEN %(lockout_until)s
                    ELSE NULL
                END,
                updated_at = NOW()
            WHERE id = %(id)s
              AND (lockout_until IS NULL OR lockout_until <= %(now)s)
            RETURNING {_COLUMNS}
        """
        params = {
            "id": _as_uuid(account_id),
            "now": now,
            "threshold": threshold,
            "lockout_until": lockout_until,
        }
        return self._fetch_one(sql, params)

    def record_successful_login(self, account_id: str) -> Account | None:
        sql = f"""
            UPDATE accounts
            SET login_attempts = 0,
                lockout_until = NULL,
                updated_at = NOW()
            WHERE id = %s
            RETURNING {_COLUMNS}
        """
        return self._fetch_one(sql, (_as_uuid(account_id),))

    def consume_reset_token(
        self, token: str, password_hash: str, *, now: datetime
    ) -> Account | None:
        """
        Replace the password if ``token`` is still the row's unexpired reset token.

        The token check and the write are one statement, so of two
        concurrent resets with the same token only one matches.
        """
        sql = f"""
            UPDATE accounts
            SET password_hash = %(hash)s,
                reset_token = NULL,
                reset_token_expires_at = NULL,
                login_attempts = 0,
                lockout_until = NULL,
                updated_at = NOW()
            WHERE reset_token = %(token)s
              AND reset_token_expires_at > %(now)s
            RETURNING {_COLUMNS}
        """
        return self._fetch_one(sql, {"hash": password_hash, "token": token, "now": now})

    def replace_password(self, account_id: str, password_hash: str) -> Account | None:
        sql = f"""
            UPDATE accounts
            SET password_hash = %s,
                reset_token = NULL,
                reset_token_expires_at = NULL,
                login_attempts = 0,
                lockout_until = NULL,
                updated_at = NOW()
            WHERE id = %s
            RETURNING {_COLUMNS}
        """
        return self._fetch_one(sql, (password_hash, _as_uuid(account_id)))


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: accountguard/adapters/repository/postgres.py -> migrations/
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
