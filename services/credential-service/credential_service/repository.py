"""Postgres-backed credential store."""

from __future__ import annotations

import logging

import psycopg
from psycopg import errors
from psycopg.rows import tuple_row
from psycopg_pool import ConnectionPool

from .domain.account import Account
from .domain.contracts import CreateAccountInput, InsertResult, InsertStatus
from .schema import EMAIL_CONSTRAINT

logger = logging.getLogger(__name__)

_ACCOUNT_COLUMNS = "account_id, display_name, email, phone, created_at, password_hash"
DEFAULT_PING_TIMEOUT = 2.0


class StoreUnavailableError(RuntimeError):
    """Raised when the credential store cannot serve a query."""


class CredentialRepository:
    """Account persistence through parameterised queries on a pooled connection."""

    def __init__(self, pool: ConnectionPool, ping_timeout: float = DEFAULT_PING_TIMEOUT) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool
        self._ping_timeout = ping_timeout

    def find_by_id(self, account_id: str) -> Account | None:
        """Return the account with ``account_id`` or ``None``."""
        return self._fetch_one(
            f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE account_id = %s",
            (account_id,),
        )

    def find_by_email(self, email: str) -> Account | None:
        """Return the account registered under a normalised ``email`` or ``None``."""
        return self._fetch_one(
            f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE email = %s",
            (email,),
        )

    def insert(self, payload: CreateAccountInput) -> InsertResult:
        """Insert a new account, relying on table constraints to reject duplicates."""
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(
                        f"""
                        INSERT INTO accounts (account_id, display_name, password_hash, email, phone)
                        VALUES (%s, %s, %s, %s, %s)
                        RETURNING {_ACCOUNT_COLUMNS}
                        """,
                        (
                            payload.account_id,
                            payload.display_name,
                            payload.password_hash,
                            payload.email,
                            payload.phone,
                        ),
                    )
                    row = cur.fetchone()
                conn.commit()
        except errors.UniqueViolation as exc:
            constraint = exc.diag.constraint_name or ""
            logger.info("insert rejected by unique constraint %r", constraint)
            if constraint == EMAIL_CONSTRAINT:
                return InsertResult(InsertStatus.duplicate_email)
            return InsertResult(InsertStatus.duplicate_account_id)
        except psycopg.Error as exc:
            raise StoreUnavailableError(str(exc)) from exc
        return InsertResult(InsertStatus.created, self._map_record(row))

    def ping(self) -> bool:
        """Return ``True`` when a connection can be acquired and answers ``SELECT 1``."""
        try:
            with self._pool.connection(timeout=self._ping_timeout) as conn:
                conn.execute("SELECT 1")
        except psycopg.Error as exc:
            logger.warning("database ping failed: %s", exc)
            return False
        return True

    def _fetch_one(self, query: str, params: tuple) -> Account | None:
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(query, params)
                    row = cur.fetchone()
        except psycopg.Error as exc:
            raise StoreUnavailableError(str(exc)) from exc
        if not row:
            return None
        return self._map_record(row)

    def _map_record(self, row: tuple) -> Account:
        """Convert a raw database tuple into the domain ``Account`` dataclass."""
        return Account(
            account_id=row[0],
            display_name=row[1],
            email=row[2],
            phone=row[3],
            created_at=row[4],
            password_hash=row[5],
        )
