from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from psycopg import OperationalError, errors

from credential_service.domain.contracts import CreateAccountInput, InsertStatus
from credential_service.repository import DEFAULT_PING_TIMEOUT, CredentialRepository, StoreUnavailableError
from credential_service.schema import CREATE_ACCOUNTS_TABLE, ensure_schema

CREATED_AT = datetime(2024, 1, 2, tzinfo=timezone.utc)
ROW = ("alice_01", "Alice", "alice@example.com", "+1-555-0100", CREATED_AT, "$2b$10$digest")


class FakeCursor:
    def __init__(self, conn: "FakeConnection") -> None:
        self._conn = conn

    def __enter__(self) -> "FakeCursor":
        return self

    def __exit__(self, *exc) -> None:
        return None

    def execute(self, query, params=None):
        self._conn.executed.append((" ".join(query.split()), params))
        if self._conn.error is not None:
            raise self._conn.error

    def fetchone(self):
        return self._conn.rows.pop(0) if self._conn.rows else None


class FakeConnection:
    def __init__(self) -> None:
        self.executed: list[tuple[str, tuple | None]] = []
        self.rows: list[tuple] = []
        self.error: Exception | None = None
        self.commits = 0

    def cursor(self, row_factory=None) -> FakeCursor:
        return FakeCursor(self)

    def execute(self, query, params=None):
        return FakeCursor(self).execute(query, params)

    def commit(self) -> None:
        self.commits += 1


class FakePool:
    """Stands in for ``psycopg_pool.ConnectionPool`` with a single shared connection."""

    def __init__(self) -> None:
        self.conn = FakeConnection()
        self.timeouts: list[float | None] = []

    @contextmanager
    def connection(self, timeout=None):
        self.timeouts.append(timeout)
        yield self.conn


class EmailViolation(errors.UniqueViolation):
    @property
    def diag(self):
        return SimpleNamespace(constraint_name="accounts_email_key")


@pytest.fixture
def pool() -> FakePool:
    return FakePool()


def _payload() -> CreateAccountInput:
    return CreateAccountInput(
        account_id="alice_01",
        display_name="Alice",
        email="alice@example.com",
        phone="+1-555-0100",
        password_hash="$2b$10$digest",
    )


def test_find_by_id_uses_bound_parameters(pool):
    pool.conn.rows.append(ROW)
    account = CredentialRepository(pool).find_by_id("alice_01'; DROP TABLE accounts; --")
    query, params = pool.conn.executed[0]
    assert "WHERE account_id = %s" in query
    assert "DROP" not in query
    assert params == ("alice_01'; DROP TABLE accounts; --",)
    assert account is not None
    assert account.display_name == "Alice"
    assert account.created_at == CREATED_AT
    assert account.password_hash == "$2b$10$digest"


def test_find_by_email_returns_none_when_absent(pool):
    assert CredentialRepository(pool).find_by_email("ghost@example.com") is None
    query, params = pool.conn.executed[0]
    assert "WHERE email = %s" in query
    assert params == ("ghost@example.com",)


def test_insert_returns_created_account(pool):
    pool.conn.rows.append(ROW)
    result = CredentialRepository(pool).insert(_payload())
    query, params = pool.conn.executed[0]
    assert query.startswith("INSERT INTO accounts")
    assert params == ("alice_01", "Alice", "$2b$10$digest", "alice@example.com", "+1-555-0100")
    assert result.created
    assert result.account.account_id == "alice_01"
    assert pool.conn.commits == 1


def test_insert_maps_primary_key_violation(pool):
    pool.conn.error = errors.UniqueViolation("duplicate key value violates unique constraint")
    result = CredentialRepository(pool).insert(_payload())
    assert result.status is InsertStatus.duplicate_account_id
    assert result.account is None


def test_insert_maps_email_violation(pool):
    pool.conn.error = EmailViolation("duplicate key value violates unique constraint")
    result = CredentialRepository(pool).insert(_payload())
    assert result.status is InsertStatus.duplicate_email


@pytest.mark.parametrize(
    "error",
    [OperationalError("connection refused"), errors.UndefinedTable('relation "accounts" does not exist')],
)
def test_other_store_errors_raise_store_unavailable(pool, error):
    pool.conn.error = error
    repository = CredentialRepository(pool)
    with pytest.raises(StoreUnavailableError):
        repository.find_by_id("alice_01")
    with pytest.raises(StoreUnavailableError):
        repository.insert(_payload())


def test_ping_reports_connectivity(pool):
    repository = CredentialRepository(pool)
    assert repository.ping() is True
    assert pool.timeouts == [DEFAULT_PING_TIMEOUT]
    pool.conn.error = OperationalError("connection refused")
    assert repository.ping() is False


def test_ensure_schema_is_idempotent(pool):
    assert ensure_schema(pool, timeout=5) is True
    assert ensure_schema(pool, timeout=5) is True
    statements = [query for query, _ in pool.conn.executed]
    assert statements == [" ".join(CREATE_ACCOUNTS_TABLE.split())] * 2
    assert "CREATE TABLE IF NOT EXISTS accounts" in statements[0]
    assert "PRIMARY KEY" in statements[0]
    assert "CONSTRAINT accounts_email_key UNIQUE" in statements[0]
    assert pool.timeouts == [5, 5]


def test_ensure_schema_reports_unreachable_storage(pool):
    pool.conn.error = OperationalError("could not connect to server")
    assert ensure_schema(pool) is False


def test_ping_uses_its_own_short_timeout(pool):
    CredentialRepository(pool, ping_timeout=0.5).ping()
    assert pool.timeouts == [0.5]
