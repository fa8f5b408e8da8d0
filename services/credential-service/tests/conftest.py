from __future__ import annotations

from datetime import datetime, timezone

import pytest

from credential_service.domain.account import Account
from credential_service.domain.contracts import CreateAccountInput, InsertResult, InsertStatus
from credential_service.domain.service import AuthService
from credential_service.main import create_app
from credential_service.repository import StoreUnavailableError
from credential_service.security.passwords import PasswordHasher


class FakeRepository:
    """In-memory credential store enforcing the same uniqueness rules as Postgres."""

    def __init__(self) -> None:
        self.accounts: dict[str, Account] = {}
        self.available = True
        self.queries: list[str] = []

    def _check(self) -> None:
        if not self.available:
            raise StoreUnavailableError("connection refused")

    def find_by_id(self, account_id: str) -> Account | None:
        self._check()
        self.queries.append("find_by_id")
        return self.accounts.get(account_id)

    def find_by_email(self, email: str) -> Account | None:
        self._check()
        self.queries.append("find_by_email")
        for account in self.accounts.values():
            if account.email == email:
                return account
        return None

    def insert(self, payload: CreateAccountInput) -> InsertResult:
        self._check()
        self.queries.append("insert")
        if payload.account_id in self.accounts:
            return InsertResult(InsertStatus.duplicate_account_id)
        if any(account.email == payload.email for account in self.accounts.values()):
            return InsertResult(InsertStatus.duplicate_email)
        account = Account(
            account_id=payload.account_id,
            display_name=payload.display_name,
            email=payload.email,
            phone=payload.phone,
            created_at=datetime.now(timezone.utc),
            password_hash=payload.password_hash,
        )
        self.accounts[payload.account_id] = account
        return InsertResult(InsertStatus.created, account)

    def ping(self) -> bool:
        return self.available


class RacingRepository(FakeRepository):
    """Pre-checks never see the competing writer; only the insert does."""

    def find_by_id(self, account_id: str) -> Account | None:
        self._check()
        return None

    def find_by_email(self, email: str) -> Account | None:
        self._check()
        return None


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def hasher() -> PasswordHasher:
    # minimum bcrypt cost keeps the suite fast
    return PasswordHasher(rounds=4)


@pytest.fixture
def service(repository: FakeRepository, hasher: PasswordHasher) -> AuthService:
    return AuthService(repository, hasher)


@pytest.fixture
def app(repository: FakeRepository, service: AuthService):
    """Application with its lifespan skipped and fake collaborators on state."""
    application = create_app()
    application.state.repository = repository
    application.state.auth_service = service
    return application


@pytest.fixture
def alice() -> dict[str, str]:
    return {
        "accountId": "alice_01",
        "displayName": "Alice",
        "email": "Alice@Example.com",
        "phone": "+1-555-0100",
        "password": "Secur3Pass",
    }
