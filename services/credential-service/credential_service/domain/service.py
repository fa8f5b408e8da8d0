"""Auth service orchestrating validation, credential storage and password hashing."""

from __future__ import annotations

import logging
from typing import Mapping, Protocol

from .account import Account
from .contracts import CreateAccountInput, InsertResult, InsertStatus
from .outcomes import (
    Authenticated,
    Conflict,
    Internal,
    LoginOutcome,
    Registered,
    RegisterOutcome,
    StoreUnavailable,
    Unauthorized,
    ValidationFailed,
)
from ..repository import StoreUnavailableError
from ..security.passwords import PasswordHasher
from ..validation import LOGIN_RULES, REGISTRATION_RULES, clean, validate

logger = logging.getLogger(__name__)


class CredentialStore(Protocol):
    def find_by_id(self, account_id: str) -> Account | None: ...

    def find_by_email(self, email: str) -> Account | None: ...

    def insert(self, payload: CreateAccountInput) -> InsertResult: ...


class AuthService:
    """Registration and login workflows.

    Both operations are single pass and never raise: every path ends in one
    of the outcome types from :mod:`.outcomes`.
    """

    def __init__(self, repository: CredentialStore, hasher: PasswordHasher) -> None:
        """Store the collaborators used by the register and login flows."""
        self._repository = repository
        self._hasher = hasher

    def register(self, fields: Mapping[str, object]) -> RegisterOutcome:
        """Validate and persist a new account.

        The lookups by id and email are an early exit only; the insert's own
        uniqueness constraints decide conflicts that race past them.
        """
        errors = validate(fields, REGISTRATION_RULES)
        if errors:
            return ValidationFailed(errors)
        values = clean(fields, REGISTRATION_RULES)
        account_id = values["account_id"]

        try:
            if self._repository.find_by_id(account_id) is not None:
                logger.info("registration conflict on account id %s", account_id)
                return Conflict.for_account_id(account_id)
            if self._repository.find_by_email(values["email"]) is not None:
                logger.info("registration conflict on email for account id %s", account_id)
                return Conflict.for_email()

            result = self._repository.insert(
                CreateAccountInput(
                    account_id=account_id,
                    display_name=values["display_name"],
                    email=values["email"],
                    phone=values["phone"],
                    password_hash=self._hasher.hash(values["password"]),
                )
            )
        except StoreUnavailableError as exc:
            logger.error("registration failed, credential store unavailable: %s", exc)
            return StoreUnavailable()
        except Exception as exc:
            logger.exception("registration failed unexpectedly")
            return Internal(detail=str(exc))

        if result.status is InsertStatus.duplicate_account_id:
            logger.info("concurrent registration took account id %s", account_id)
            return Conflict.for_account_id(account_id)
        if result.status is InsertStatus.duplicate_email:
            logger.info("concurrent registration took email for account id %s", account_id)
            return Conflict.for_email()

        logger.info("account %s registered", account_id)
        return Registered(account_id=account_id)

    def login(self, account_id: object, password: object) -> LoginOutcome:
        """Check credentials; unknown accounts and wrong passwords look the same."""
        fields = {"account_id": account_id, "password": password}
        errors = validate(fields, LOGIN_RULES)
        if errors:
            return ValidationFailed(errors)
        values = clean(fields, LOGIN_RULES)

        try:
            account = self._repository.find_by_id(values["account_id"])
            if account is None or not self._hasher.verify(values["password"], account.password_hash):
                logger.info("failed login for account id %s", values["account_id"])
                return Unauthorized()
        except StoreUnavailableError as exc:
            logger.error("login failed, credential store unavailable: %s", exc)
            return StoreUnavailable()
        except Exception as exc:
            logger.exception("login failed unexpectedly")
            return Internal(detail=str(exc))

        return Authenticated(account_id=account.account_id, display_name=account.display_name)
