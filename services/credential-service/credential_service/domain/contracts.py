"""Domain-level contracts shared between the service and the credential store."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .account import Account


@dataclass(slots=True)
class CreateAccountInput:
    """Validated, normalised inputs required to persist a new account."""

    account_id: str
    display_name: str
    email: str
    phone: str
    password_hash: str = field(repr=False)


class InsertStatus(str, Enum):
    created = "created"
    duplicate_account_id = "duplicate_account_id"
    duplicate_email = "duplicate_email"


@dataclass(slots=True)
class InsertResult:
    """Result of an insert attempt; ``account`` is only set when created."""

    status: InsertStatus
    account: Account | None = None

    @property
    def created(self) -> bool:
        return self.status is InsertStatus.created
