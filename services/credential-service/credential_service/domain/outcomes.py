"""Explicit result types returned by the auth service.

Every register/login call terminates in exactly one of these values; the HTTP
layer maps them to status codes without inspecting exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

REGISTERED_MESSAGE = "Registration successful! You can now sign in."
AUTHENTICATED_MESSAGE = "Login successful. Welcome back!"
UNAUTHORIZED_MESSAGE = "Invalid User ID or password."
STORE_UNAVAILABLE_MESSAGE = "The credential store is currently unavailable. Please try again later."
INTERNAL_MESSAGE = "An unexpected server error occurred. Please try again later."


class ConflictField(str, Enum):
    account_id = "account_id"
    email = "email"


@dataclass(slots=True, frozen=True)
class Registered:
    account_id: str
    message: str = REGISTERED_MESSAGE


@dataclass(slots=True, frozen=True)
class Authenticated:
    account_id: str
    display_name: str
    message: str = AUTHENTICATED_MESSAGE


@dataclass(slots=True, frozen=True)
class ValidationFailed:
    """One or more submitted fields broke a validation rule."""

    errors: dict[str, str] = field(default_factory=dict)

    @property
    def message(self) -> str:
        return next(iter(self.errors.values()), "Invalid request.")


@dataclass(slots=True, frozen=True)
class Conflict:
    field: ConflictField
    message: str

    @classmethod
    def for_account_id(cls, account_id: str) -> "Conflict":
        return cls(
            field=ConflictField.account_id,
            message=f'User ID "{account_id}" is already taken. Please choose a different one.',
        )

    @classmethod
    def for_email(cls) -> "Conflict":
        return cls(
            field=ConflictField.email,
            message="An account with that email address already exists. Try signing in instead.",
        )


@dataclass(slots=True, frozen=True)
class Unauthorized:
    message: str = UNAUTHORIZED_MESSAGE


@dataclass(slots=True, frozen=True)
class StoreUnavailable:
    message: str = STORE_UNAVAILABLE_MESSAGE


@dataclass(slots=True, frozen=True)
class Internal:
    detail: str = ""
    message: str = INTERNAL_MESSAGE


RegisterOutcome = Union[Registered, ValidationFailed, Conflict, StoreUnavailable, Internal]
LoginOutcome = Union[Authenticated, ValidationFailed, Unauthorized, StoreUnavailable, Internal]
