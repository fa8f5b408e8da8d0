"""Declarative field rules for registration and login payloads.

Each field is described by a :class:`FieldRule`; :func:`validate` walks a rule
table and reports at most one message per failing field. Nothing here touches
the credential store.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Mapping

from email_validator import EmailNotValidError, validate_email

Check = tuple[Callable[[str], bool], str]


@dataclass(frozen=True)
class FieldRule:
    """Validation and normalisation rule for a single submitted field."""

    name: str
    required_message: str
    trim: bool = True
    lowercase: bool = False
    min_length: int | None = None
    max_length: int | None = None
    length_message: str = ""
    pattern: re.Pattern[str] | None = None
    pattern_message: str = ""
    checks: tuple[Check, ...] = ()

    def normalise(self, raw: object) -> str:
        value = "" if raw is None else str(raw)
        if self.trim:
            value = value.strip()
        if self.lowercase:
            value = value.lower()
        return value

    def check(self, raw: object) -> str | None:
        """Return the first message this value violates, or ``None``."""
        value = self.normalise(raw)
        if not value:
            return self.required_message
        if self.min_length is not None and len(value) < self.min_length:
            return self.length_message
        if self.max_length is not None and len(value) > self.max_length:
            return self.length_message
        if self.pattern is not None and not self.pattern.fullmatch(value):
            return self.pattern_message
        for predicate, message in self.checks:
            if not predicate(value):
                return message
        return None


def _is_email(value: str) -> bool:
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def _contains(pattern: str) -> Callable[[str], bool]:
    compiled = re.compile(pattern)
    return lambda value: compiled.search(value) is not None


def _fits_bcrypt(value: str) -> bool:
    return len(value.encode("utf-8")) <= 72


ACCOUNT_ID_RULE = FieldRule(
    name="account_id",
    required_message="User ID is required.",
    min_length=3,
    max_length=50,
    length_message="User ID must be 3–50 characters.",
    pattern=re.compile(r"[A-Za-z0-9_]+"),
    pattern_message="User ID may only contain letters, numbers, and underscores.",
)

REGISTRATION_RULES: tuple[FieldRule, ...] = (
    ACCOUNT_ID_RULE,
    FieldRule(
        name="display_name",
        required_message="Name is required.",
        min_length=2,
        max_length=100,
        length_message="Name must be 2–100 characters.",
    ),
    FieldRule(
        name="email",
        required_message="Email is required.",
        lowercase=True,
        max_length=254,
        length_message="Email must be at most 254 characters.",
        checks=((_is_email, "Please provide a valid email address."),),
    ),
    FieldRule(
        name="phone",
        required_message="Phone number is required.",
        pattern=re.compile(r"[+]?[\d\s\-()]{7,15}", re.ASCII),
        pattern_message="Please provide a valid phone number.",
    ),
    FieldRule(
        name="password",
        required_message="Password is required.",
        trim=False,
        min_length=8,
        length_message="Password must be at least 8 characters.",
        checks=(
            (_contains(r"[A-Z]"), "Password must contain at least one uppercase letter."),
            (_contains(r"[0-9]"), "Password must contain at least one number."),
            (_fits_bcrypt, "Password must be at most 72 bytes long."),
        ),
    ),
)

# Login only checks presence; stored accounts may predate the strength rules.
LOGIN_RULES: tuple[FieldRule, ...] = (
    FieldRule(name="account_id", required_message="User ID is required."),
    FieldRule(name="password", required_message="Password is required.", trim=False),
)


def validate(fields: Mapping[str, object], rules: tuple[FieldRule, ...]) -> dict[str, str]:
    """Map every failing field name to its message; an empty dict means valid."""
    errors: dict[str, str] = {}
    for rule in rules:
        message = rule.check(fields.get(rule.name))
        if message is not None:
            errors[rule.name] = message
    return errors


def clean(fields: Mapping[str, object], rules: tuple[FieldRule, ...]) -> dict[str, str]:
    """Return the normalised value of every field covered by ``rules``."""
    return {rule.name: rule.normalise(fields.get(rule.name)) for rule in rules}


def validate_registration(fields: Mapping[str, object]) -> dict[str, str]:
    return validate(fields, REGISTRATION_RULES)


def validate_login(fields: Mapping[str, object]) -> dict[str, str]:
    return validate(fields, LOGIN_RULES)
