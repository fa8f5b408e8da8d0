from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(slots=True)
class Account:
    """Persisted identity record for a catalog user."""

    account_id: str
    display_name: str
    email: str
    phone: str
    created_at: datetime
    password_hash: str = field(repr=False, default="")
