"""Idempotent bootstrap of the ``accounts`` table."""

from __future__ import annotations

import logging

import psycopg
from psycopg_pool import ConnectionPool

logger = logging.getLogger(__name__)

ACCOUNT_ID_CONSTRAINT = "accounts_pkey"
EMAIL_CONSTRAINT = "accounts_email_key"

CREATE_ACCOUNTS_TABLE = f"""
    CREATE TABLE IF NOT EXISTS accounts (
        account_id    VARCHAR(50)  CONSTRAINT {ACCOUNT_ID_CONSTRAINT} PRIMARY KEY,
        display_name  VARCHAR(100) NOT NULL,
        password_hash VARCHAR(255) NOT NULL,
        email         VARCHAR(254) NOT NULL CONSTRAINT {EMAIL_CONSTRAINT} UNIQUE,
        phone         VARCHAR(20)  NOT NULL,
        created_at    TIMESTAMPTZ  NOT NULL DEFAULT NOW()
    )
"""


def ensure_schema(pool: ConnectionPool, timeout: float | None = None) -> bool:
    """Create the accounts table if it is absent.

    Safe to call on every start. Storage problems are logged and reported as
    ``False`` so the caller can keep serving a degraded health signal.
    """
    try:
        with pool.connection(timeout=timeout) as conn:
            with conn.cursor() as cur:
                cur.execute(CREATE_ACCOUNTS_TABLE)
            conn.commit()
    except psycopg.Error as exc:
        logger.error("database init failed: %s", exc)
        return False
    logger.info("database: accounts table ready")
    return True
