from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
import os

from psycopg.conninfo import make_conninfo

_DATABASE_ENV_VARS = ("DB_HOST", "DB_PORT", "DB_USER", "DB_PASSWORD", "DB_NAME")


@dataclass(frozen=True)
class Settings:
    """Runtime configuration values exposed to FastAPI components."""

    app_name: str = "credential-service"
    version: str = "0.1.0"
    environment: str = os.getenv("APP_ENV", "development").lower()
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    db_host: str = os.getenv("DB_HOST", "localhost")
    db_port: int = int(os.getenv("DB_PORT", "5432"))
    db_user: str = os.getenv("DB_USER", "postgres")
    db_password: str = os.getenv("DB_PASSWORD", "")
    db_name: str = os.getenv("DB_NAME", "credentials")
    db_sslmode: str = os.getenv("DB_SSLMODE", "prefer")
    database_url_override: str = os.getenv("DATABASE_URL", "")
    db_pool_min_size: int = int(os.getenv("DB_POOL_MIN_SIZE", "1"))
    db_pool_max_size: int = int(os.getenv("DB_POOL_MAX_SIZE", "10"))
    db_connect_timeout: float = float(os.getenv("DB_CONNECT_TIMEOUT", "30"))
    frontend_url: str = os.getenv("FRONTEND_URL", "http://localhost:3000")
    http_host: str = os.getenv("HTTP_HOST", "0.0.0.0")
    http_port: int = int(os.getenv("PORT", "5000"))
    bcrypt_rounds: int = int(os.getenv("BCRYPT_ROUNDS", "10"))
    max_body_bytes: int = int(os.getenv("MAX_BODY_BYTES", "10240"))
    configured_env: frozenset[str] = field(
        default_factory=lambda: frozenset(name for name in _DATABASE_ENV_VARS if os.getenv(name))
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def database_url(self) -> str:
        """Return the libpq connection string for the credential database."""
        if self.database_url_override:
            return self.database_url_override
        return make_conninfo(
            host=self.db_host,
            port=self.db_port,
            user=self.db_user,
            password=self.db_password,
            dbname=self.db_name,
            sslmode=self.db_sslmode,
        )

    def missing_database_settings(self) -> list[str]:
        """Return the storage environment variables that were not supplied."""
        if self.database_url_override:
            return []
        return [name for name in _DATABASE_ENV_VARS if name not in self.configured_env]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached Settings instance for the running process."""
    return Settings()
