"""FastAPI application wiring for the credential service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from psycopg_pool import ConnectionPool

from .api.errors import setup_exception_handlers
from .api.routes import failure_response
from .api.routes import router as auth_router
from .config import Settings, get_settings
from .domain.service import AuthService
from .repository import CredentialRepository
from .schema import ensure_schema
from .security.passwords import PasswordHasher

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
}


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application; resources are created by the lifespan handler."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the Postgres pool, bootstrap the schema and wire the auth service."""
        missing = settings.missing_database_settings()
        if missing:
            logger.warning(
                "database settings not set: %s; the server will start but register/login will fail",
                ", ".join(missing),
            )
        pool = ConnectionPool(
            settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            timeout=settings.db_connect_timeout,
            open=False,
        )
        pool.open()
        repository = CredentialRepository(pool)
        app.state.pool = pool
        app.state.repository = repository
        app.state.auth_service = AuthService(repository, PasswordHasher(settings.bcrypt_rounds))
        app.state.schema_ready = ensure_schema(pool, timeout=settings.db_connect_timeout)
        if not app.state.schema_ready:
            logger.warning("could not initialise the database; serving degraded until it is reachable")
        logger.info("frontend origin: %s", settings.frontend_url)
        try:
            yield
        finally:
            pool.close()

    app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        max_age=600,
    )

    @app.middleware("http")
    async def guard_requests(request: Request, call_next):
        """Reject oversized bodies, add security headers and log in development."""
        length = request.headers.get("content-length")
        if length and length.isdigit() and int(length) > settings.max_body_bytes:
            response = failure_response(
                status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "Request body is too large."
            )
        else:
            response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        if not settings.is_production:
            logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
        return response

    setup_exception_handlers(app)
    app.include_router(auth_router)

    @app.get("/metrics", include_in_schema=False)
    def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host=settings.http_host, port=settings.http_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
