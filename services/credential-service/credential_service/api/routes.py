"""HTTP route definitions for the credential service."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from prometheus_client import Counter
from pydantic import BaseModel, ConfigDict, Field

from ..config import get_settings
from ..domain.outcomes import (
    Authenticated,
    Conflict,
    Internal,
    Registered,
    StoreUnavailable,
    Unauthorized,
    ValidationFailed,
)
from ..domain.service import AuthService
from ..repository import CredentialRepository

logger = logging.getLogger(__name__)

router = APIRouter()

AUTH_OUTCOMES = Counter(
    "credential_auth_outcomes_total",
    "Register and login requests by outcome.",
    ["operation", "outcome"],
)

# Endpoints whose malformed requests are answered with 400 rather than 422.
BAD_REQUEST_PATHS = frozenset({"/login"})

# Domain field name -> JSON field name used by the frontend.
WIRE_FIELD_NAMES = {
    "account_id": "accountId",
    "display_name": "displayName",
    "email": "email",
    "phone": "phone",
    "password": "password",
}


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class RegisterRequest(_WireModel):
    """Payload accepted when registering a new account.

    Fields are optional so the field validator, not the schema, reports
    every missing or null value.
    """

    account_id: str | None = Field(default=None, alias="accountId")
    display_name: str | None = Field(default=None, alias="displayName")
    email: str | None = None
    phone: str | None = None
    password: str | None = None


class LoginRequest(_WireModel):
    """Credentials submitted to the login endpoint."""

    account_id: str | None = Field(default=None, alias="accountId")
    password: str | None = None


class AccountSummary(_WireModel):
    account_id: str = Field(alias="accountId")
    display_name: str = Field(alias="displayName")


class RegisterResponse(BaseModel):
    success: bool = True
    message: str


class LoginResponse(BaseModel):
    success: bool = True
    message: str
    account: AccountSummary


def get_service(request: Request) -> AuthService:
    """Resolve the `AuthService` stored on the FastAPI application state."""
    service: AuthService = request.app.state.auth_service
    return service


def failure_response(status_code: int, message: str, **extra: object) -> JSONResponse:
    """Build the ``{success: false, message}`` body shared by every failure."""
    return JSONResponse(status_code=status_code, content={"success": False, "message": message, **extra})


def validation_failure(outcome: ValidationFailed, status_code: int) -> JSONResponse:
    errors = [
        {"field": WIRE_FIELD_NAMES.get(name, name), "message": message}
        for name, message in outcome.errors.items()
    ]
    return failure_response(status_code, outcome.message, errors=errors)


def _internal_failure(outcome: Internal) -> JSONResponse:
    if get_settings().is_production or not outcome.detail:
        return failure_response(status.HTTP_500_INTERNAL_SERVER_ERROR, outcome.message)
    return failure_response(status.HTTP_500_INTERNAL_SERVER_ERROR, outcome.message, detail=outcome.detail)


@router.get("/", tags=["meta"])
def index() -> dict[str, object]:
    """Describe the service and list its endpoints."""
    return {
        "success": True,
        "message": "Credential service API is active",
        "endpoints": {"health": "/health", "login": "/login", "register": "/register"},
    }


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {}, 422: {}, 500: {}},
)
def register(
    payload: RegisterRequest | None = None,
    service: AuthService = Depends(get_service),
):
    """Create an account from the submitted registration form."""
    payload = payload or RegisterRequest()
    outcome = service.register(payload.model_dump())
    AUTH_OUTCOMES.labels("register", type(outcome).__name__).inc()

    if isinstance(outcome, Registered):
        return RegisterResponse(message=outcome.message)
    if isinstance(outcome, ValidationFailed):
        return validation_failure(outcome, status.HTTP_422_UNPROCESSABLE_ENTITY)
    if isinstance(outcome, Conflict):
        return failure_response(status.HTTP_409_CONFLICT, outcome.message)
    if isinstance(outcome, StoreUnavailable):
        return failure_response(status.HTTP_500_INTERNAL_SERVER_ERROR, outcome.message)
    return _internal_failure(outcome)


@router.post("/login", response_model=LoginResponse, responses={400: {}, 401: {}, 500: {}})
def login(
    payload: LoginRequest | None = None,
    service: AuthService = Depends(get_service),
):
    """Authenticate an account by id and password."""
    payload = payload or LoginRequest()
    outcome = service.login(payload.account_id, payload.password)
    AUTH_OUTCOMES.labels("login", type(outcome).__name__).inc()

    if isinstance(outcome, Authenticated):
        return LoginResponse(
            message=outcome.message,
            account=AccountSummary(account_id=outcome.account_id, display_name=outcome.display_name),
        )
    if isinstance(outcome, ValidationFailed):
        return validation_failure(outcome, status.HTTP_400_BAD_REQUEST)
    if isinstance(outcome, Unauthorized):
        return failure_response(status.HTTP_401_UNAUTHORIZED, outcome.message)
    if isinstance(outcome, StoreUnavailable):
        return failure_response(status.HTTP_500_INTERNAL_SERVER_ERROR, outcome.message)
    return _internal_failure(outcome)


@router.get("/health", tags=["health"])
def health(request: Request) -> JSONResponse:
    """Report whether the credential database is reachable."""
    repository: CredentialRepository | None = getattr(request.app.state, "repository", None)
    now = datetime.now(timezone.utc).isoformat()
    if repository is not None and repository.ping():
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content={"status": "ok", "database": "connected", "time": now},
        )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "degraded", "database": "disconnected", "time": now},
    )
