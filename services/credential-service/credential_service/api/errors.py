"""Application-wide exception handlers producing the service's JSON error shape."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..config import get_settings
from ..domain.outcomes import INTERNAL_MESSAGE
from .routes import BAD_REQUEST_PATHS, WIRE_FIELD_NAMES, failure_response

logger = logging.getLogger(__name__)


def _field_name(loc: tuple) -> str:
    # loc looks like ("body", "accountId") for body fields; JSON decode errors
    # carry a character offset instead of a field name
    if len(loc) < 2 or not isinstance(loc[-1], str):
        return "body"
    name = loc[-1]
    return WIRE_FIELD_NAMES.get(name, name)


def setup_exception_handlers(app: FastAPI) -> None:
    """Register the 404, request-validation and catch-all handlers on ``app``."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            message = f"Route {request.method} {request.url.path} not found."
        else:
            message = str(exc.detail)
        return failure_response(exc.status_code, message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {"field": _field_name(tuple(error.get("loc", ()))), "message": error.get("msg", "Invalid value.")}
            for error in exc.errors()
        ]
        logger.info("malformed request on %s %s: %d errors", request.method, request.url.path, len(errors))
        message = errors[0]["message"] if errors else "Invalid request."
        if request.url.path in BAD_REQUEST_PATHS:
            return failure_response(status.HTTP_400_BAD_REQUEST, message, errors=errors)
        return failure_response(status.HTTP_422_UNPROCESSABLE_ENTITY, message, errors=errors)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled exception on %s %s", request.method, request.url.path)
        if get_settings().is_production:
            return failure_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_MESSAGE)
        return failure_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_MESSAGE, detail=str(exc))
