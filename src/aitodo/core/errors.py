"""HTTP error shape shared by every endpoint: ``{"error": str, "details"?: str}``."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from aitodo.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

INVALID_JSON_MESSAGE = "Malformed request body. Send a JSON object."
INTERNAL_ERROR_MESSAGE = "Something went wrong. Please try again."


class APIError(Exception):
    """Request failure carrying the status code and user-facing message."""

    def __init__(
        self, status_code: int, error: str, details: str | None = None
    ) -> None:
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details = details


def request_settings(request: Request) -> Settings:
    """Settings the app resolves for its routes, dependency overrides included."""
    provider = request.app.dependency_overrides.get(get_settings, get_settings)
    return provider()


def error_body(
    error: str, details: str | None = None, debug: bool = False
) -> dict[str, str]:
    body = {"error": error}
    if details and debug:
        body["details"] = details
    return body


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return INVALID_JSON_MESSAGE
    first = errors[0]
    if first.get("type") == "json_invalid":
        return INVALID_JSON_MESSAGE
    # loc is ("body", "field", ...); the bare ("body",) means a non-object body
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    if not field:
        return INVALID_JSON_MESSAGE
    if first.get("type") == "missing":
        return f"'{field}' is required."
    return f"Invalid '{field}': {first.get('msg', 'invalid value')}."


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    debug = request_settings(request).debug
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.error, exc.details, debug),
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    debug = request_settings(request).debug
    return JSONResponse(
        status_code=400,
        content=error_body(_validation_message(exc), str(exc.errors()), debug),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    debug = request_settings(request).debug
    return JSONResponse(
        status_code=500,
        content=error_body(
            INTERNAL_ERROR_MESSAGE, str(exc) or type(exc).__name__, debug
        ),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
