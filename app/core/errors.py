"""Domain error taxonomy and the handlers that turn it into JSON envelopes.

Every failure leaves the API as ``{"success": false, "message": ...}`` plus
optional flags (e.g. ``upgradeRequired``). Store errors and tracebacks are
logged server-side and never returned to the caller.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error."

    def __init__(self, message: str | None = None, **flags: object) -> None:
        self.message = message or self.default_message
        self.flags = flags
        super().__init__(self.message)

    def to_body(self) -> dict:
        return {"success": False, "message": self.message, **self.flags}


class ValidationFailed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request."


class Conflict(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Resource already exists."


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid or expired token."


class UserInactive(Unauthenticated):
    default_message = "Invalid or inactive user."


class InsufficientPermissions(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Insufficient permissions."


class TenantInactive(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Tenant account is inactive."


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found."


class EntitlementExceeded(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Note limit reached. Upgrade to Pro for unlimited notes."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message, upgradeRequired=True)


# ── Handlers ─────────────────────────────────────────────────

async def _app_error_handler(_request: Request, exc: AppError) -> JSONResponse:
    headers = None
    if isinstance(exc, Unauthenticated):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=headers)


async def _request_validation_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    message = "Invalid request."
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg', 'invalid value')}" if location else first.get("msg", message)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": message},
    )


async def _http_exception_handler(
    _request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": "Internal server error."},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_error_handler)
