from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

log = logging.getLogger(__name__)


class AppError(Exception):
    """Base for errors that map onto an HTTP status at the API boundary."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None, *, details: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(AppError):
    status_code = 400
    message = "Validation error"

    def __init__(self, details: str):
        super().__init__(self.message, details=details)


class AuthError(AppError):
    status_code = 401
    message = "Access token required"


class InvalidTokenError(AuthError):
    status_code = 403
    message = "Invalid or expired token"


class InvalidCredentialsError(AuthError):
    message = "Invalid credentials"


class NotFoundError(AppError):
    status_code = 404
    message = "Not found"


class ConflictError(AppError):
    status_code = 409
    message = "Conflict"


class NotConfiguredError(AppError):
    status_code = 501
    message = "Not implemented"


class UpstreamError(AppError):
    """An external call failed or returned unusable data."""

    status_code = 500
    message = "Upstream service error"


class StoreUnavailableError(AppError):
    status_code = 500

    def __init__(self, operation: str):
        super().__init__(f"Failed to {operation}")
        self.operation = operation


def format_validation_error(errors: list) -> str:
    """Render the first pydantic error as a one-line message."""
    if not errors:
        return "invalid payload"
    err = errors[0]
    loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
    msg = str(err.get("msg") or "is invalid")
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    if not loc:
        return msg
    return f'"{".".join(loc)}" {msg[:1].lower()}{msg[1:]}'


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _app_error(request: Request, exc: AppError):
        if exc.status_code >= 500:
            log.error(
                "request failed",
                extra={
                    "path": request.url.path,
                    "error": exc.message,
                    "owner_id": getattr(request.state, "user_id", None),
                },
            )
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"message": "Validation error", "details": format_validation_error(exc.errors())},
        )

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        log.exception(
            "unhandled error",
            extra={"path": request.url.path, "owner_id": getattr(request.state, "user_id", None)},
        )
        return JSONResponse(status_code=500, content={"message": "Internal server error"})
