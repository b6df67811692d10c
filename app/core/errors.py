"""Application error taxonomy and the FastAPI handlers that render it."""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

SESSION_EXPIRED_MESSAGE = "Session expired or invalid. Please log in again."


class AppError(Exception):
    """Base error with an HTTP status, a stable code and a user-facing message."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "server_error"
    message = "Server error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def headers(self) -> dict[str, str] | None:
        return None

    def body(self) -> dict[str, Any]:
        return {"message": self.message, "code": self.code}


class RequestValidationFailed(AppError):
    """Malformed input, surfaced with field-level detail."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"
    message = "Please check your input and try again."

    def __init__(self, errors: list[dict[str, str]], message: str | None = None) -> None:
        self.errors = errors
        super().__init__(message)

    def body(self) -> dict[str, Any]:
        return {**super().body(), "errors": self.errors}


class DuplicateEmailError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "duplicate_email"
    message = "User already exists"


class InvalidCredentialsError(AppError):
    """Wrong password and unknown email are deliberately the same error."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "invalid_credentials"
    message = "Invalid credentials"


class UnauthenticatedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthenticated"
    message = "Authentication required. Please log in."

    def headers(self) -> dict[str, str] | None:
        return {"WWW-Authenticate": "Bearer"}


class InvalidTokenError(UnauthenticatedError):
    """
    Bearer token failed verification.

    reason ("expired" or "invalid") is kept for logging only; callers always
    see the same message.
    """

    code = "invalid_token"
    message = SESSION_EXPIRED_MESSAGE

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__()


class UserNotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "user_not_found"
    message = "User not found"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    message = "Access denied"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    message = "Resource not found"


def _field_name(loc: tuple[Any, ...]) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) or "body"


def _validation_errors(exc: RequestValidationError) -> list[dict[str, str]]:
    return [
        {"field": _field_name(tuple(err.get("loc", ()))), "message": err.get("msg", "Invalid value")}
        for err in exc.errors()
    ]


def register_exception_handlers(app: FastAPI, *, expose_internal_errors: bool = False) -> None:
    """Render AppError subclasses, request validation and unexpected errors as JSON."""

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.body(),
            headers=exc.headers(),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        err = RequestValidationFailed(_validation_errors(exc))
        return JSONResponse(status_code=err.status_code, content=err.body())

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled error",
            extra={"path": request.url.path, "method": request.method},
        )
        content: dict[str, Any] = {"message": AppError.message, "code": AppError.code}
        if expose_internal_errors:
            content["detail"] = f"{type(exc).__name__}: {exc}"
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)
