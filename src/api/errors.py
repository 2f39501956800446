"""
Domain error to HTTP response mapping.

Each AccountError subclass maps to a status code and a fixed message.
Lookup walks the exception's MRO so new subclasses inherit the mapping
of their family (e.g. any DependencyError is at least a 503).
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.domain.exceptions import (
    AccountError,
    AlreadyActive,
    ConflictError,
    DeadlineExceeded,
    DependencyError,
    EmailAlreadyTaken,
    InvalidCredentials,
    InvalidInput,
    NotificationFailed,
    TokenAlreadyUsed,
    TokenExpired,
    TokenNotFound,
)

logger = logging.getLogger(__name__)

# None means: report the exception message verbatim
ERROR_RESPONSES: dict[type[AccountError], tuple[int, str | None]] = {
    InvalidInput: (status.HTTP_422_UNPROCESSABLE_ENTITY, None),
    EmailAlreadyTaken: (status.HTTP_409_CONFLICT, "Email already registered"),
    TokenNotFound: (status.HTTP_404_NOT_FOUND, "Activation token not found"),
    TokenExpired: (status.HTTP_410_GONE, "Activation token expired"),
    TokenAlreadyUsed: (status.HTTP_409_CONFLICT, "Activation token already used"),
    AlreadyActive: (status.HTTP_409_CONFLICT, "Account already active"),
    InvalidCredentials: (status.HTTP_401_UNAUTHORIZED, "Invalid credentials"),
    ConflictError: (status.HTTP_409_CONFLICT, "Request conflicts with current state"),
    NotificationFailed: (
        status.HTTP_502_BAD_GATEWAY,
        "Activation message could not be sent. Registration is pending; retry to resend",
    ),
    DeadlineExceeded: (status.HTTP_504_GATEWAY_TIMEOUT, "Request timed out"),
    DependencyError: (status.HTTP_503_SERVICE_UNAVAILABLE, "Service temporarily unavailable"),
    AccountError: (status.HTTP_400_BAD_REQUEST, "Request failed"),
}


def error_response_for(exc: AccountError) -> tuple[int, str]:
    """Resolve (status_code, detail) for a domain exception."""
    for cls in type(exc).__mro__:
        if cls in ERROR_RESPONSES:
            status_code, detail = ERROR_RESPONSES[cls]
            return status_code, detail if detail is not None else str(exc)
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"


def install_error_handlers(app: FastAPI) -> None:
    """Register the AccountError and request validation handlers on an application."""

    @app.exception_handler(AccountError)
    async def _handle_account_error(request: Request, exc: AccountError) -> JSONResponse:
        status_code, detail = error_response_for(exc)
        headers: dict[str, str] = {}
        if isinstance(exc, InvalidCredentials):
            headers["WWW-Authenticate"] = "Bearer"
        if isinstance(exc, DependencyError):
            headers["Retry-After"] = "1"
            logger.warning("%s %s failed upstream: %s", request.method, request.url.path, exc.code)
        return JSONResponse(
            status_code=status_code,
            content={"detail": detail, "code": exc.code},
            headers=headers or None,
        )

    @app.exception_handler(RequestValidationError)
    async def _handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"] if part != "body")
        detail = f"{field}: {first['msg']}" if field else first["msg"]
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": detail, "code": InvalidInput.code},
        )
