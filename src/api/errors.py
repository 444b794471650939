"""
Exception handlers - Map domain exceptions to HTTP responses.

Domain errors carry identifiers in their message for logging; the HTTP
detail is always a fixed, generic string.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from src.domain.exceptions import (
    ConfirmationLocked,
    DeliveryFailure,
    DependencyFailure,
    EmailAlreadyRegistered,
    InvalidMemberUpdate,
    InvalidOrExpiredCode,
    InvalidTemporaryToken,
    MemberAlreadyConfirmed,
    MemberEmailMismatch,
    MemberNotConfirmed,
    MemberNotFound,
    MembershipError,
    PasswordAlreadySet,
    ResendTooSoon,
    ThrottledError,
)

logger = logging.getLogger(__name__)

# Checked in order; subclasses before their bases.
_ERROR_RESPONSES: list[tuple[type[MembershipError], int, str]] = [
    (MemberNotFound, status.HTTP_404_NOT_FOUND, "Member not found"),
    (EmailAlreadyRegistered, status.HTTP_409_CONFLICT, "Registration failed"),
    (MemberAlreadyConfirmed, status.HTTP_409_CONFLICT, "Member already confirmed"),
    (PasswordAlreadySet, status.HTTP_409_CONFLICT, "Password already set"),
    (MemberNotConfirmed, status.HTTP_409_CONFLICT, "Member not confirmed"),
    (InvalidOrExpiredCode, status.HTTP_400_BAD_REQUEST, "Invalid or expired confirmation code"),
    (MemberEmailMismatch, status.HTTP_400_BAD_REQUEST, "Email does not match member"),
    (InvalidTemporaryToken, status.HTTP_401_UNAUTHORIZED, "Invalid or expired temporary token"),
    (
        ConfirmationLocked,
        status.HTTP_429_TOO_MANY_REQUESTS,
        "Too many failed attempts, request a new code",
    ),
    (ResendTooSoon, status.HTTP_429_TOO_MANY_REQUESTS, "A code was sent recently, try again later"),
    (InvalidMemberUpdate, status.HTTP_422_UNPROCESSABLE_CONTENT, "Invalid member update"),
    (DeliveryFailure, status.HTTP_503_SERVICE_UNAVAILABLE, "Message delivery unavailable"),
    (DependencyFailure, status.HTTP_503_SERVICE_UNAVAILABLE, "Authentication module unavailable"),
]


def error_response_for(exc: MembershipError) -> tuple[int, str]:
    """Resolve status code and public detail for a domain exception."""
    for exc_type, status_code, detail in _ERROR_RESPONSES:
        if isinstance(exc, exc_type):
            if exc_type is InvalidMemberUpdate:
                return status_code, str(exc)
            return status_code, detail
    return status.HTTP_400_BAD_REQUEST, "Request failed"


def error_headers_for(exc: MembershipError) -> dict[str, str] | None:
    """Extra response headers telling the client how to retry."""
    if isinstance(exc, InvalidTemporaryToken):
        return {"WWW-Authenticate": "Bearer"}
    if isinstance(exc, ThrottledError) and exc.retry_after_seconds is not None:
        return {"Retry-After": str(exc.retry_after_seconds)}
    return None


async def membership_error_handler(request: Request, exc: MembershipError) -> JSONResponse:
    status_code, detail = error_response_for(exc)
    logger.info(
        "%s %s -> %d (%s: %s)",
        request.method,
        request.url.path,
        status_code,
        type(exc).__name__,
        exc,
    )
    return JSONResponse(
        status_code=status_code, content={"detail": detail}, headers=error_headers_for(exc)
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install domain exception handlers on an application."""
    app.add_exception_handler(MembershipError, membership_error_handler)  # type: ignore[arg-type]
