"""
Application error hierarchy and FastAPI exception handlers.

AppError is the base for all typed errors. The global exception handler
converts AppError subclasses to consistent JSON responses.

The three Turnstile outcomes (missing token, failed verification, provider
unreachable) are AppErrors too, so the gate middleware and the router-level
dependency produce identical responses.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class AppError(Exception):
    """Base application error. All typed errors inherit from this."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details

    def to_dict(self) -> dict:
        payload: dict = {"error": self.message, "code": self.error_code}
        if self.field is not None:
            payload["field"] = self.field
        if self.details is not None:
            payload["details"] = self.details
        return payload

    def to_response(self) -> JSONResponse:
        return JSONResponse(status_code=self.status_code, content=self.to_dict())


class AuthenticationError(AppError):
    status_code = 401
    error_code = "authentication_error"


class MissingTokenError(AppError):
    status_code = 400
    error_code = "missing_turnstile_token"

    def __init__(self, header_name: str) -> None:
        super().__init__("Missing Turnstile token")
        self.header_name = header_name


class VerificationFailedError(AppError):
    """The provider parsed the token and rejected it.

    ``error_codes`` is kept for operator-side logging only; it is never part
    of ``to_dict()``.
    """

    status_code = 403
    error_code = "turnstile_verification_failed"

    def __init__(self, error_codes: Sequence[str] = ()) -> None:
        super().__init__("Turnstile verification failed")
        self.error_codes = list(error_codes)


class CommunicationFailureError(AppError):
    """The provider could not be reached or sent back something unusable."""

    status_code = 500
    error_code = "turnstile_unavailable"

    def __init__(self, reason: str) -> None:
        super().__init__("Verification error")
        self.reason = reason


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return exc.to_response()

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        # Sentry integration: if sentry_sdk is initialized it will auto-capture
        # unhandled exceptions before this handler fires.
        return JSONResponse(
            status_code=500,
            content={"error": "An internal server error occurred.", "code": "internal_error"},
        )
