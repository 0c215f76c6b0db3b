"""
Turnstile verification gate.

Every request routed through the gate goes through the same protocol:

1. read the token from the configured header (absent/empty → 400, no call)
2. one siteverify exchange through the TurnstileVerifier
3. transport/parse failure → 500, rejected token → 403,
   accepted token → VerifiedTurnstile placed on request.state and the
   request is forwarded untouched

The gate holds only the immutable config and the verifier, so a single
instance serves any number of concurrent requests. The marker lives on the
request's own state and dies with it.

Three ways to put it in front of handlers:
- ``TurnstileGate(...)(request, call_next)``: the bare pre-check wrapper
- ``TurnstileMiddleware``: app-wide Starlette middleware
- ``require_turnstile(gate)``: router/route-level FastAPI dependency
"""

from __future__ import annotations

from typing import Awaitable, Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from config import TurnstileConfig
from errors import (
    AppError,
    CommunicationFailureError,
    MissingTokenError,
    VerificationFailedError,
)
from infrastructure.captcha.protocol import TurnstileVerifier
from infrastructure.captcha.turnstile import TurnstileClient
from schemas.models.turnstile import (
    MARKER_STATE_KEY,
    VerificationRequest,
    VerifiedTurnstile,
)
from shared.ip_utils import get_client_ip
from shared.logging import get_logger, hash_ip

log = get_logger(__name__)

CallNext = Callable[[Request], Awaitable[Response]]


class TurnstileGate:
    def __init__(
        self,
        config: TurnstileConfig,
        verifier: Optional[TurnstileVerifier] = None,
    ) -> None:
        self.config = config
        self.verifier = verifier if verifier is not None else TurnstileClient(config)

    def extract_token(self, request: Request) -> str:
        token = request.headers.get(self.config.header_name, "").strip()
        if not token:
            raise MissingTokenError(self.config.header_name)
        return token

    async def evaluate(self, request: Request) -> VerifiedTurnstile:
        """Run the protocol for one request.

        Returns the marker (already attached to ``request.state``) or raises
        one of MissingTokenError, VerificationFailedError,
        CommunicationFailureError.
        """
        token = self.extract_token(request)

        client_ip = get_client_ip(request) if self.config.send_remote_ip else None
        result = await self.verifier.verify(
            VerificationRequest(
                secret=self.config.secret, response=token, remoteip=client_ip
            )
        )
        if not result.success:
            raise VerificationFailedError(result.error_codes)

        marker = VerifiedTurnstile._issue()
        setattr(request.state, MARKER_STATE_KEY, marker)
        log.debug("turnstile_verified", path=request.url.path, client_ip=hash_ip(client_ip))
        return marker

    async def __call__(self, request: Request, call_next: CallNext) -> Response:
        try:
            await self.evaluate(request)
        except (MissingTokenError, VerificationFailedError, CommunicationFailureError) as e:
            _log_rejection(request, e)
            return e.to_response()
        return await call_next(request)


class TurnstileMiddleware(BaseHTTPMiddleware):
    """App-wide gate. Pass either ``config`` or a prebuilt ``gate``.

    >>> app.add_middleware(TurnstileMiddleware, config=TurnstileConfig.from_secret(s))
    """

    def __init__(
        self,
        app: ASGIApp,
        config: Optional[TurnstileConfig] = None,
        gate: Optional[TurnstileGate] = None,
    ) -> None:
        if gate is None:
            if config is None:
                raise ValueError("TurnstileMiddleware needs a config or a gate")
            gate = TurnstileGate(config)
        super().__init__(app, dispatch=gate)
        self.gate = gate


def require_turnstile(gate: TurnstileGate) -> Callable[[Request], Awaitable[VerifiedTurnstile]]:
    """FastAPI dependency running the gate for the routes that declare it.

    The typed errors propagate to the app's AppError handler, which renders
    the same 400/403/500 responses the middleware does.
    """

    async def _dependency(request: Request) -> VerifiedTurnstile:
        try:
            return await gate.evaluate(request)
        except AppError as e:
            _log_rejection(request, e)
            raise

    return _dependency


def _log_rejection(request: Request, error: AppError) -> None:
    if isinstance(error, CommunicationFailureError):
        log.error(
            "turnstile_gate_error",
            path=request.url.path,
            reason=error.reason,
            status_code=error.status_code,
        )
    elif isinstance(error, VerificationFailedError):
        log.info(
            "turnstile_rejected",
            path=request.url.path,
            error_codes=error.error_codes,
            status_code=error.status_code,
        )
    else:
        log.info(
            "turnstile_token_missing",
            path=request.url.path,
            header=getattr(error, "header_name", None),
            status_code=error.status_code,
        )
