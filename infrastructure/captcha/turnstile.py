"""Cloudflare Turnstile implementation of TurnstileVerifier.

One POST to siteverify per call, no retries. A parsed ``success: false`` is a
normal return value; only transport problems and unusable responses raise.
"""

from __future__ import annotations

from typing import Optional

import httpx
from pydantic import ValidationError

from config import TurnstileConfig
from errors import CommunicationFailureError
from infrastructure.http_client import HttpClient
from schemas.models.turnstile import VerificationRequest, VerificationResult
from shared.logging import get_logger

log = get_logger(__name__)


class TurnstileClient:
    def __init__(
        self, config: TurnstileConfig, http_client: Optional[HttpClient] = None
    ) -> None:
        self._verify_url = config.verify_url
        self._timeout = config.timeout
        # Shared client is owned (and closed) by whoever passed it in
        self._http = http_client

    async def verify(self, request: VerificationRequest) -> VerificationResult:
        if self._http is not None:
            return await self._exchange(self._http, request)
        async with HttpClient(timeout=self._timeout) as http:
            return await self._exchange(http, request)

    async def _exchange(
        self, http: HttpClient, request: VerificationRequest
    ) -> VerificationResult:
        try:
            response = await http.post(self._verify_url, data=request.to_form())
        except httpx.TimeoutException as e:
            log.error("turnstile_request_timeout", error=str(e))
            raise CommunicationFailureError("timeout") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            log.error(
                "turnstile_request_failed", error=str(e), error_type=type(e).__name__
            )
            raise CommunicationFailureError("transport_error") from e

        if not response.is_success:
            log.error(
                "turnstile_api_error",
                status_code=response.status_code,
                response_text=response.text[:200],
            )
            raise CommunicationFailureError(f"http_{response.status_code}")

        try:
            result = VerificationResult.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            log.error(
                "turnstile_malformed_response",
                error_type=type(e).__name__,
                response_text=response.text[:200],
            )
            raise CommunicationFailureError("malformed_response") from e

        if not result.success:
            log.warning("turnstile_verification_failed", error_codes=result.error_codes)
        return result
