"""TurnstileVerifier protocol — the gate depends on this, not the concrete client."""

from typing import Protocol

from schemas.models.turnstile import VerificationRequest, VerificationResult


class TurnstileVerifier(Protocol):
    async def verify(self, request: VerificationRequest) -> VerificationResult:
        """Return the parsed outcome or raise CommunicationFailureError."""
        ...
