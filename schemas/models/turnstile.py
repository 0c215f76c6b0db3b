"""
Turnstile siteverify exchange models and the verified-request marker.

VerificationRequest / VerificationResult map the provider's wire contract
(form fields in, JSON out). Both live only for the duration of a single
verification call.

VerifiedTurnstile is the capability the gate leaves on a request that passed.
It carries no data; holding one is the proof. Downstream code obtains it via
the ``verified_turnstile`` dependency and cannot construct one itself.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Attribute name on request.state where the gate stores the marker
MARKER_STATE_KEY = "turnstile_verified"

_ISSUER = object()


class VerificationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    secret: str = Field(repr=False)
    response: str = Field(repr=False)
    remoteip: Optional[str] = None

    def to_form(self) -> dict[str, str]:
        """Form fields for the POST body; ``remoteip`` omitted when unknown."""
        return self.model_dump(exclude_none=True)


class VerificationResult(BaseModel):
    """Parsed siteverify response.

    ``success`` is required and must be a real boolean; anything else means
    the body is not a siteverify response at all.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    success: bool = Field(strict=True)
    error_codes: list[str] = Field(default_factory=list, alias="error-codes")
    challenge_ts: Optional[str] = None
    hostname: Optional[str] = None
    action: Optional[str] = None
    cdata: Optional[str] = None

    @field_validator("error_codes", mode="before")
    @classmethod
    def _normalise_error_codes(cls, v):
        if v is None:
            return []
        if isinstance(v, list):
            return [str(code) for code in v]
        return v


class VerifiedTurnstile:
    """Zero-data marker: this request passed Turnstile verification."""

    __slots__ = ()

    def __init__(self, _issuer: object = None) -> None:
        if _issuer is not _ISSUER:
            raise TypeError("VerifiedTurnstile is issued by the Turnstile gate only")

    @classmethod
    def _issue(cls) -> "VerifiedTurnstile":
        return cls(_ISSUER)

    def __repr__(self) -> str:
        return "VerifiedTurnstile()"
