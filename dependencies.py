"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system.
"""

from __future__ import annotations

from fastapi import Request

from config import AppSettings, TurnstileConfig
from errors import AuthenticationError
from schemas.models.turnstile import MARKER_STATE_KEY, VerifiedTurnstile


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_turnstile_config(request: Request) -> TurnstileConfig:
    """Return the shared, read-only TurnstileConfig from app.state."""
    return request.app.state.turnstile_config


def verified_turnstile(request: Request) -> VerifiedTurnstile:
    """Require that the Turnstile gate passed this request.

    Fails closed: a missing marker, or anything on request.state that is not
    a genuine VerifiedTurnstile, is treated as unverified.
    """
    marker = getattr(request.state, MARKER_STATE_KEY, None)
    if not isinstance(marker, VerifiedTurnstile):
        raise AuthenticationError("Turnstile verification required")
    return marker
