"""
Routes that require a verified Turnstile token.

The router is mounted with the gate as a router-level dependency (see
app.create_app), so handlers here only run for requests that passed. Each
handler still declares ``verified_turnstile`` to state the requirement where
the logic lives.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dependencies import verified_turnstile
from schemas.models.turnstile import VerifiedTurnstile

router = APIRouter(prefix="/api", tags=["protected"])


@router.get("/protected")
async def read_protected(
    _verified: VerifiedTurnstile = Depends(verified_turnstile),
) -> dict:
    return {"verified": True}


@router.post("/protected")
async def submit_protected(
    _verified: VerifiedTurnstile = Depends(verified_turnstile),
) -> dict:
    return {"verified": True, "accepted": True}
