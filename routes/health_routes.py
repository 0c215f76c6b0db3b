"""
Health check endpoint.

GET /health — liveness probe. Not behind the Turnstile gate and never calls
the verification provider; it only reports that the gate is configured.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(request: Request) -> JSONResponse:
    checks: dict[str, str] = {}
    overall = "healthy"

    config = getattr(request.app.state, "turnstile_config", None)
    if config is None:
        checks["turnstile"] = "not_configured"
        overall = "unhealthy"
    else:
        checks["turnstile"] = "configured"
        checks["turnstile_header"] = config.header_name

    status_code = 503 if overall == "unhealthy" else 200
    return JSONResponse(
        status_code=status_code,
        content={"status": overall, "checks": checks},
    )
