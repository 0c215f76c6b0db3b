"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import Depends, FastAPI

from config import AppSettings, TurnstileConfig
from errors import register_error_handlers
from infrastructure.captcha.turnstile import TurnstileClient
from infrastructure.http_client import HttpClient
from middleware.turnstile import TurnstileGate, require_turnstile
from routes.health_routes import router as health_router
from routes.protected_routes import router as protected_router
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def create_app(
    settings: Optional[AppSettings] = None,
    *,
    turnstile_config: Optional[TurnstileConfig] = None,
    http_client: Optional[HttpClient] = None,
) -> FastAPI:
    """Create and return a fully configured FastAPI application.

    ``turnstile_config`` overrides the TURNSTILE_* environment settings;
    ``http_client`` replaces the outbound client (tests pass one backed by
    an httpx.MockTransport).
    """
    if settings is None:
        settings = AppSettings()

    setup_logging(settings.logging)

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
        )

    if turnstile_config is None:
        turnstile_config = settings.turnstile.to_config()
    if http_client is None:
        http_client = HttpClient(timeout=turnstile_config.timeout)

    gate = TurnstileGate(turnstile_config, TurnstileClient(turnstile_config, http_client))

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        log.info(
            "turnstile_gate_ready",
            header=turnstile_config.header_name,
            verify_url=turnstile_config.verify_url,
        )

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await http_client.aclose()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.turnstile_config = turnstile_config
    app.state.turnstile_gate = gate

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(protected_router, dependencies=[Depends(require_turnstile(gate))])

    return app
