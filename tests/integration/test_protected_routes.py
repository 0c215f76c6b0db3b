"""Integration tests for the gated /api/protected routes built by create_app."""

import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from app import create_app
from config import (
    TEST_SECRET_ALWAYS_FAILS,
    TEST_SECRET_ALWAYS_PASSES,
    TEST_SECRET_TOKEN_SPENT,
    AppSettings,
    TurnstileConfig,
)
from tests.helpers.siteverify import TOKEN_DECIDES_SECRET, FakeSiteverify

TOKEN_HEADER = "CF-Turnstile-Token"


def _build_app(config: TurnstileConfig, handler, make_http_client):
    return create_app(
        AppSettings(), turnstile_config=config, http_client=make_http_client(handler)
    )


class TestProtectedRoutes:
    def test_missing_token_is_400_without_provider_call(
        self, passing_config, siteverify, make_http_client
    ):
        app = _build_app(passing_config, siteverify, make_http_client)
        with TestClient(app) as client:
            resp = client.get("/api/protected")
            empty = client.get("/api/protected", headers={TOKEN_HEADER: ""})
        assert resp.status_code == 400
        assert resp.json()["code"] == "missing_turnstile_token"
        assert empty.status_code == 400
        assert siteverify.calls == []

    @pytest.mark.parametrize("secret", [TEST_SECRET_ALWAYS_FAILS, TEST_SECRET_TOKEN_SPENT])
    @pytest.mark.parametrize("token", ["test-token", "XXXX.DUMMY.TOKEN.XXXX"])
    def test_failing_secret_is_403(self, secret, token, siteverify, make_http_client):
        app = _build_app(TurnstileConfig.from_secret(secret), siteverify, make_http_client)
        with TestClient(app) as client:
            resp = client.post("/api/protected", headers={TOKEN_HEADER: token})
        assert resp.status_code == 403
        assert resp.json() == {
            "error": "Turnstile verification failed",
            "code": "turnstile_verification_failed",
        }
        assert len(siteverify.calls) == 1

    def test_passing_secret_forwards(self, passing_config, siteverify, make_http_client):
        app = _build_app(passing_config, siteverify, make_http_client)
        with TestClient(app) as client:
            resp = client.post("/api/protected", headers={TOKEN_HEADER: "test-token"})
        assert resp.status_code == 200
        assert resp.json() == {"verified": True, "accepted": True}
        assert siteverify.calls[0]["secret"] == TEST_SECRET_ALWAYS_PASSES
        assert siteverify.calls[0]["response"] == "test-token"
        assert siteverify.calls[0]["remoteip"] == "testclient"

    def test_unreachable_provider_is_500(self, passing_config, make_http_client):
        def down(request):
            raise httpx.ConnectError("connection refused")

        app = _build_app(passing_config, down, make_http_client)
        with TestClient(app) as client:
            resp = client.get("/api/protected", headers={TOKEN_HEADER: "test-token"})
        assert resp.status_code == 500
        assert resp.json()["code"] == "turnstile_unavailable"

    def test_provider_error_status_is_500(self, passing_config, make_http_client):
        app = _build_app(
            passing_config, lambda r: httpx.Response(503), make_http_client
        )
        with TestClient(app) as client:
            resp = client.get("/api/protected", headers={TOKEN_HEADER: "test-token"})
        assert resp.status_code == 500

    @pytest.mark.parametrize(
        "secret, expected",
        [(TEST_SECRET_ALWAYS_PASSES, 200), (TEST_SECRET_ALWAYS_FAILS, 403)],
    )
    def test_repeated_requests_same_outcome(
        self, secret, expected, siteverify, make_http_client
    ):
        app = _build_app(TurnstileConfig.from_secret(secret), siteverify, make_http_client)
        with TestClient(app) as client:
            statuses = [
                client.get("/api/protected", headers={TOKEN_HEADER: "same"}).status_code
                for _ in range(3)
            ]
        assert statuses == [expected] * 3
        assert len(siteverify.calls) == 3

    def test_custom_header_name(self, passing_config, siteverify, make_http_client):
        config = passing_config.with_header_name("X-Custom-Turnstile-Token")
        app = _build_app(config, siteverify, make_http_client)
        with TestClient(app) as client:
            default_only = client.get("/api/protected", headers={TOKEN_HEADER: "tok"})
            custom = client.get(
                "/api/protected",
                headers={TOKEN_HEADER: "ignored", "X-Custom-Turnstile-Token": "tok"},
            )
        assert default_only.status_code == 400
        assert custom.status_code == 200
        assert [c["response"] for c in siteverify.calls] == ["tok"]


class TestConcurrentRequests:
    @pytest.mark.parametrize(
        "delays",
        [{"pass-a": 0.05}, {"fail-b": 0.05}],
        ids=["pass_slower", "fail_slower"],
    )
    async def test_resolve_independently(self, delays, make_http_client):
        provider = FakeSiteverify(delays=delays)
        app = _build_app(
            TurnstileConfig.from_secret(TOKEN_DECIDES_SECRET), provider, make_http_client
        )
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
            responses = await asyncio.gather(
                client.get("/api/protected", headers={TOKEN_HEADER: "pass-a"}),
                client.get("/api/protected", headers={TOKEN_HEADER: "fail-b"}),
                client.get("/api/protected", headers={TOKEN_HEADER: "pass-c"}),
            )
        assert [r.status_code for r in responses] == [200, 403, 200]
        assert len(provider.calls) == 3
