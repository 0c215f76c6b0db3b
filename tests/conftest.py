"""Shared fixtures: a fake siteverify provider and clients wired to it."""

import httpx
import pytest

from config import TEST_SECRET_ALWAYS_FAILS, TEST_SECRET_ALWAYS_PASSES, TurnstileConfig
from infrastructure.http_client import HttpClient
from tests.helpers.siteverify import FakeSiteverify


@pytest.fixture
def siteverify() -> FakeSiteverify:
    return FakeSiteverify()


@pytest.fixture
def make_http_client():
    """Build HttpClients whose requests go to the given httpx handler."""

    def _make(handler) -> HttpClient:
        return HttpClient(transport=httpx.MockTransport(handler))

    return _make


@pytest.fixture
def passing_config() -> TurnstileConfig:
    return TurnstileConfig.from_secret(TEST_SECRET_ALWAYS_PASSES)


@pytest.fixture
def failing_config() -> TurnstileConfig:
    return TurnstileConfig.from_secret(TEST_SECRET_ALWAYS_FAILS)
