"""
Unit test configuration.

Patches dotenv so pydantic-settings never reads the project's real .env file
during unit tests, and clears any TURNSTILE_* variables from the developer's
shell. Tests control config exclusively through monkeypatch.setenv().
"""

import os

import pytest


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in all unit tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})
    for name in list(os.environ):
        if name.startswith("TURNSTILE_"):
            monkeypatch.delenv(name)
