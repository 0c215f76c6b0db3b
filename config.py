"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

TurnstileConfig is the immutable value the gate runs on. It is built once at
startup (either directly with the builder methods or from TurnstileSettings)
and shared read-only across every request.
"""

from __future__ import annotations

from typing import Optional

from pydantic import (
    AnyHttpUrl,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_HEADER_NAME = "CF-Turnstile-Token"
DEFAULT_VERIFY_URL = "https://challenges.cloudflare.com/turnstile/v0/siteverify"
DEFAULT_TIMEOUT_SECONDS = 5.0

# Cloudflare's deterministic test secrets
TEST_SECRET_ALWAYS_PASSES = "1x0000000000000000000000000000000AA"
TEST_SECRET_ALWAYS_FAILS = "2x0000000000000000000000000000000AA"
TEST_SECRET_TOKEN_SPENT = "3x0000000000000000000000000000000AA"

_HTTP_URL = TypeAdapter(AnyHttpUrl)


class TurnstileConfig(BaseModel):
    """Immutable gate configuration.

    Use the ``with_*`` builders to derive a variant; each returns a new
    instance and leaves the receiver untouched.
    """

    model_config = ConfigDict(frozen=True)

    secret: str = Field(min_length=1, repr=False)
    header_name: str = DEFAULT_HEADER_NAME
    verify_url: str = DEFAULT_VERIFY_URL
    timeout: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    send_remote_ip: bool = True

    @field_validator("header_name", "verify_url")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("verify_url")
    @classmethod
    def _http_url(cls, v: str) -> str:
        try:
            _HTTP_URL.validate_python(v)
        except ValidationError as e:
            raise ValueError(f"not a valid http(s) URL: {v!r}") from e
        return v

    @classmethod
    def from_secret(cls, secret: str) -> "TurnstileConfig":
        return cls(secret=secret)

    def with_header_name(self, name: str) -> "TurnstileConfig":
        return self._derive(header_name=name)

    def with_verify_url(self, url: str) -> "TurnstileConfig":
        return self._derive(verify_url=url)

    def with_timeout(self, seconds: float) -> "TurnstileConfig":
        return self._derive(timeout=seconds)

    def _derive(self, **changes) -> "TurnstileConfig":
        # model_copy(update=...) skips validation, so rebuild instead
        return type(self).model_validate({**self.model_dump(), **changes})


class TurnstileSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="TURNSTILE_", extra="ignore"
    )

    secret_key: str = ""
    header_name: str = DEFAULT_HEADER_NAME
    verify_url: str = DEFAULT_VERIFY_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    send_remote_ip: bool = True

    def to_config(self) -> TurnstileConfig:
        """Build the gate config. Raises if TURNSTILE_SECRET_KEY is unset."""
        return TurnstileConfig(
            secret=self.secret_key,
            header_name=self.header_name,
            verify_url=self.verify_url,
            timeout=self.timeout_seconds,
            send_remote_ip=self.send_remote_ip,
        )


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: str = "development"
    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production

    @property
    def is_production(self) -> bool:
        return self.env == "production"


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: str = "development"
    app_name: str = "turnstile-gate"

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    # Sub-configs (composed via model_validator below)
    turnstile: Optional[TurnstileSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        if self.turnstile is None:
            self.turnstile = TurnstileSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()
        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
