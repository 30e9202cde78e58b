"""Configuration schema using Pydantic."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from authfetch.auth.constants import REFRESH_LEEWAY_SEC
from authfetch.fetch.errors import DEFAULT_STATUS_ERRORS, ErrorClassifier
from authfetch.fetch.retry import (
    DEFAULT_BASE_DELAY,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_DELAY,
    DEFAULT_RETRYABLE_STATUSES,
    RetryPolicy,
)


class ApiConfig(BaseModel):
    """Remote API settings."""

    base_url: str = ""
    timeout: float = 10.0


class AuthConfig(BaseModel):
    """OAuth2 token endpoint settings."""

    token_url: str = ""
    client_id: str = ""
    client_secret: str = ""
    refresh_leeway: float | None = REFRESH_LEEWAY_SEC


class RetryConfig(BaseModel):
    """Backoff settings (seconds)."""

    max_attempts: int = Field(default=DEFAULT_MAX_ATTEMPTS, ge=1)
    base_delay: float = Field(default=DEFAULT_BASE_DELAY, gt=0)
    max_delay: float = Field(default=DEFAULT_MAX_DELAY, gt=0)
    retryable_statuses: list[int] = Field(default_factory=lambda: sorted(DEFAULT_RETRYABLE_STATUSES))

    @model_validator(mode="after")
    def _delay_order(self) -> "RetryConfig":
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must not be smaller than base_delay")
        return self

    def to_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            retryable_statuses=frozenset(self.retryable_statuses),
        )


class Config(BaseModel):
    """Root configuration for authfetch."""

    api: ApiConfig = Field(default_factory=ApiConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    status_errors: dict[int, str] = Field(default_factory=lambda: dict(DEFAULT_STATUS_ERRORS))

    @field_validator("status_errors", mode="before")
    @classmethod
    def _status_keys(cls, value: object) -> object:
        # JSON object keys are always strings.
        if isinstance(value, dict):
            return {int(k): v for k, v in value.items()}
        return value

    def get_retry_policy(self) -> RetryPolicy:
        return self.retry.to_policy()

    def get_classifier(self) -> ErrorClassifier:
        return ErrorClassifier(self.status_errors)

    @property
    def has_auth(self) -> bool:
        return bool(self.auth.token_url and self.auth.client_id)
