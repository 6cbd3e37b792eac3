"""Configuration models with Pydantic validation."""

from httpretry.domain.config.app import AppConfig
from httpretry.domain.config.backoff import BackoffConfig
from httpretry.domain.config.http import HttpConfig
from httpretry.domain.config.retry import RetryConfig

__all__ = [
    "AppConfig",
    "BackoffConfig",
    "HttpConfig",
    "RetryConfig",
]
