"""Retry configuration model."""

from pydantic import BaseModel, Field

from httpretry.domain.config.backoff import BackoffConfig


class RetryConfig(BaseModel):
    """Configuration for retry logic.

    Attributes:
        max_attempts: Maximum number of attempts, first one included
        backoff: Wait policy between attempts
    """

    max_attempts: int = Field(15, ge=1)
    backoff: BackoffConfig = Field(default_factory=BackoffConfig)
