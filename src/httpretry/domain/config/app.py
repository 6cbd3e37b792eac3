"""Main application configuration model."""

from pydantic import BaseModel, ConfigDict, Field

from httpretry.domain.config.http import HttpConfig
from httpretry.domain.config.retry import RetryConfig


class AppConfig(BaseModel):
    """Main application configuration.

    Root model aggregating all configuration sections. Validation is
    performed at load time to fail fast on configuration errors.

    Attributes:
        retry: Retry logic configuration
        http: HTTP transport configuration
    """

    retry: RetryConfig = Field(default_factory=RetryConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)

    model_config = ConfigDict(
        validate_assignment=True,  # Validate on attribute assignment
        extra="forbid",  # Reject unknown fields
        json_schema_extra={
            "example": {
                "retry": {
                    "max_attempts": 15,
                    "backoff": {
                        "strategy": "truncated_exponential",
                        "max_exponent": 6,
                    },
                },
                "http": {
                    "base_url": "https://api.example.com",
                    "timeout": 30.0,
                    "headers": {"User-Agent": "httpretry"},
                },
            }
        },
    )
