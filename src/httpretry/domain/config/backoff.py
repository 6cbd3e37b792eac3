"""Backoff configuration model."""

from typing import Literal

from pydantic import BaseModel, Field


class BackoffConfig(BaseModel):
    """Configuration for the wait between attempts.

    Attributes:
        strategy: Backoff strategy name
        max_exponent: Exponent cap for truncated exponential backoff
        duration: Fixed wait in seconds for constant backoff
    """

    strategy: Literal["exponential", "truncated_exponential", "constant"] = "truncated_exponential"
    max_exponent: int = Field(6, ge=0)
    duration: float = Field(1.0, ge=0.0)
