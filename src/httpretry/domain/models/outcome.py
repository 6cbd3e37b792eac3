"""Classification of a single attempt's outcome."""

from enum import Enum


class Classification(str, Enum):
    """Whether a failed attempt is worth another try"""

    RETRYABLE = "retryable"
    PERMANENT = "permanent"

    @property
    def is_retryable(self) -> bool:
        return self is Classification.RETRYABLE
