"""Backoff strategies: attempt number -> wait in seconds.

Strategies are stateless tenacity waits, so one instance can be shared by any
number of concurrent retry loops and composed with other tenacity waits.
"""

from __future__ import annotations

import logging
import random
from abc import abstractmethod
from typing import Any, Dict, Optional, Union

from tenacity import RetryCallState
from tenacity.wait import wait_base

from httpretry.domain.config.backoff import BackoffConfig
from httpretry.domain.errors import InvalidArgument

logger = logging.getLogger(__name__)


class BackoffStrategy(wait_base):
    """Abstract base class for backoff strategies"""

    def __init__(self, rng: Optional[random.Random] = None):
        """Initialize strategy

        Args:
            rng: Random source for jitter (default: module-level generator)
        """
        self._rng = rng

    def _random(self) -> float:
        """Uniform float in [0, 1)"""
        if self._rng is None:
            return random.random()
        return self._rng.random()

    @abstractmethod
    def backoff(self, attempt: int) -> float:
        """Compute the wait before the next attempt

        Args:
            attempt: Number of attempts completed so far

        Returns:
            Wait duration in seconds (>= 0)
        """
        pass

    def __call__(self, retry_state: RetryCallState) -> float:
        return self.backoff(retry_state.attempt_number)


class ExponentialBackoff(BackoffStrategy):
    """Full-jitter exponential backoff: uniform over [0, 2^attempt) seconds.

    The exponent is not clamped; attempt numbers large enough to overflow a
    float raise OverflowError.
    """

    def backoff(self, attempt: int) -> float:
        return self._random() * (1 << attempt)

    def __repr__(self) -> str:
        return "ExponentialBackoff()"


class TruncatedExponentialBackoff(BackoffStrategy):
    """Exponential backoff whose exponent stops growing at max_exponent."""

    def __init__(self, max_exponent: int, rng: Optional[random.Random] = None):
        if max_exponent < 0:
            raise InvalidArgument("max_exponent must be non-negative")
        super().__init__(rng)
        self.max_exponent = max_exponent

    def backoff(self, attempt: int) -> float:
        return self._random() * (1 << min(attempt, self.max_exponent))

    def __repr__(self) -> str:
        return f"TruncatedExponentialBackoff(max_exponent={self.max_exponent})"


class ConstantBackoff(BackoffStrategy):
    """Same wait for every attempt."""

    def __init__(self, duration: float):
        if duration < 0:
            raise InvalidArgument("duration must be non-negative")
        super().__init__()
        self.duration = float(duration)

    def backoff(self, attempt: int) -> float:
        return self.duration

    def __repr__(self) -> str:
        return f"ConstantBackoff(duration={self.duration})"


class BackoffFactory:
    """Factory for creating backoff strategies from configuration"""

    STRATEGIES = ("exponential", "truncated_exponential", "constant")

    @classmethod
    def create(cls, strategy: str, config: Optional[Dict[str, Any]] = None) -> BackoffStrategy:
        """Create backoff strategy instance

        Args:
            strategy: Strategy name (exponential, truncated_exponential, constant)
            config: Strategy parameters (max_exponent, duration)

        Returns:
            BackoffStrategy instance

        Raises:
            InvalidArgument: If strategy name is not supported
        """
        if config is None:
            config = {}

        name = strategy.lower().replace("-", "_")
        if name == "truncated":
            name = "truncated_exponential"

        if name not in cls.STRATEGIES:
            available = ", ".join(cls.STRATEGIES)
            raise InvalidArgument(
                f"Unknown backoff strategy: {strategy}. "
                f"Available strategies: {available}"
            )

        logger.debug(f"Creating {name} backoff")
        if name == "exponential":
            return ExponentialBackoff()
        if name == "truncated_exponential":
            return TruncatedExponentialBackoff(int(config.get("max_exponent", 6)))
        return ConstantBackoff(float(config.get("duration", 1.0)))


def backoff_from_config(config: Union[BackoffConfig, Dict[str, Any]]) -> BackoffStrategy:
    """Build a strategy from the backoff configuration section."""
    if isinstance(config, BackoffConfig):
        config = config.model_dump()
    return BackoffFactory.create(config.get("strategy", "truncated_exponential"), config)
