"""
Retry policy for engine and gateway calls.

Attempts an async operation, waiting base_delay * 2**(attempt - 1) between
failures. When attempts run out the last error is re-raised as is. Caller
defects (see exceptions.NON_RETRYABLE_ERRORS) are raised on first sight.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from .exceptions import NON_RETRYABLE_ERRORS
from .logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 1.0


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay_seconds: float = DEFAULT_BASE_DELAY
    backoff_multiplier: float = 2.0
    max_delay_seconds: Optional[float] = None
    non_retryable_exceptions: tuple = NON_RETRYABLE_ERRORS

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay_seconds < 0:
            raise ValueError("base_delay_seconds must be non-negative")


class RetryExecutor:
    """
    Runs async operations with exponential backoff.

    Example:
        >>> executor = RetryExecutor(RetryConfig(max_attempts=3, base_delay_seconds=1.0))
        >>> payload = await executor.execute(lambda: engine_input.encrypt())
    """

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.config = config or RetryConfig()
        self._sleep = sleep

    def calculate_delay(self, attempt: int, base_delay: Optional[float] = None) -> float:
        """Delay before retrying after failed attempt number `attempt` (1-based)."""
        base = self.config.base_delay_seconds if base_delay is None else base_delay
        delay = base * (self.config.backoff_multiplier ** (attempt - 1))
        if self.config.max_delay_seconds is not None:
            delay = min(delay, self.config.max_delay_seconds)
        return delay

    def should_retry(self, exception: BaseException) -> bool:
        return not isinstance(exception, self.config.non_retryable_exceptions)

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        max_attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
        description: Optional[str] = None,
    ) -> T:
        """
        Execute `operation` with retry logic.

        Args:
            operation: Zero-argument callable returning a fresh awaitable per attempt
            max_attempts: Overrides the configured attempt bound
            base_delay: Overrides the configured base delay in seconds
            description: Name used in log messages

        Returns:
            Result of the first successful attempt

        Raises:
            The exception from the final attempt, unchanged
        """
        attempts = self.config.max_attempts if max_attempts is None else max_attempts
        if attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        name = description or getattr(operation, "__name__", "operation")

        for attempt in range(1, attempts + 1):
            try:
                return await operation()
            except Exception as e:
                if not self.should_retry(e):
                    logger.debug(f"Non-retryable {type(e).__name__} from {name}")
                    raise

                if attempt >= attempts:
                    logger.warning(f"All {attempts} attempts exhausted for {name}: {e}")
                    raise

                delay = self.calculate_delay(attempt, base_delay)
                logger.info(f"Attempt {attempt}/{attempts} for {name} failed, retrying in {delay:.2f}s: {e}")
                await self._sleep(delay)
