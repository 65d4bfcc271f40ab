"""
Retry with exponential backoff for flaky remote steps.

Only errors listed in RetryConfig.retry_on are retried; anything else
propagates on the first occurrence. With max_attempts=1 (the default) the
wrapped call runs exactly once.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Tuple, Type

logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """Retry settings"""
    max_attempts: int = 1
    backoff_base: float = 1.0  # seconds
    backoff_max: float = 10.0
    backoff_multiplier: float = 2.0
    retry_on: Tuple[Type[BaseException], ...] = field(default_factory=tuple)

    def wait_for(self, attempt: int) -> float:
        """Seconds to wait after the given zero-based attempt."""
        wait = self.backoff_base * (self.backoff_multiplier ** attempt)
        return min(wait, self.backoff_max)


async def retry_with_backoff(
    func: Callable[..., Awaitable[Any]],
    config: RetryConfig = None,
    *args,
    **kwargs
) -> Any:
    """
    Awaits func(*args, **kwargs), retrying retryable errors.

    Raises:
        The last retryable error once attempts are exhausted, or any
        non-retryable error immediately.
    """
    config = config or RetryConfig()

    for attempt in range(config.max_attempts):
        try:
            result = await func(*args, **kwargs)
        except config.retry_on as e:
            if attempt >= config.max_attempts - 1:
                if config.max_attempts > 1:
                    logger.error(f"{type(e).__name__} after {config.max_attempts} attempts: {e}")
                raise
            wait = config.wait_for(attempt)
            logger.warning(
                f"{type(e).__name__}: {e}, "
                f"attempt {attempt + 1}/{config.max_attempts}, "
                f"waiting {wait:.1f}s..."
            )
            await asyncio.sleep(wait)
            continue

        if attempt > 0:
            logger.info(f"Succeeded on attempt {attempt + 1}")
        return result

    raise RuntimeError("retry_with_backoff called with max_attempts < 1")
