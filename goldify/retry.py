"""Retry with exponential backoff and jitter for async operations."""
from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence, TypeVar

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

JITTER_FRACTION = 0.3


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget. Delays are in seconds."""

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    retry_on: tuple[type[BaseException], ...] = (Exception,)


DEFAULT_POLICY = RetryPolicy()


class RetryExecutor:
    """Run an async operation, retrying failures with exponential backoff.

    The delay before retry ``n`` (0-based) is
    ``min(base_delay * 2**n + jitter, max_delay)`` where jitter is drawn from
    ``[0, 0.3 * base_delay * 2**n)``. There is no sleep after the final
    failing attempt; the last error is re-raised.
    """

    def __init__(
        self,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rand: Callable[[], float] = random.random,
    ) -> None:
        self._sleep = sleep
        self._rand = rand

    def backoff_delay(self, attempt: int, policy: RetryPolicy) -> float:
        exponential = policy.base_delay * (2**attempt)
        jitter = self._rand() * JITTER_FRACTION * exponential
        return min(exponential + jitter, policy.max_delay)

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: RetryPolicy | None = None,
        on_retry: Callable[[int, Exception], None] | None = None,
    ) -> T:
        policy = policy or DEFAULT_POLICY
        attempt = 0

        while True:
            try:
                return await operation()
            except ConfigurationError:
                raise
            except Exception as e:
                if not isinstance(e, policy.retry_on):
                    raise
                if attempt == policy.max_retries:
                    raise

                delay = self.backoff_delay(attempt, policy)
                if on_retry is not None:
                    on_retry(attempt + 1, e)
                else:
                    logger.warning(
                        "Attempt %d failed, retrying in %.2fs: %s",
                        attempt + 1, delay, e,
                    )
                await self._sleep(delay)
                attempt += 1


_default_executor = RetryExecutor()


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    on_retry: Callable[[int, Exception], None] | None = None,
) -> T:
    """Shortcut for ``RetryExecutor().execute``."""
    return await _default_executor.execute(operation, policy, on_retry)


async def with_retry_all(
    operations: Sequence[Callable[[], Awaitable[T]]],
    policy: RetryPolicy | None = None,
    executor: RetryExecutor | None = None,
) -> list[T | None]:
    """Run operations concurrently with retry; failed ones yield ``None``."""
    executor = executor or _default_executor

    async def _guarded(op: Callable[[], Awaitable[T]]) -> T | None:
        try:
            return await executor.execute(op, policy)
        except Exception as e:
            logger.error("Operation failed after retries: %s", e)
            return None

    return list(await asyncio.gather(*(_guarded(op) for op in operations)))
