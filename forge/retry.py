"""
Bounded exponential-backoff retry for async operations.

The operation returns an Outcome; retry decisions are made here only, from
the failure's `retryable` and `retry_after_s` fields. Each `run()` call
owns its attempt counter, so one executor can guard any number of
independent operations.
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Optional, TypeVar

from generation.types import GenerationFailure, Outcome

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    initial_delay_s: float = 1.0
    backoff_multiplier: float = 2.0
    max_retry_after_s: float = 120.0

    def backoff_delay(self, attempt_index: int) -> float:
        """Delay after the attempt at zero-based attempt_index failed."""
        return self.initial_delay_s * (self.backoff_multiplier ** attempt_index)

    def delay_for(self, failure: GenerationFailure, attempt_index: int) -> float:
        if failure.retry_after_s is not None:
            return min(failure.retry_after_s, self.max_retry_after_s)
        return self.backoff_delay(attempt_index)


class RetryExecutor:
    def __init__(self, sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self._sleep = sleep

    async def run(
        self,
        operation: Callable[[], Awaitable[Outcome[T]]],
        policy: RetryPolicy,
        label: str = "operation",
    ) -> Outcome[T]:
        last: Optional[GenerationFailure] = None
        attempts = max(1, policy.max_attempts)

        for attempt_index in range(attempts):
            outcome = await operation()
            if outcome.ok:
                if attempt_index:
                    logger.info("%s succeeded on attempt %d/%d", label, attempt_index + 1, attempts)
                return outcome

            last = outcome.error
            if not last.retryable:
                logger.warning("%s failed permanently: %s", label, last.message)
                return Outcome.failure(replace(last, attempts=attempt_index + 1))

            if attempt_index + 1 < attempts:
                delay = policy.delay_for(last, attempt_index)
                logger.warning(
                    "%s attempt %d/%d failed (%s); retrying in %.1fs",
                    label, attempt_index + 1, attempts, last.message, delay,
                )
                await self._sleep(delay)

        logger.error("%s failed after %d attempts: %s", label, attempts, last.message)
        return Outcome.failure(GenerationFailure(
            kind=last.kind,
            message=f"{label} failed after {attempts} attempts",
            details=last.details,
            status_code=last.status_code,
            retryable=False,
            exhausted=True,
            attempts=attempts,
            cause=last,
        ))
