"""Resilience policy: per-attempt timeout composed with constant-delay retry.

::

    execute(attempt)
      └─ RetryContext(ConstantBackoff | NoRetry)
           └─ with_deadline_async(attempt_timeout)
                └─ attempt()  ->  AttemptOutcome

A timed-out attempt is a retryable ``timeout`` outcome and uses up retry
budget like any other retryable failure. With ``retry_count=0`` the policy
is a single timeout-wrapped attempt. An item therefore waits at most
``(retry_count + 1) * (attempt_timeout + retry_delay)``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from gpr.core.errors import PublishCancelledError
from gpr.core.logging import get_logger
from gpr.execution.cancellation import CancellationToken
from gpr.execution.outcome import AttemptOutcome
from gpr.execution.retry import ConstantBackoff, NoRetry, RetryContext, RetryStrategy
from gpr.execution.timeout import TimeoutExpired, with_deadline_async

logger = get_logger(__name__)

DEFAULT_RETRY_COUNT = 3
DEFAULT_RETRY_DELAY = 10.0
DEFAULT_ATTEMPT_TIMEOUT = 300.0


@dataclass(frozen=True)
class ResiliencePolicy:
    """Retry + timeout configuration applied to every upload."""

    retry_count: int = DEFAULT_RETRY_COUNT
    retry_delay: float = DEFAULT_RETRY_DELAY
    attempt_timeout: float = DEFAULT_ATTEMPT_TIMEOUT

    def __post_init__(self) -> None:
        if self.retry_count < 0:
            raise ValueError(f"retry_count must be >= 0, got {self.retry_count}")
        if self.retry_delay < 0:
            raise ValueError(f"retry_delay must be >= 0, got {self.retry_delay}")
        if self.attempt_timeout <= 0:
            raise ValueError(f"attempt_timeout must be > 0, got {self.attempt_timeout}")

    @property
    def max_attempts(self) -> int:
        return self.retry_count + 1

    def strategy(self) -> RetryStrategy:
        if self.retry_count == 0:
            return NoRetry()
        return ConstantBackoff(max_retries=self.retry_count, delay=self.retry_delay)

    async def execute(
        self,
        attempt: Callable[[], Awaitable[AttemptOutcome]],
        cancellation: CancellationToken | None = None,
    ) -> AttemptOutcome:
        """Run ``attempt`` under the policy and return the final outcome."""

        async def timed_attempt(number: int) -> AttemptOutcome:
            try:
                async with with_deadline_async(self.attempt_timeout, operation="upload"):
                    return await attempt()
            except TimeoutExpired:
                logger.warning("policy.attempt_timeout", attempt=number, timeout=self.attempt_timeout)
                return AttemptOutcome.timed_out(self.attempt_timeout)
            except PublishCancelledError as exc:
                return AttemptOutcome.cancelled(exc.message)

        def log_retry(outcome: AttemptOutcome, delay: float) -> None:
            logger.info(
                "policy.retry",
                attempt=outcome.attempt,
                max_attempts=self.max_attempts,
                delay=delay,
                status_code=outcome.status_code,
                reason=outcome.description,
            )

        context = RetryContext(self.strategy(), cancellation=cancellation, on_retry=log_retry)
        return await context.run(timed_attempt)


__all__ = [
    "DEFAULT_ATTEMPT_TIMEOUT",
    "DEFAULT_RETRY_COUNT",
    "DEFAULT_RETRY_DELAY",
    "ResiliencePolicy",
]
