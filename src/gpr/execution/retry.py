"""Retry strategies driven by attempt outcomes.

Example:
    >>> strategy = ConstantBackoff(max_retries=3, delay=10.0)
    >>> strategy.should_retry(0), strategy.should_retry(3)
    (True, False)
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from gpr.core.logging import get_logger
from gpr.execution.cancellation import CancellationToken
from gpr.execution.outcome import AttemptOutcome

logger = get_logger(__name__)


def utcnow() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(UTC)


class RetryStrategy(ABC):
    """Abstract base for retry strategies."""

    @abstractmethod
    def next_delay(self, attempt: int) -> float:
        """Delay before the next attempt.

        Args:
            attempt: Zero-based retry number (0 = first retry)
        """
        ...

    @abstractmethod
    def should_retry(self, retries_so_far: int) -> bool:
        """True if another retry fits in the budget."""
        ...


@dataclass
class ConstantBackoff(RetryStrategy):
    """Constant delay between retries."""

    max_retries: int = 3
    delay: float = 10.0

    def next_delay(self, attempt: int) -> float:
        return self.delay

    def should_retry(self, retries_so_far: int) -> bool:
        return retries_so_far < self.max_retries


@dataclass
class NoRetry(RetryStrategy):
    """No retry - a single attempt."""

    def next_delay(self, attempt: int) -> float:
        return 0.0

    def should_retry(self, retries_so_far: int) -> bool:
        return False


AttemptFn = Callable[[int], Awaitable[AttemptOutcome]]


@dataclass
class RetryContext:
    """Runs attempts until a terminal outcome or the budget runs out.

    ``attempt_fn`` receives the 1-based attempt number and must return an
    :class:`AttemptOutcome` rather than raise. The last outcome is always
    returned, whatever its kind.

    Example:
        >>> ctx = RetryContext(ConstantBackoff(max_retries=3), cancellation)
        >>> outcome = await ctx.run(upload_once)
    """

    strategy: RetryStrategy
    cancellation: CancellationToken | None = None
    on_retry: Callable[[AttemptOutcome, float], None] | None = None
    attempt: int = field(default=0, init=False)
    started_at: datetime = field(default_factory=utcnow, init=False)
    outcomes: list[AttemptOutcome] = field(default_factory=list, init=False)

    @property
    def attempts(self) -> int:
        return self.attempt

    @property
    def elapsed_seconds(self) -> float:
        return (utcnow() - self.started_at).total_seconds()

    @property
    def last_outcome(self) -> AttemptOutcome | None:
        return self.outcomes[-1] if self.outcomes else None

    def _cancelled_outcome(self) -> AttemptOutcome:
        reason = self.cancellation.reason if self.cancellation else None
        previous = self.last_outcome
        status_code = previous.status_code if previous else None
        return AttemptOutcome.cancelled(reason, status_code).with_attempt(self.attempt)

    async def run(self, attempt_fn: AttemptFn) -> AttemptOutcome:
        while True:
            if self.cancellation is not None and self.cancellation.is_cancelled:
                return self._cancelled_outcome()

            self.attempt += 1
            outcome = (await attempt_fn(self.attempt)).with_attempt(self.attempt)
            self.outcomes.append(outcome)

            if not outcome.is_retryable:
                return outcome
            if not self.strategy.should_retry(self.attempt - 1):
                return outcome

            delay = self.strategy.next_delay(self.attempt - 1)
            if self.on_retry:
                self.on_retry(outcome, delay)

            if self.cancellation is not None:
                if self.cancellation.is_cancelled or await self.cancellation.wait(delay):
                    return self._cancelled_outcome()
            elif delay > 0:
                await asyncio.sleep(delay)


__all__ = ["AttemptFn", "ConstantBackoff", "NoRetry", "RetryContext", "RetryStrategy"]
