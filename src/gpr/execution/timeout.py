"""Per-attempt deadlines.

Each upload attempt runs inside :func:`with_deadline_async`. When the
deadline passes the attempt's coroutine is cancelled and
:class:`TimeoutExpired` is raised, which the policy turns into a retryable
``timeout`` outcome.

Nested deadlines (shortest wins)::

    async with with_deadline_async(300.0):
        async with with_deadline_async(600.0) as ctx:
            ctx.timeout_seconds   # never more than the outer remaining time

The active deadlines are kept in a :class:`contextvars.ContextVar`, so every
asyncio task (one per package pipeline) has its own stack.
"""

from __future__ import annotations

import asyncio
import contextvars
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field


class TimeoutExpired(TimeoutError):
    """Raised when an operation exceeds its deadline.

    Attributes:
        timeout: The timeout value that was exceeded
        elapsed: How long the operation ran before being interrupted
        operation: Name/description of the operation
    """

    def __init__(
        self,
        timeout: float,
        elapsed: float | None = None,
        operation: str = "operation",
    ):
        self.timeout = timeout
        self.elapsed = elapsed
        self.operation = operation

        msg = f"Operation '{operation}' timed out after {timeout}s"
        if elapsed is not None:
            msg += f" (ran for {elapsed:.2f}s)"
        super().__init__(msg)


@dataclass(frozen=True)
class DeadlineContext:
    """Deadline state for one ``with_deadline_async`` block.

    Attributes:
        deadline: Absolute deadline (monotonic clock)
        timeout_seconds: Effective timeout in seconds
        operation: Name/description of the operation
        start_time: When the block was entered
    """

    deadline: float
    timeout_seconds: float
    operation: str = "operation"
    start_time: float = field(default_factory=time.monotonic)

    def remaining(self) -> float:
        """Seconds until the deadline; negative once expired."""
        return self.deadline - time.monotonic()

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.start_time

    def is_expired(self) -> bool:
        return time.monotonic() >= self.deadline


_deadlines: contextvars.ContextVar[tuple[DeadlineContext, ...]] = contextvars.ContextVar(
    "gpr_deadlines", default=()
)


def get_current_deadline() -> DeadlineContext | None:
    """Innermost active deadline of the current task, if any."""
    stack = _deadlines.get()
    return stack[-1] if stack else None


def get_effective_timeout(requested: float) -> float:
    """Clamp ``requested`` to the time left on the enclosing deadline."""
    current = get_current_deadline()
    if current is None:
        return requested
    return max(0.0, min(requested, current.remaining()))


@asynccontextmanager
async def with_deadline_async(
    seconds: float, operation: str | None = None
) -> AsyncIterator[DeadlineContext]:
    """Async context manager enforcing a time limit on its body.

    Raises:
        TimeoutExpired: the body did not finish in time
        ValueError: ``seconds`` is negative
    """
    if seconds < 0:
        raise ValueError(f"Timeout must be non-negative, got {seconds}")

    effective = get_effective_timeout(seconds)
    now = time.monotonic()
    ctx = DeadlineContext(
        deadline=now + effective,
        timeout_seconds=effective,
        operation=operation or "operation",
        start_time=now,
    )

    token = _deadlines.set(_deadlines.get() + (ctx,))
    try:
        async with asyncio.timeout(effective):
            yield ctx
    except TimeoutError as exc:
        if isinstance(exc, TimeoutExpired):
            raise
        raise TimeoutExpired(
            timeout=effective,
            elapsed=ctx.elapsed,
            operation=ctx.operation,
        ) from None
    finally:
        _deadlines.reset(token)


__all__ = [
    "DeadlineContext",
    "TimeoutExpired",
    "get_current_deadline",
    "get_effective_timeout",
    "with_deadline_async",
]
