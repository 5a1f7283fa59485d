"""Cooperative cancellation.

A :class:`CancellationToken` is created once per process by the CLI and
passed explicitly to the orchestrator, pipeline and policy. Nothing polls
global state. Pipelines check the token at their suspension points (before
an attempt, before a retry delay) and stop with a ``cancelled`` outcome;
requests already on the wire finish or time out on their own.

Example::

    token = CancellationToken()
    loop.add_signal_handler(signal.SIGINT, token.cancel)
    report = await orchestrator.publish_all(items, token)
"""

from __future__ import annotations

import asyncio

from gpr.core.errors import PublishCancelledError
from gpr.core.logging import get_logger

logger = get_logger(__name__)


class CancellationToken:
    """One-shot cancellation signal shared by every pipeline of a run."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    def cancel(self, reason: str = "cancelled") -> None:
        """Trigger cancellation. Later calls are ignored."""
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        logger.warning("cancellation.requested", reason=reason)

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise PublishCancelledError(f"Operation was cancelled ({self._reason})")

    async def wait(self, timeout: float | None = None) -> bool:
        """Sleep up to ``timeout`` seconds; return True if cancelled meanwhile."""
        if timeout is not None and timeout <= 0:
            return self._event.is_set()
        try:
            async with asyncio.timeout(timeout):
                await self._event.wait()
        except TimeoutError:
            return False
        return True


__all__ = ["CancellationToken"]
