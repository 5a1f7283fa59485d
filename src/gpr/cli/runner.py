"""
Bridge from Typer commands to :func:`gpr.commands.dispatch`.

One :class:`~gpr.commands.RunContext` (and so one cancellation token) is
built per process. SIGINT / SIGTERM trigger that token through the running
loop's signal handlers.
"""

from __future__ import annotations

import asyncio
import signal

import typer

from gpr.cli.utils import console, err_console
from gpr.commands import Command, RunContext, dispatch
from gpr.core.logging import get_logger
from gpr.core.settings import get_settings

logger = get_logger(__name__)

_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def build_context() -> RunContext:
    """Create the per-process run context."""
    return RunContext(settings=get_settings(), console=console, err_console=err_console)


async def run_async(command: Command, context: RunContext) -> int:
    loop = asyncio.get_running_loop()
    installed = []
    for sig in _SIGNALS:
        try:
            loop.add_signal_handler(sig, context.cancellation.cancel, sig.name)
        except (NotImplementedError, RuntimeError, ValueError):
            # No loop signal support (Windows, non-main thread)
            continue
        installed.append(sig)

    try:
        return await dispatch(command, context)
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


def run_command(command: Command) -> None:
    """Execute ``command`` and exit with its exit code."""
    context = build_context()
    exit_code = asyncio.run(run_async(command, context))
    if context.cancellation.is_cancelled:
        logger.warning("command.cancelled", reason=context.cancellation.reason)
    if exit_code:
        raise typer.Exit(code=exit_code)


__all__ = ["build_context", "run_async", "run_command"]
