"""
CLI: ``gpr encode`` and ``gpr set-api-key`` — token helpers.
"""

from __future__ import annotations

from pathlib import Path

import typer

from gpr.cli.runner import run_command
from gpr.commands import EncodeCommand, SetApiKeyCommand
from gpr.core.credentials import DEFAULT_SOURCE


def encode(
    token: str | None = typer.Argument(None, help="Personal access token."),  # noqa: UP007
) -> None:
    """Encode a token so GitHub won't revoke it when it is committed."""
    run_command(EncodeCommand(token=token))


def set_api_key(
    api_key: str | None = typer.Argument(None, help="Token / API key."),  # noqa: UP007
    source: str = typer.Argument(DEFAULT_SOURCE, help="Name of the package source."),
    config_file: Path | None = typer.Option(  # noqa: UP007
        None,
        "--config-file",
        help="NuGet configuration file (default: the per-user NuGet.Config).",
    ),
) -> None:
    """Store a GitHub API key / personal access token in NuGet.Config."""
    run_command(SetApiKeyCommand(api_key=api_key, source=source, config_file=config_file))
