"""
CLI: ``gpr details`` — show registry metadata for a package version.
"""

from __future__ import annotations

import typer

from gpr.cli.runner import run_command
from gpr.commands import DetailsCommand


def details(
    owner: str = typer.Argument(..., help="Package owner."),
    name: str = typer.Argument(..., help="Package name."),
    version: str = typer.Argument(..., help="Package version."),
    api_key: str | None = typer.Option(  # noqa: UP007
        None, "--api-key", "-k", help="Personal access token with read:packages."
    ),
) -> None:
    """View package details."""
    run_command(DetailsCommand(owner=owner, name=name, version=version, api_key=api_key))
