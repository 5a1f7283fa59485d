"""
CLI: ``gpr push`` — publish package archives.
"""

from __future__ import annotations

import typer

from gpr.cli.runner import run_command
from gpr.commands import PushCommand
from gpr.core.settings import get_settings


def push(
    glob_pattern: str | None = typer.Argument(  # noqa: UP007
        None,
        metavar="GLOB",
        help="Package file, directory or glob pattern (default: **/*.nupkg).",
    ),
    repository: str | None = typer.Option(  # noqa: UP007
        None,
        "--repository",
        "-r",
        help="Override the upstream repository: owner/repository or a GitHub URL.",
    ),
    version: str | None = typer.Option(  # noqa: UP007
        None, "--version", "-v", help="Override the package version."
    ),
    concurrency: int | None = typer.Option(  # noqa: UP007
        None, "--concurrency", "-c", help="Number of simultaneous uploads [default: 4]."
    ),
    retries: int | None = typer.Option(  # noqa: UP007
        None, "--retries", help="Retries per package, 0 disables retrying [default: 3]."
    ),
    api_key: str | None = typer.Option(  # noqa: UP007
        None, "--api-key", "-k", help="Personal access token with write:packages."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the results as JSON."),
) -> None:
    """Publish NuGet packages to GitHub Packages.

    Example::

        gpr push "artifacts/*.nupkg" --repository owner/repo --retries 5
        gpr push Foo.1.0.0.nupkg --version 1.0.1-beta.1
    """
    settings = get_settings()
    run_command(
        PushCommand(
            glob_pattern=glob_pattern,
            repository=repository,
            version=version,
            concurrency=concurrency if concurrency is not None else settings.concurrency,
            retries=retries if retries is not None else settings.retries,
            api_key=api_key,
            as_json=as_json,
        )
    )
