"""
Root Typer application for the gpr CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from gpr import __version__
from gpr.cli.details import details
from gpr.cli.push import push
from gpr.cli.tokens import encode, set_api_key
from gpr.core.logging import configure_logging
from gpr.core.settings import get_settings

app = Typer(
    name="gpr",
    help="gpr — publish NuGet packages to GitHub Packages.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("gpr-tool")
        except PackageNotFoundError:
            v = __version__
        typer.echo(f"gpr {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(  # noqa: UP007
        None, "--log-level", help="DEBUG, INFO, WARNING or ERROR [default: INFO]."
    ),
    json_logs: bool | None = typer.Option(  # noqa: UP007
        None,
        "--json-logs/--console-logs",
        help="Force JSON or console log rendering [default: JSON unless a TTY].",
    ),
) -> None:
    """gpr — publish NuGet packages to GitHub Packages."""
    settings = get_settings()
    level = (log_level or settings.log_level).upper()
    if level not in _LOG_LEVELS:
        raise typer.BadParameter(f"Unknown log level: {log_level}", param_hint="--log-level")
    configure_logging(
        level=level,
        json_format=json_logs if json_logs is not None else settings.json_logs,
    )


# ── Commands ─────────────────────────────────────────────────────────────

app.command("push")(push)
app.command("details")(details)
app.command("encode")(encode)
app.command("set-api-key")(set_api_key)
