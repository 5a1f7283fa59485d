"""
CLI output helpers: Rich consoles, the publish results table, error lines.
"""

from __future__ import annotations

import json

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from gpr.core.errors import GprError
from gpr.execution.models import PublishReport, PublishStatus

console = Console()
err_console = Console(stderr=True)

_STATUS_STYLE = {
    PublishStatus.SUCCEEDED: "green",
    PublishStatus.FAILED: "red",
    PublishStatus.CANCELLED: "yellow",
}


def _format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KiB"
    return f"{size / (1024 * 1024):.1f} MiB"


def print_error(error: GprError, out: Console | None = None) -> None:
    """One-line error in the ``Error (CATEGORY): message`` form."""
    (out or err_console).print(
        f"[bold red]Error[/bold red] ({error.category.value}): {escape(error.message)}",
        highlight=False,
        soft_wrap=True,
    )


def print_report(report: PublishReport, out: Console | None = None, *, as_json: bool = False) -> None:
    """Render per-item results and a one-line summary."""
    out = out or console
    if as_json:
        out.print_json(json.dumps(report.to_dict(), default=str))
        return

    table = Table(title="Publish results", show_lines=False, pad_edge=False)
    table.add_column("Package", overflow="fold")
    table.add_column("Repository")
    table.add_column("Version")
    table.add_column("Status")
    table.add_column("Attempts", justify="right")
    table.add_column("HTTP", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Detail", overflow="fold")

    for result in report.results:
        style = _STATUS_STYLE[result.status]
        table.add_row(
            result.filename,
            str(result.item.repository or ""),
            result.item.version or "",
            f"[{style}]{result.status.value}[/{style}]",
            str(result.attempts),
            str(result.status_code) if result.status_code is not None else "",
            _format_size(result.size) if result.size else "",
            "" if result.success else escape(result.message),
        )
    out.print(table)

    summary: list[str] = [
        f"[green]{report.succeeded} succeeded[/green]",
        f"[red]{report.failed} failed[/red]",
    ]
    if report.cancelled:
        summary.append(f"[yellow]{report.cancelled} cancelled[/yellow]")
    out.print(
        ", ".join(summary)
        + f" [dim]({_format_size(report.bytes_uploaded)} uploaded in {report.duration_seconds:.1f}s)[/dim]"
    )


__all__ = ["console", "err_console", "print_error", "print_report"]
