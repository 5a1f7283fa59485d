"""Command descriptions and their handlers.

The CLI turns arguments into one of the frozen command variants below and
hands it to :func:`dispatch` together with the :class:`RunContext` created
once for the process::

    context = RunContext(settings=get_settings())
    exit_code = await dispatch(PushCommand(glob_pattern="*.nupkg"), context)

Handlers are looked up in ``COMMAND_HANDLERS`` by command type. Every
:class:`~gpr.core.errors.GprError` that escapes a handler is printed as one
line and turned into exit code 1.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape

from gpr.cli.utils import print_error, print_report
from gpr.core.credentials import (
    DEFAULT_SOURCE,
    Credentials,
    default_config_file,
    find_token,
    set_api_key,
)
from gpr.core.errors import GprError
from gpr.core.logging import get_logger
from gpr.core.settings import GprSettings
from gpr.execution.cancellation import CancellationToken
from gpr.execution.orchestrator import DEFAULT_CONCURRENCY, UploadOrchestrator
from gpr.execution.outcome import NUGET_WARNING_HEADER
from gpr.execution.pipeline import PublishPipeline
from gpr.execution.policy import DEFAULT_RETRY_COUNT, ResiliencePolicy
from gpr.nuget.discovery import build_package_items, find_package_files
from gpr.nuget.models import RepositoryRef
from gpr.nuget.versioning import SemanticVersion
from gpr.registry.client import RegistryTransport

logger = get_logger(__name__)


# ── Command variants ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class PushCommand:
    """Publish every archive matching ``glob_pattern``."""

    glob_pattern: str | None = None
    repository: str | None = None
    version: str | None = None
    concurrency: int = DEFAULT_CONCURRENCY
    retries: int = DEFAULT_RETRY_COUNT
    api_key: str | None = None
    as_json: bool = False


@dataclass(frozen=True)
class DetailsCommand:
    """Show registry metadata for one package version."""

    owner: str
    name: str
    version: str
    api_key: str | None = None


@dataclass(frozen=True)
class EncodeCommand:
    """Print a token in forms GitHub's secret scanning won't revoke."""

    token: str | None


@dataclass(frozen=True)
class SetApiKeyCommand:
    """Store a token in a NuGet.Config file."""

    api_key: str | None
    source: str = DEFAULT_SOURCE
    config_file: Path | None = None


Command = PushCommand | DetailsCommand | EncodeCommand | SetApiKeyCommand


@dataclass
class RunContext:
    """Per-process state handed to every handler."""

    settings: GprSettings
    cancellation: CancellationToken = field(default_factory=CancellationToken)
    console: Console = field(default_factory=Console)
    err_console: Console = field(default_factory=lambda: Console(stderr=True))
    transport_factory: Callable[[GprSettings], RegistryTransport] = RegistryTransport.from_settings
    cwd: Path | None = None

    def warn(self, line: str) -> None:
        self.err_console.print(f"[yellow]{escape(line)}[/yellow]", highlight=False, soft_wrap=True)

    def credentials(self, api_key: str | None) -> Credentials:
        token = find_token(api_key, self.settings, warn=self.warn)
        return Credentials(user=self.settings.user, token=token)

    def config_file(self, override: Path | None = None) -> Path:
        return override or self.settings.nuget_config_file or default_config_file()


# ── Handlers ─────────────────────────────────────────────────────────────


async def handle_push(command: PushCommand, context: RunContext) -> int:
    settings = context.settings

    # Reject a bad --version before any archive is touched.
    if command.version is not None:
        SemanticVersion.parse(command.version)

    concurrency = max(1, command.concurrency)
    retries = max(0, command.retries)
    credentials = context.credentials(command.api_key)

    files = find_package_files(command.glob_pattern, context.cwd)
    items = build_package_items(files, command.repository)
    override = RepositoryRef.parse(command.repository) if command.repository else None

    policy = ResiliencePolicy(
        retry_count=retries,
        retry_delay=settings.retry_delay_seconds,
        attempt_timeout=settings.attempt_timeout_seconds,
    )
    logger.info(
        "push.start",
        packages=len(items),
        concurrency=concurrency,
        retries=retries,
        version=command.version,
        repository=str(override) if override else None,
    )

    async with context.transport_factory(settings) as transport:
        pipeline = PublishPipeline(
            transport,
            credentials,
            policy,
            version=command.version,
            repository=override,
        )
        orchestrator = UploadOrchestrator(pipeline, concurrency=concurrency)
        report = await orchestrator.publish_all(items, context.cancellation)

    print_report(report, context.console, as_json=command.as_json)
    return report.exit_code


async def handle_details(command: DetailsCommand, context: RunContext) -> int:
    credentials = context.credentials(command.api_key)
    async with context.transport_factory(context.settings) as transport:
        response = await transport.get_package_details(
            command.owner, command.name, command.version, credentials
        )

    if response.status_code == 200:
        try:
            context.console.print_json(data=json.loads(response.body))
        except json.JSONDecodeError:
            context.console.print(response.body, markup=False, highlight=False, soft_wrap=True)
        return 0

    warning = response.headers.get(NUGET_WARNING_HEADER)
    if warning:
        context.console.print(warning, markup=False, highlight=False, soft_wrap=True)
        return 1

    context.console.print(f"{response.status_code}", markup=False, highlight=False, soft_wrap=True)
    for name, value in response.headers.items():
        context.console.print(f"{name}: {value}", markup=False, highlight=False, soft_wrap=True)
    return 1


def xml_encode(token: str) -> str:
    return "".join(f"&#{ord(ch)};" for ch in token)


def unicode_encode(token: str) -> str:
    return "".join(f"\\u{ord(ch):04x}" for ch in token)


async def handle_encode(command: EncodeCommand, context: RunContext) -> int:
    out = context.console
    if not command.token:
        out.print("No token was specified")
        return 1

    xml_encoded = xml_encode(command.token)
    lines = [
        "An encoded token can be included in a public repository without being "
        "automatically deleted by GitHub.",
        "These can be used in various package ecosystems like this:",
        "",
        "A NuGet `nuget.config` file:",
        "<packageSourceCredentials>",
        "  <github>",
        '    <add key="Username" value="PublicToken" />',
        f'    <add key="ClearTextPassword" value="{xml_encoded}" />',
        "  </github>",
        "</packageSourceCredentials>",
        "",
        "A Maven `settings.xml` file:",
        "<servers>",
        "  <server>",
        "    <id>github</id>",
        "    <username>PublicToken</username>",
        f"    <password>{xml_encoded}</password>",
        "  </server>",
        "</servers>",
        "",
        "An npm `.npmrc` file:",
        "@OWNER:registry=https://npm.pkg.github.com",
        f'//npm.pkg.github.com/:_authToken="{unicode_encode(command.token)}"',
    ]
    for line in lines:
        out.print(line, markup=False, highlight=False, soft_wrap=True)
    return 0


async def handle_set_api_key(command: SetApiKeyCommand, context: RunContext) -> int:
    out = context.console
    config_file = context.config_file(command.config_file)
    source = command.source or DEFAULT_SOURCE

    if not command.api_key:
        out.print("No API key was specified", highlight=False)
        out.print(
            "Key would be saved as ClearTextPassword to xpath "
            f"/configuration/packageSourceCredentials/{source}/.",
            markup=False,
            highlight=False,
        )
        out.print(f"Target config file is '{config_file}':", markup=False, highlight=False)
        if config_file.is_file():
            out.print(config_file.read_text(encoding="utf-8"), markup=False, highlight=False)
        else:
            out.print("There is currently no file at this location.")
        return 1

    set_api_key(config_file, command.api_key, source)
    out.print(f"Stored API key for '{source}' in {config_file}", markup=False, highlight=False)
    return 0


# ── Dispatch ─────────────────────────────────────────────────────────────

Handler = Callable[[Any, RunContext], Awaitable[int]]

COMMAND_HANDLERS: dict[type, Handler] = {
    PushCommand: handle_push,
    DetailsCommand: handle_details,
    EncodeCommand: handle_encode,
    SetApiKeyCommand: handle_set_api_key,
}


async def dispatch(command: Command, context: RunContext) -> int:
    """Run the handler registered for ``type(command)`` and return its exit code."""
    handler = COMMAND_HANDLERS.get(type(command))
    if handler is None:
        raise TypeError(f"No handler registered for {type(command).__name__}")
    try:
        return await handler(command, context)
    except GprError as exc:
        logger.debug("command.failed", command=type(command).__name__, **exc.to_dict())
        print_error(exc, context.err_console)
        return 1


__all__ = [
    "COMMAND_HANDLERS",
    "Command",
    "DetailsCommand",
    "EncodeCommand",
    "PushCommand",
    "RunContext",
    "SetApiKeyCommand",
    "dispatch",
    "unicode_encode",
    "xml_encode",
]
