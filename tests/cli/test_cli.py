"""End-to-end tests for the Typer application."""

import io
import json
from unittest.mock import patch

import pytest
from rich.console import Console
from typer.testing import CliRunner

from gpr import __version__
from gpr.cli.app import app
from gpr.commands import RunContext
from gpr.core.settings import get_settings
from tests._support.fakes import FakeTransport

runner = CliRunner()


@pytest.fixture(autouse=True)
def configure_logging():
    """Keep the global structlog setup away from CliRunner's temporary streams."""
    with patch("gpr.cli.app.configure_logging") as configure:
        yield configure


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def context(tmp_path, transport, monkeypatch) -> RunContext:
    monkeypatch.setenv("GPR_API_KEY", "ghp_env")
    get_settings.cache_clear()
    return RunContext(
        settings=get_settings(),
        console=Console(file=io.StringIO(), width=200, color_system=None),
        err_console=Console(file=io.StringIO(), width=200, color_system=None),
        transport_factory=lambda settings: transport,
        cwd=tmp_path,
    )


def invoke(context: RunContext, *args: str):
    with patch("gpr.cli.runner.build_context", return_value=context):
        return runner.invoke(app, list(args))


class TestRootApp:
    def test_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("push", "details", "encode", "set-api-key"):
            assert command in result.stdout

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert result.stdout.startswith("gpr ")

    def test_version_falls_back_to_package_version(self):
        from importlib.metadata import PackageNotFoundError

        with patch("importlib.metadata.version", side_effect=PackageNotFoundError):
            result = runner.invoke(app, ["--version"])
        assert result.stdout.strip() == f"gpr {__version__}"

    def test_bad_log_level(self, context):
        result = invoke(context, "--log-level", "chatty", "encode", "x")
        assert result.exit_code != 0

    def test_logging_options(self, context, configure_logging):
        result = invoke(context, "--log-level", "debug", "--json-logs", "encode", "x")
        assert result.exit_code == 0
        configure_logging.assert_called_once_with(level="DEBUG", json_format=True)


class TestPush:
    def test_success(self, context, transport, nupkg):
        result = invoke(context, "push", "*.nupkg", "--json")
        assert result.exit_code == 0
        data = json.loads(context.console.file.getvalue())
        assert data["items"][0]["status"] == "succeeded"
        assert len(transport.calls) == 1

    def test_failure_exit_code(self, context, nupkg):
        context.transport_factory = lambda settings: FakeTransport(default=409)
        result = invoke(context, "push", "*.nupkg", "--retries", "0", "--json")
        assert result.exit_code == 1
        data = json.loads(context.console.file.getvalue())
        assert data["items"][0]["error"]["category"] == "CONFLICT"

    def test_retry_option(self, context, nupkg):
        transport = FakeTransport([503, 503, 200])
        context.transport_factory = lambda settings: transport
        result = invoke(context, "push", "*.nupkg", "--retries", "2", "--json")
        assert result.exit_code == 0
        assert json.loads(context.console.file.getvalue())["items"][0]["attempts"] == 3

    def test_invalid_version(self, context, transport, nupkg):
        result = invoke(context, "push", "*.nupkg", "--version", "1.0.0.0.0")
        assert result.exit_code == 1
        assert "Error (CONFIG)" in context.err_console.file.getvalue()
        assert transport.calls == []

    def test_no_packages(self, context):
        result = invoke(context, "push", "missing/*.nupkg")
        assert result.exit_code == 1
        assert "Unable to find any packages" in context.err_console.file.getvalue()

    def test_concurrency_from_settings(self, context, nupkg, monkeypatch):
        monkeypatch.setenv("GPR_CONCURRENCY", "1")
        get_settings.cache_clear()
        with patch("gpr.cli.push.run_command") as run_command:
            runner.invoke(app, ["push", "*.nupkg"])
        command = run_command.call_args.args[0]
        assert command.concurrency == 1
        assert command.retries == 3


class TestTokens:
    def test_encode(self, context):
        result = invoke(context, "encode", "ab")
        assert result.exit_code == 0
        assert "&#97;&#98;" in context.console.file.getvalue()

    def test_encode_without_token(self, context):
        result = invoke(context, "encode")
        assert result.exit_code == 1

    def test_set_api_key(self, context, tmp_path):
        config = tmp_path / "NuGet.Config"
        result = invoke(context, "set-api-key", "ghp_new", "github", "--config-file", str(config))
        assert result.exit_code == 0
        assert "ghp_new" in config.read_text(encoding="utf-8")


class TestDetails:
    def test_details(self, context, transport):
        result = invoke(context, "details", "owner", "Foo", "1.0.0")
        assert result.exit_code == 0
        assert transport.calls == [{"owner": "owner", "name": "Foo", "version": "1.0.0"}]
