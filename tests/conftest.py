"""
Shared pytest fixtures for the gpr test suite.

This module provides:
- Environment isolation (no stray ``GPR_*`` / token variables, fresh settings)
- Package archive builders backed by ``tmp_path``
- A scripted registry transport
"""

import sys
from pathlib import Path

import pytest

# Ensure gpr package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gpr.core.credentials import Credentials  # noqa: E402
from gpr.core.settings import get_settings  # noqa: E402
from gpr.execution.cancellation import CancellationToken  # noqa: E402
from gpr.nuget.models import PackageItem, RepositoryRef  # noqa: E402
from tests._support.fakes import FakeTransport  # noqa: E402
from tests._support.packages import build_nupkg, nuspec  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Strip token/config variables and reset the settings cache."""
    for name in ("GPR_API_KEY", "READ_PACKAGES_TOKEN", "GPR_NUGET_CONFIG_FILE", "GPR_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("GPR_RETRY_DELAY_SECONDS", "0")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def nupkg(tmp_path) -> Path:
    """A Foo 1.0.0 archive declaring https://github.com/owner/foo."""
    return build_nupkg(tmp_path / "Foo.1.0.0.nupkg")


@pytest.fixture
def make_nupkg(tmp_path):
    """Factory: ``make_nupkg("Bar.2.0.0.nupkg", id="Bar", version="2.0.0")``."""

    def _make(filename: str, **nuspec_kwargs) -> Path:
        return build_nupkg(tmp_path / filename, nuspec(**nuspec_kwargs))

    return _make


@pytest.fixture
def make_item():
    def _make(path: Path, repository: str = "owner/foo") -> PackageItem:
        return PackageItem(path=path, repository=RepositoryRef.parse(repository))

    return _make


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(user="GprTool", token="ghp_test")


@pytest.fixture
def cancellation() -> CancellationToken:
    return CancellationToken()


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()
