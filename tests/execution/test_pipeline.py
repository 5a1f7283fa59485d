"""Tests for the single-item publish pipeline."""

import httpx
import pytest

from gpr.core.errors import ArchiveError, AuthError, ConflictError, InvalidVersionError, TransientNetworkError
from gpr.execution.models import PublishStatus
from gpr.execution.pipeline import PublishPipeline
from gpr.execution.policy import ResiliencePolicy
from gpr.nuget.archive import read_manifest
from gpr.nuget.models import RepositoryRef
from tests._support.fakes import FakeResponse, FakeTransport
from tests._support.packages import build_nupkg


def _pipeline(transport, credentials, *, retries=3, **kwargs) -> PublishPipeline:
    policy = ResiliencePolicy(retry_count=retries, retry_delay=0, attempt_timeout=5.0)
    return PublishPipeline(transport, credentials, policy, **kwargs)


class TestPublishPipeline:
    @pytest.mark.asyncio
    async def test_success(self, nupkg, make_item, credentials, cancellation):
        transport = FakeTransport([200])
        item = make_item(nupkg)
        result = await _pipeline(transport, credentials).run(item, cancellation)

        assert result.success
        assert result.status is PublishStatus.SUCCEEDED
        assert result.attempts == 1
        assert result.size == nupkg.stat().st_size
        assert item.uploaded is True
        assert item.version == "1.0.0"
        [call] = transport.calls
        assert call["endpoint"] == "https://nuget.test/owner/"
        assert call["filename"] == "Foo.1.0.0.nupkg"
        assert call["content"] == nupkg.read_bytes()

    @pytest.mark.asyncio
    async def test_uploads_rewritten_bytes(self, nupkg, make_item, credentials, cancellation):
        transport = FakeTransport([200])
        item = make_item(nupkg)
        pipeline = _pipeline(
            transport, credentials, version="2.0.0", repository=RepositoryRef("other", "bar")
        )
        result = await pipeline.run(item, cancellation)

        assert result.success
        assert item.version == "2.0.0"
        manifest = read_manifest(nupkg)
        assert manifest.version == "2.0.0"
        assert manifest.repository_url == "https://github.com/other/bar"
        assert transport.calls[0]["content"] == nupkg.read_bytes()

    @pytest.mark.asyncio
    async def test_retryable_twice_then_success(self, nupkg, make_item, credentials, cancellation):
        transport = FakeTransport([503, 500, 201])
        result = await _pipeline(transport, credentials, retries=3).run(make_item(nupkg), cancellation)
        assert result.success
        assert result.attempts == 3
        assert len(transport.calls) == 3

    @pytest.mark.asyncio
    async def test_transport_error_is_retried(self, nupkg, make_item, credentials, cancellation):
        transport = FakeTransport([httpx.ConnectError("refused"), 200])
        result = await _pipeline(transport, credentials).run(make_item(nupkg), cancellation)
        assert result.success
        assert result.attempts == 2

    @pytest.mark.asyncio
    async def test_exhausted_budget(self, nupkg, make_item, credentials, cancellation):
        transport = FakeTransport(default=500)
        item = make_item(nupkg)
        result = await _pipeline(transport, credentials, retries=2).run(item, cancellation)
        assert not result.success
        assert result.status is PublishStatus.FAILED
        assert result.attempts == 3
        assert isinstance(result.error, TransientNetworkError)
        assert result.error.context.attempts == 3
        assert result.status_code == 500
        assert item.uploaded is False

    @pytest.mark.asyncio
    async def test_conflict_uses_nuget_warning(self, nupkg, make_item, credentials, cancellation):
        warning = "Version 1.0.0 of \"Foo\" has already been pushed."
        transport = FakeTransport([FakeResponse(409, {"X-Nuget-Warning": warning})])
        result = await _pipeline(transport, credentials).run(make_item(nupkg), cancellation)
        assert isinstance(result.error, ConflictError)
        assert result.message == warning
        assert result.attempts == 1

    @pytest.mark.asyncio
    async def test_auth_failure(self, nupkg, make_item, credentials, cancellation):
        transport = FakeTransport([401])
        result = await _pipeline(transport, credentials).run(make_item(nupkg), cancellation)
        assert isinstance(result.error, AuthError)
        assert len(transport.calls) == 1

    @pytest.mark.asyncio
    async def test_rewrite_error_raises_before_upload(self, tmp_path, make_item, credentials, cancellation):
        path = build_nupkg(tmp_path / "Broken.nupkg", manifest_name=None)
        transport = FakeTransport()
        with pytest.raises(ArchiveError):
            await _pipeline(transport, credentials, version="2.0.0").run(make_item(path), cancellation)
        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_invalid_version_raises(self, nupkg, make_item, credentials, cancellation):
        with pytest.raises(InvalidVersionError):
            await _pipeline(FakeTransport(), credentials, version="x").run(make_item(nupkg), cancellation)

    @pytest.mark.asyncio
    async def test_cancelled_before_start(self, nupkg, make_item, credentials, cancellation):
        cancellation.cancel("SIGINT")
        before = nupkg.read_bytes()
        transport = FakeTransport()
        result = await _pipeline(transport, credentials, version="2.0.0").run(make_item(nupkg), cancellation)
        assert result.status is PublishStatus.CANCELLED
        assert result.attempts == 0
        assert transport.calls == []
        assert nupkg.read_bytes() == before
