"""One package's publish pipeline: rewrite, then policy-wrapped upload.

::

    PackageItem
      │ rewrite (worker thread)        ArchiveError / InvalidVersionError raised
      ▼
    archive bytes + final version
      │ policy.execute(put_archive)    retry + per-attempt timeout
      ▼
    AttemptOutcome ──► PublishResult

Rewrite and configuration errors are raised as :class:`GprError` before any
attempt is made; the orchestrator records them for the item. Upload failures
never raise: the final outcome is mapped onto the error taxonomy and stored
in the returned :class:`PublishResult`.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Protocol

import httpx

from gpr.core.credentials import Credentials
from gpr.core.errors import PublishCancelledError
from gpr.core.logging import LogContext, get_logger
from gpr.execution.cancellation import CancellationToken
from gpr.execution.models import PublishResult
from gpr.execution.outcome import AttemptOutcome
from gpr.execution.policy import ResiliencePolicy
from gpr.nuget.archive import rewrite
from gpr.nuget.models import PackageItem, RepositoryRef

logger = get_logger(__name__)


class UploadResponse(Protocol):
    status_code: int
    headers: Mapping[str, str]
    body: str


class UploadTransport(Protocol):
    """What the pipeline needs from :class:`~gpr.registry.RegistryTransport`."""

    def upload_url(self, owner: str) -> str: ...

    async def put_archive(
        self,
        endpoint: str,
        credentials: Credentials,
        filename: str,
        content: bytes,
        cancellation: CancellationToken | None = None,
    ) -> UploadResponse: ...


class PublishPipeline:
    """Publishes single items; shared by every worker of a run.

    Args:
        transport: Registry transport
        credentials: Basic-auth pair for the registry
        policy: Retry + timeout policy applied to each upload
        version: Version override written into every manifest
        repository: Repository override written into every manifest
    """

    def __init__(
        self,
        transport: UploadTransport,
        credentials: Credentials,
        policy: ResiliencePolicy | None = None,
        *,
        version: str | None = None,
        repository: RepositoryRef | None = None,
    ) -> None:
        self.transport = transport
        self.credentials = credentials
        self.policy = policy or ResiliencePolicy()
        self.version = version
        self.repository = repository

    async def run(self, item: PackageItem, cancellation: CancellationToken) -> PublishResult:
        """Rewrite and upload ``item``.

        Raises:
            GprError: the archive couldn't be rewritten or read, or the item
                was never resolved (``item.error``)
        """
        started_at = datetime.now(UTC)
        async with LogContext(filename=item.filename):
            if cancellation.is_cancelled:
                return self._cancelled(item, cancellation, started_at)
            if item.error is not None:
                raise item.error

            rewritten = await asyncio.to_thread(
                rewrite,
                item.path,
                self.version,
                self.repository.url if self.repository else None,
            )
            item.version = rewritten.version
            content = rewritten.data
            endpoint = self.transport.upload_url(item.owner)

            logger.info(
                "pipeline.uploading",
                repository_url=item.repository_url,
                version=item.version,
                size=rewritten.size,
            )

            async def attempt() -> AttemptOutcome:
                try:
                    response = await self.transport.put_archive(
                        endpoint, self.credentials, item.filename, content, cancellation
                    )
                except httpx.HTTPError as exc:
                    logger.warning("pipeline.transport_error", error=str(exc) or type(exc).__name__)
                    return AttemptOutcome.from_exception(exc)
                return AttemptOutcome.from_response(
                    response.status_code, response.headers, response.body
                )

            outcome = await self.policy.execute(attempt, cancellation)
            completed_at = datetime.now(UTC)

            if outcome.is_success:
                item.mark_uploaded()
                logger.info(
                    "pipeline.uploaded",
                    status_code=outcome.status_code,
                    attempts=outcome.attempt,
                    warning=outcome.nuget_warning,
                )
                return PublishResult(
                    item=item,
                    outcome=outcome,
                    attempts=outcome.attempt,
                    size=rewritten.size,
                    started_at=started_at,
                    completed_at=completed_at,
                )

            error = outcome.to_error(filename=item.filename, url=endpoint)
            logger.error("pipeline.failed", **error.to_dict())
            return PublishResult(
                item=item,
                outcome=outcome,
                attempts=outcome.attempt,
                error=error,
                size=rewritten.size,
                started_at=started_at,
                completed_at=completed_at,
            )

    @staticmethod
    def _cancelled(
        item: PackageItem, cancellation: CancellationToken, started_at: datetime
    ) -> PublishResult:
        error = PublishCancelledError(
            f"Operation was cancelled ({cancellation.reason})"
        ).with_context(filename=item.filename, attempts=0)
        return PublishResult.failed(item, error, started_at=started_at)


__all__ = ["PublishPipeline", "UploadResponse", "UploadTransport"]
