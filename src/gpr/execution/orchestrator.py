"""Upload orchestrator: bounded-concurrency fan-out over package pipelines.

::

    UploadOrchestrator(pipeline, concurrency=4)
      └── publish_all(items, cancellation)
            ├── asyncio.Semaphore(concurrency)   at most N pipelines running
            ├── pipeline.run(item) per item       GprError → failed PublishResult
            └── PublishReport                     results in input order

A failure in one pipeline is recorded as that item's result and never stops
its siblings. Exceptions that are not :class:`GprError` are programming
errors: the remaining pipelines are cancelled and the exception propagates.

Once the cancellation token fires, items still waiting for a slot are
recorded as cancelled without being started.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from datetime import UTC, datetime

from gpr.core.errors import GprError
from gpr.core.logging import get_logger
from gpr.execution.cancellation import CancellationToken
from gpr.execution.models import PublishReport, PublishResult
from gpr.execution.pipeline import PublishPipeline
from gpr.nuget.models import PackageItem

logger = get_logger(__name__)

DEFAULT_CONCURRENCY = 4


class UploadOrchestrator:
    """Runs one :class:`PublishPipeline` per item, ``concurrency`` at a time."""

    def __init__(self, pipeline: PublishPipeline, concurrency: int = DEFAULT_CONCURRENCY) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self.pipeline = pipeline
        self.concurrency = concurrency
        self.bytes_uploaded = 0
        self._active = 0
        self.peak_concurrency = 0

    async def _run_one(
        self,
        item: PackageItem,
        semaphore: asyncio.Semaphore,
        cancellation: CancellationToken,
    ) -> PublishResult:
        async with semaphore:
            self._active += 1
            self.peak_concurrency = max(self.peak_concurrency, self._active)
            started_at = datetime.now(UTC)
            try:
                result = await self.pipeline.run(item, cancellation)
            except GprError as exc:
                error = exc.with_context(filename=item.filename)
                logger.warning("orchestrator.item_failed", **error.to_dict())
                result = PublishResult.failed(item, error, started_at=started_at)
            finally:
                self._active -= 1

        if result.success:
            self.bytes_uploaded += result.size
        return result

    async def publish_all(
        self,
        items: Sequence[PackageItem],
        cancellation: CancellationToken,
    ) -> PublishReport:
        """Publish every item and return the aggregate report."""
        semaphore = asyncio.Semaphore(self.concurrency)
        started_at = datetime.now(UTC)

        logger.info(
            "orchestrator.start",
            items=len(items),
            concurrency=self.concurrency,
        )

        tasks = [
            asyncio.create_task(self._run_one(item, semaphore, cancellation))
            for item in items
        ]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        report = PublishReport(
            results=list(results),
            started_at=started_at,
            completed_at=datetime.now(UTC),
            bytes_uploaded=self.bytes_uploaded,
        )

        logger.info(
            "orchestrator.complete",
            succeeded=report.succeeded,
            failed=report.failed,
            cancelled=report.cancelled,
            bytes_uploaded=report.bytes_uploaded,
            duration_seconds=report.duration_seconds,
        )
        return report


__all__ = ["DEFAULT_CONCURRENCY", "UploadOrchestrator"]
