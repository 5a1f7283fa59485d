"""Per-item results and the aggregate publish report."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from gpr.core.errors import GprError, PublishCancelledError
from gpr.execution.outcome import AttemptOutcome
from gpr.nuget.models import PackageItem


class PublishStatus(str, Enum):
    """Final state of one item."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class PublishResult:
    """Final state of one item's pipeline; immutable once recorded.

    ``outcome`` is the last attempt outcome, or None when the pipeline
    stopped before any upload attempt (rewrite error, cancelled before
    start). ``attempts`` counts upload attempts actually made.
    """

    item: PackageItem
    outcome: AttemptOutcome | None
    attempts: int
    error: GprError | None = None
    size: int = 0
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def success(self) -> bool:
        return self.error is None and self.outcome is not None and self.outcome.is_success

    @property
    def status(self) -> PublishStatus:
        if self.success:
            return PublishStatus.SUCCEEDED
        if isinstance(self.error, PublishCancelledError):
            return PublishStatus.CANCELLED
        return PublishStatus.FAILED

    @property
    def filename(self) -> str:
        return self.item.filename

    @property
    def status_code(self) -> int | None:
        return self.outcome.status_code if self.outcome else None

    @property
    def message(self) -> str:
        if self.error is not None:
            return self.error.message
        if self.outcome is not None:
            return self.outcome.description
        return ""

    @property
    def duration_seconds(self) -> float | None:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    @classmethod
    def failed(
        cls,
        item: PackageItem,
        error: GprError,
        *,
        outcome: AttemptOutcome | None = None,
        started_at: datetime | None = None,
    ) -> PublishResult:
        return cls(
            item=item,
            outcome=outcome,
            attempts=outcome.attempt if outcome else 0,
            error=error,
            started_at=started_at,
            completed_at=datetime.now(UTC),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "repository": str(self.item.repository) if self.item.repository else None,
            "version": self.item.version,
            "status": self.status.value,
            "attempts": self.attempts,
            "status_code": self.status_code,
            "size": self.size,
            "duration_seconds": self.duration_seconds,
            "error": self.error.to_dict() if self.error else None,
        }


@dataclass
class PublishReport:
    """Aggregate result of one publish run, in input order."""

    results: list[PublishResult]
    started_at: datetime
    completed_at: datetime
    bytes_uploaded: int = 0

    @property
    def success(self) -> bool:
        return all(result.success for result in self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.status is PublishStatus.FAILED)

    @property
    def cancelled(self) -> int:
        return sum(1 for r in self.results if r.status is PublishStatus.CANCELLED)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    @property
    def duration_seconds(self) -> float:
        return (self.completed_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "cancelled": self.cancelled,
            "bytes_uploaded": self.bytes_uploaded,
            "duration_seconds": self.duration_seconds,
            "items": [r.to_dict() for r in self.results],
        }


__all__ = ["PublishReport", "PublishResult", "PublishStatus"]
