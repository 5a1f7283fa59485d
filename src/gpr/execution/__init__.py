"""Publish execution: cancellation, outcomes, resilience policy and orchestration.

Architecture::

    cancellation.py   CancellationToken (explicit, created once per run)
    outcome.py        AttemptOutcome / OutcomeKind, status classification
    timeout.py        Per-attempt deadlines (with_deadline_async)
    retry.py          ConstantBackoff / NoRetry + RetryContext
    policy.py         ResiliencePolicy = retry ∘ timeout
    models.py         PublishResult / PublishReport
    pipeline.py       Rewrite → upload for one item
    orchestrator.py   Bounded-concurrency fan-out
"""

from gpr.execution.cancellation import CancellationToken
from gpr.execution.models import PublishReport, PublishResult, PublishStatus
from gpr.execution.orchestrator import UploadOrchestrator
from gpr.execution.outcome import AttemptOutcome, OutcomeKind, classify_status
from gpr.execution.pipeline import PublishPipeline
from gpr.execution.policy import ResiliencePolicy

__all__ = [
    "AttemptOutcome",
    "CancellationToken",
    "OutcomeKind",
    "PublishPipeline",
    "PublishReport",
    "PublishResult",
    "PublishStatus",
    "ResiliencePolicy",
    "UploadOrchestrator",
    "classify_status",
]
