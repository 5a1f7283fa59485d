"""Attempt outcomes — the result type consumed by the resilience policy.

Every upload attempt produces exactly one :class:`AttemptOutcome`. The
policy decides what to do next from ``kind`` alone; no exceptions are used
to signal "retry" versus "stop".

    ┌────────────────────┬────────────────────────────────────────────┐
    │ kind               │ produced by                                │
    ├────────────────────┼────────────────────────────────────────────┤
    │ success            │ 2xx                                        │
    │ terminal_failure   │ 400, 401, 403, 409                         │
    │ retryable_failure  │ any other status, transport error          │
    │ timeout            │ attempt exceeded its deadline              │
    │ cancelled          │ cancellation observed before an attempt    │
    └────────────────────┴────────────────────────────────────────────┘
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from http import HTTPStatus
from typing import Any

from gpr.core.errors import (
    AttemptTimeoutError,
    AuthError,
    ConflictError,
    GprError,
    PublishCancelledError,
    RequestRejectedError,
    TransientNetworkError,
)

NUGET_WARNING_HEADER = "x-nuget-warning"

AUTH_STATUSES = frozenset({HTTPStatus.UNAUTHORIZED, HTTPStatus.FORBIDDEN})
TERMINAL_STATUSES = AUTH_STATUSES | {HTTPStatus.CONFLICT, HTTPStatus.BAD_REQUEST}


class OutcomeKind(str, Enum):
    """Classification of one attempt."""

    SUCCESS = "success"
    TERMINAL_FAILURE = "terminal_failure"
    RETRYABLE_FAILURE = "retryable_failure"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


def classify_status(status_code: int) -> OutcomeKind:
    """Map an HTTP status to an outcome kind."""
    if 200 <= status_code < 300:
        return OutcomeKind.SUCCESS
    if status_code in TERMINAL_STATUSES:
        return OutcomeKind.TERMINAL_FAILURE
    return OutcomeKind.RETRYABLE_FAILURE


@dataclass(frozen=True)
class AttemptOutcome:
    """Result of one upload attempt.

    Attributes:
        kind: Classification driving the retry decision
        status_code: HTTP status, when a response was received
        headers: Response headers (lower-cased names)
        body: Response body text
        error: Transport error / timeout description
        attempt: 1-based attempt number, stamped by the policy
    """

    kind: OutcomeKind
    status_code: int | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    body: str = ""
    error: str | None = None
    attempt: int = 0

    # ── Constructors ─────────────────────────────────────────────

    @classmethod
    def from_response(
        cls, status_code: int, headers: Mapping[str, str] | None = None, body: str = ""
    ) -> AttemptOutcome:
        return cls(
            kind=classify_status(status_code),
            status_code=status_code,
            headers={k.lower(): v for k, v in (headers or {}).items()},
            body=body,
        )

    @classmethod
    def from_exception(cls, exc: BaseException) -> AttemptOutcome:
        return cls(
            kind=OutcomeKind.RETRYABLE_FAILURE,
            error=f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__,
        )

    @classmethod
    def timed_out(cls, timeout: float) -> AttemptOutcome:
        return cls(kind=OutcomeKind.TIMEOUT, error=f"Attempt timed out after {timeout}s")

    @classmethod
    def cancelled(cls, reason: str | None = None, status_code: int | None = None) -> AttemptOutcome:
        """``status_code`` is the last status seen before cancellation, if any."""
        return cls(kind=OutcomeKind.CANCELLED, status_code=status_code, error=reason or "cancelled")

    def with_attempt(self, attempt: int) -> AttemptOutcome:
        return replace(self, attempt=attempt)

    # ── Classification ───────────────────────────────────────────

    @property
    def is_success(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @property
    def is_terminal(self) -> bool:
        """True when retrying is pointless (success or definitive rejection)."""
        return self.kind in (OutcomeKind.SUCCESS, OutcomeKind.TERMINAL_FAILURE)

    @property
    def is_retryable(self) -> bool:
        return self.kind in (OutcomeKind.RETRYABLE_FAILURE, OutcomeKind.TIMEOUT)

    @property
    def nuget_warning(self) -> str | None:
        return self.headers.get(NUGET_WARNING_HEADER)

    @property
    def description(self) -> str:
        """Best human-readable explanation of this outcome."""
        if self.nuget_warning:
            return self.nuget_warning
        if self.error:
            return self.error
        if self.status_code is not None:
            try:
                phrase = HTTPStatus(self.status_code).phrase
            except ValueError:
                phrase = "Unknown status"
            return f"{self.status_code} {phrase}"
        return self.kind.value

    # ── Error mapping ────────────────────────────────────────────

    def to_error(self, filename: str | None = None, url: str | None = None) -> GprError | None:
        """Map a failed outcome onto the error taxonomy (None on success)."""
        if self.is_success:
            return None

        if self.kind is OutcomeKind.CANCELLED:
            error: GprError = PublishCancelledError(self.description)
        elif self.kind is OutcomeKind.TIMEOUT:
            error = AttemptTimeoutError(self.description)
        elif self.status_code in AUTH_STATUSES:
            error = AuthError(self.description)
        elif self.status_code == HTTPStatus.CONFLICT:
            error = ConflictError(self.description)
        elif self.status_code == HTTPStatus.BAD_REQUEST:
            error = RequestRejectedError(self.description)
        else:
            error = TransientNetworkError(self.description)

        return error.with_context(
            filename=filename,
            url=url,
            http_status=self.status_code,
            attempts=self.attempt,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "status_code": self.status_code,
            "attempt": self.attempt,
            "description": self.description,
        }


__all__ = [
    "AttemptOutcome",
    "OutcomeKind",
    "classify_status",
    "NUGET_WARNING_HEADER",
]
