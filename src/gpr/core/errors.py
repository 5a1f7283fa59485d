"""
Structured error types for gpr-tool.

Every error raised by the publish pipeline is a :class:`GprError`. Instead of
generic exceptions that lose context, each error carries:

- **Category:** what kind of failure (config, archive, auth, network, ...)
- **Retryable:** whether the resilience policy may try again
- **Context:** filename, URL, HTTP status and attempt count for reporting
- **Cause:** the chained underlying exception

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                        GprError                              │
        │        (category, retryable, context, cause)                 │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  ConfigurationError     ArchiveError       AuthError         │
        │  (CONFIG)               (ARCHIVE)          (AUTH)            │
        │       │                                                      │
        │  InvalidVersionError    ConflictError      RequestRejected   │
        │                         (CONFLICT)         (REQUEST)         │
        │                                                              │
        │  TransientNetworkError  AttemptTimeoutError                  │
        │  (NETWORK, retryable)   (NETWORK, retryable)                 │
        │                                                              │
        │  PublishCancelledError                                       │
        │  (CANCELLED)                                                 │
        └─────────────────────────────────────────────────────────────┘

Rewrite and configuration errors abort one item's pipeline without touching
the retry budget. Network errors are only surfaced once the policy gives up.
Anything that is not a ``GprError`` is treated as a programming error and is
allowed to abort the whole run.

Examples:
    >>> error = ConflictError("Version 1.0.0 already exists")
    >>> error.retryable
    False
    >>> error.with_context(filename="Foo.1.0.0.nupkg", http_status=409)
    ConflictError('Version 1.0.0 already exists', category=CONFLICT)
    >>> error.to_dict()["context"]["http_status"]
    409
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and reporting."""

    # Local problems (never retryable)
    CONFIG = "CONFIG"             # Bad option, no archives found
    ARCHIVE = "ARCHIVE"           # Manifest missing/malformed, rewrite I/O

    # Registry rejections (terminal)
    AUTH = "AUTH"                 # 401 / 403
    CONFLICT = "CONFLICT"         # 409, version already published
    REQUEST = "REQUEST"           # 400, malformed request

    # Infrastructure (retryable)
    NETWORK = "NETWORK"           # Transport error, 5xx, timeouts

    CANCELLED = "CANCELLED"       # Cooperative cancellation observed
    INTERNAL = "INTERNAL"         # Bugs, unexpected state


class ArchiveFailure(str, Enum):
    """Reason carried by :class:`ArchiveError`."""

    MANIFEST_MISSING = "ManifestMissing"
    MALFORMED_MANIFEST = "MalformedManifest"
    WRITE_FAILED = "WriteFailed"
    READ_FAILED = "ReadFailed"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error for logging and reports.

    Attributes:
        filename: Package file being processed
        url: Endpoint that was being accessed
        http_status: Last HTTP status code, if any
        attempts: Number of upload attempts made
        metadata: Additional key-value pairs
    """

    filename: str | None = None
    url: str | None = None
    http_status: int | None = None
    attempts: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["filename", "url", "http_status", "attempts"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class GprError(Exception):
    """
    Base exception for all gpr-tool errors.

    Subclasses set ``default_category`` and ``default_retryable`` so callers
    rarely need to pass them explicitly.

    Example:
        >>> try:
        ...     raise OSError("disk full")
        ... except OSError as e:
        ...     error = ArchiveError("Could not write", cause=e)
        >>> error.cause
        OSError('disk full')
    """

    # Default category for this error type
    default_category: ErrorCategory = ErrorCategory.INTERNAL
    # Default retryable setting
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        # Chain the cause if provided
        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> GprError:
        """
        Add context to this error (fluent API).

        Usage:
            raise ConflictError("Already published").with_context(
                filename="Foo.1.0.0.nupkg",
                http_status=409,
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigurationError(GprError):
    """
    Configuration error: no matching archive, bad option, missing token.

    Never retryable - the invocation must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class InvalidVersionError(ConfigurationError):
    """Override version is not a valid semantic version."""

    def __init__(self, value: str, message: str | None = None):
        self.value = value
        super().__init__(message or f"Invalid version: {value}")


# =============================================================================
# ARCHIVE ERRORS
# =============================================================================


class ArchiveError(GprError):
    """Manifest entry missing or malformed, or the archive could not be rewritten."""

    default_category = ErrorCategory.ARCHIVE
    default_retryable = False

    def __init__(self, message: str, *, reason: ArchiveFailure, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.reason = reason

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["reason"] = self.reason.value
        return result


# =============================================================================
# REGISTRY REJECTIONS (terminal)
# =============================================================================


class AuthError(GprError):
    """Registry rejected the credentials."""

    default_category = ErrorCategory.AUTH
    default_retryable = False


class ConflictError(GprError):
    """Package version already published."""

    default_category = ErrorCategory.CONFLICT
    default_retryable = False


class RequestRejectedError(GprError):
    """Registry rejected the request as malformed."""

    default_category = ErrorCategory.REQUEST
    default_retryable = False


# =============================================================================
# TRANSIENT ERRORS (retried up to the budget)
# =============================================================================


class TransientNetworkError(GprError):
    """Transport failure or non-terminal status; retry budget exhausted."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class AttemptTimeoutError(TransientNetworkError):
    """Upload attempt exceeded its deadline."""

    default_category = ErrorCategory.NETWORK


# =============================================================================
# CANCELLATION
# =============================================================================


class PublishCancelledError(GprError):
    """Cooperative cancellation was observed."""

    default_category = ErrorCategory.CANCELLED
    default_retryable = False

    def __init__(self, message: str = "Operation was cancelled", **kwargs: Any):
        super().__init__(message, **kwargs)


__all__ = [
    "ErrorCategory",
    "ArchiveFailure",
    "ErrorContext",
    "GprError",
    "ConfigurationError",
    "InvalidVersionError",
    "ArchiveError",
    "AuthError",
    "ConflictError",
    "RequestRejectedError",
    "TransientNetworkError",
    "AttemptTimeoutError",
    "PublishCancelledError",
]
