"""gpr core -- errors, logging, settings and credentials.

Architecture::

    errors.py        Structured error hierarchy (GprError and friends)
    logging.py       structlog configuration + get_logger / LogContext
    settings.py      pydantic-settings GprSettings (GPR_* env vars)
    credentials.py   Token discovery and NuGet.Config storage
"""

from gpr.core.errors import (
    ArchiveError,
    ArchiveFailure,
    AttemptTimeoutError,
    AuthError,
    ConfigurationError,
    ConflictError,
    ErrorCategory,
    ErrorContext,
    GprError,
    InvalidVersionError,
    PublishCancelledError,
    RequestRejectedError,
    TransientNetworkError,
)
from gpr.core.logging import LogContext, configure_logging, get_logger
from gpr.core.settings import GprSettings, get_settings

__all__ = [
    "ArchiveError",
    "ArchiveFailure",
    "AttemptTimeoutError",
    "AuthError",
    "ConfigurationError",
    "ConflictError",
    "ErrorCategory",
    "ErrorContext",
    "GprError",
    "InvalidVersionError",
    "PublishCancelledError",
    "RequestRejectedError",
    "TransientNetworkError",
    "LogContext",
    "configure_logging",
    "get_logger",
    "GprSettings",
    "get_settings",
]
