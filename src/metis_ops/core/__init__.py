"""metis-ops core -- errors, structured logging and settings.

Module Map
----------
  errors      Structured error hierarchy (OpsError, RetryExhaustedError, ...)
  logging     structlog configuration + get_logger
  settings    OpsSettings (pydantic-settings, ``METIS_OPS_`` env prefix)
"""

from metis_ops.core.errors import (
    AmbiguousPrefixError,
    ConfigError,
    DuplicatePrefixError,
    ErrorCategory,
    ErrorContext,
    InvalidConfigError,
    NoMatchingNamespaceError,
    OpsError,
    ResultParseError,
    RetryCancelledError,
    RetryExhaustedError,
    TransientError,
    ValidationError,
    categorize_error,
    is_retryable,
)
from metis_ops.core.logging import LogContext, configure_logging, get_logger
from metis_ops.core.settings import OpsSettings, get_settings

__all__ = [
    "AmbiguousPrefixError",
    "ConfigError",
    "DuplicatePrefixError",
    "ErrorCategory",
    "ErrorContext",
    "InvalidConfigError",
    "NoMatchingNamespaceError",
    "OpsError",
    "ResultParseError",
    "RetryCancelledError",
    "RetryExhaustedError",
    "TransientError",
    "ValidationError",
    "categorize_error",
    "is_retryable",
    "LogContext",
    "configure_logging",
    "get_logger",
    "OpsSettings",
    "get_settings",
]
