"""
Structured error types for metis-ops.

Every failure an administrative script can hit is mapped onto a small typed
hierarchy so that callers can decide, without string matching, whether to
retry, skip the current dataset, or abort the whole process.

Manifesto:
    - **Typed Error Hierarchy:** Retry, data and configuration failures are
      different types, not different messages
    - **Explicit Retry Semantics:** Each error knows if it's retryable
    - **Rich Context:** Errors carry dataset/plugin/run metadata for logging
    - **Error Chaining:** The original exception survives as ``cause``

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                          OpsError                             │
        │        (category, retryable, context, cause)                  │
        ├──────────────────────────────────────────────────────────────┤
        │  TransientError     RetryError            ValidationError     │
        │  (retryable=True)   (EXECUTION)           (VALIDATION)        │
        │                         │                     │               │
        │                    RetryExhaustedError   NoMatchingNamespace  │
        │                    RetryCancelledError   ResultParseError     │
        │                                                               │
        │  ConfigError                     InternalError                │
        │  (CONFIG)                        (INTERNAL)                   │
        │       │                               │                       │
        │  MissingConfigError              AmbiguousPrefixError         │
        │  InvalidConfigError                                           │
        │  DuplicatePrefixError                                         │
        └──────────────────────────────────────────────────────────────┘

Guardrails:
    ❌ DON'T: Raise a bare Exception for expected failures
    ✅ DO: Pick the OpsError subclass that states what went wrong

    ❌ DON'T: Retry ValidationError or ConfigError
    ✅ DO: Treat them as fatal for the current item (or for startup)

Tags:
    error-handling, exception-hierarchy, retry-logic, error-context,
    metis-ops
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Error categories used for classification and log routing.

    Infrastructure categories (NETWORK, DATABASE) are usually transient.
    VALIDATION and CONFIG are never retryable. EXECUTION covers the retry
    machinery itself.
    """

    NETWORK = "NETWORK"           # Connection reset, timeout, DNS
    DATABASE = "DATABASE"         # Mongo socket/security errors
    VALIDATION = "VALIDATION"     # Malformed input data
    PARSE = "PARSE"               # Status log parsing
    CONFIG = "CONFIG"             # Missing or invalid settings
    EXECUTION = "EXECUTION"       # Retry exhaustion, cancellation
    INTERNAL = "INTERNAL"         # Bugs, unexpected state
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        dataset_id: Dataset the script was working on
        plugin_type: Plugin (processing category) involved
        run_id: Run identifier of the execution log
        operation: Name of the operation that failed
        metadata: Additional key-value pairs
    """

    dataset_id: str | None = None
    plugin_type: str | None = None
    run_id: str | None = None
    operation: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["dataset_id", "plugin_type", "run_id", "operation"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class OpsError(Exception):
    """
    Base exception for all metis-ops errors.

    Subclasses set ``default_category`` and ``default_retryable`` so that
    raising code only has to supply a message (and a cause, when wrapping).

    Examples:
        >>> error = OpsError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.retryable
        False

        >>> try:
        ...     raise ConnectionResetError("Connection reset")
        ... except ConnectionResetError as e:
        ...     error = TransientError("Mongo request failed", cause=e)
        >>> error.retryable
        True
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> OpsError:
        """
        Add context to this error (fluent API).

        Usage:
            raise ResultParseError("Bad line").with_context(run_id=run_id)
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
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
# TRANSIENT ERRORS (Usually Retryable)
# =============================================================================


class TransientError(OpsError):
    """Temporary failure of an external service that may succeed on retry."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


# =============================================================================
# RETRY ERRORS
# =============================================================================


class RetryError(OpsError):
    """Base for terminal outcomes of the retry executor."""

    default_category = ErrorCategory.EXECUTION
    default_retryable = False


class RetryExhaustedError(RetryError):
    """
    The retry budget was used up.

    ``cause`` is the error raised by the final attempt.
    """

    def __init__(self, attempts: int, cause: BaseException, message: str | None = None):
        super().__init__(
            message or f"Operation failed after {attempts} attempt(s): {cause}",
            cause=cause,
        )
        self.attempts = attempts


class RetryCancelledError(RetryError):
    """
    The wait between two attempts was cancelled.

    Deliberately carries no cause: the operation's own error is not
    re-raised when the caller asked to stop.
    """

    def __init__(self, attempts: int, message: str | None = None):
        super().__init__(message or f"Retry cancelled after {attempts} attempt(s)")
        self.attempts = attempts
        self.__suppress_context__ = True


# =============================================================================
# VALIDATION / DATA ERRORS (Never Retryable)
# =============================================================================


class ValidationError(OpsError):
    """Input data does not have the expected shape."""

    default_category = ErrorCategory.VALIDATION
    default_retryable = False


class NoMatchingNamespaceError(ValidationError):
    """A tag does not start with any registered prefix plus separator."""

    def __init__(self, tag: str, separator: str):
        super().__init__(f"String does not start with a known prefix: {tag}")
        self.tag = tag
        self.separator = separator


class ResultParseError(ValidationError):
    """A status log line could not be parsed into a migration result."""

    default_category = ErrorCategory.PARSE


# =============================================================================
# CONFIGURATION ERRORS (Never Retryable)
# =============================================================================


class ConfigError(OpsError):
    """Configuration is missing or invalid; fatal at startup."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class MissingConfigError(ConfigError):
    """Required configuration value is missing."""

    def __init__(self, key: str, message: str | None = None):
        super().__init__(message or f"Missing required configuration: {key}")
        self.key = key


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")
        self.key = key
        self.value = value


class DuplicatePrefixError(ConfigError):
    """Two namespace bindings claim the same prefix."""

    def __init__(self, prefix: str, first_uri: str, second_uri: str):
        super().__init__(
            f"Prefix {prefix!r} is bound to both {first_uri!r} and {second_uri!r}"
        )
        self.prefix = prefix


# =============================================================================
# INTERNAL ERRORS
# =============================================================================


class InternalError(OpsError):
    """Unexpected state that indicates a bug."""

    default_category = ErrorCategory.INTERNAL


class AmbiguousPrefixError(InternalError):
    """More than one prefix of the same maximal length matched a tag."""

    def __init__(self, tag: str, prefixes: list[str]):
        super().__init__(f"Tag {tag!r} matches several prefixes of equal length: {prefixes}")
        self.tag = tag
        self.prefixes = prefixes


# =============================================================================
# HELPERS
# =============================================================================


def is_retryable(error: BaseException) -> bool:
    """Check whether an error should be retried.

    OpsError instances answer for themselves; standard connection and
    timeout errors are treated as transient; everything else is not.
    """
    if isinstance(error, OpsError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError))


def categorize_error(error: BaseException) -> ErrorCategory:
    """Map any exception onto an ErrorCategory."""
    if isinstance(error, OpsError):
        return error.category
    if isinstance(error, (ConnectionError, TimeoutError)):
        return ErrorCategory.NETWORK
    if isinstance(error, (ValueError, TypeError)):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "OpsError",
    "TransientError",
    "RetryError",
    "RetryExhaustedError",
    "RetryCancelledError",
    "ValidationError",
    "NoMatchingNamespaceError",
    "ResultParseError",
    "ConfigError",
    "MissingConfigError",
    "InvalidConfigError",
    "DuplicatePrefixError",
    "InternalError",
    "AmbiguousPrefixError",
    "is_retryable",
    "categorize_error",
]
