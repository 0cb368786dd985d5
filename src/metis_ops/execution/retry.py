"""Retry executor for requests against flaky external services.

Migration scripts talk to Mongo and to HTTP services that occasionally drop
connections ("Connection reset"). Giving up on such a blip would abort a
migration that has been running for hours, so a single external call is
wrapped in a ``RetryExecutor`` that retries it under a fixed ``RetryPolicy``.

States::

    PENDING ──► ATTEMPTING ──success──► SUCCEEDED
                   │  ▲
           failure │  │ delay elapsed
                   ▼  │
                 WAITING ──cancel_event set──► CANCELLED
                   │
                   └── budget used up (or error not retried) ──► EXHAUSTED

The wait between attempts is ``threading.Event.wait(delay)``, so a shutdown
signal set from another thread is observed within the current wait, not
only at the next attempt boundary.

Example:
    >>> from metis_ops.execution.retry import RetryExecutor, RetryPolicy
    >>>
    >>> executor = RetryExecutor(RetryPolicy(retry_limit=3, delay=0.5))
    >>> dataset = executor.run(lambda: collection.find_one({"datasetId": "9200579"}))
"""

from __future__ import annotations

import functools
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, TypeVar

from metis_ops.core.errors import (
    InvalidConfigError,
    RetryCancelledError,
    RetryExhaustedError,
    categorize_error,
)
from metis_ops.core.logging import get_logger
from metis_ops.core.settings import OpsSettings, get_settings

T = TypeVar("T")

logger = get_logger(__name__)


def utcnow() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class RetryState(str, Enum):
    """Retry executor states."""

    PENDING = "pending"          # Not started
    ATTEMPTING = "attempting"    # Operation running
    WAITING = "waiting"          # Sleeping before the next attempt
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"      # Retry budget used up
    CANCELLED = "cancelled"      # Wait interrupted


TERMINAL_STATES = frozenset({RetryState.SUCCEEDED, RetryState.EXHAUSTED, RetryState.CANCELLED})


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently to retry.

    Attributes:
        retry_limit: Retries allowed after the first failure; ``None`` is unbounded
        delay: Seconds to wait between two attempts (never after the last one)
        retry_if: Optional predicate; a failure it rejects ends the run at once.
            ``None`` retries every exception. Pass ``is_retryable`` to retry
            only transient errors.
    """

    retry_limit: int | None = None
    delay: float = 2.0
    retry_if: Callable[[Exception], bool] | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.retry_limit is not None and self.retry_limit < 0:
            raise InvalidConfigError("retry_limit", self.retry_limit)
        if self.delay < 0:
            raise InvalidConfigError("delay", self.delay)

    @classmethod
    def unbounded(cls, delay: float = 2.0) -> RetryPolicy:
        """Retry until success or cancellation."""
        return cls(retry_limit=None, delay=delay)

    @classmethod
    def from_settings(cls, settings: OpsSettings | None = None) -> RetryPolicy:
        """Build the policy configured for this process."""
        settings = settings or get_settings()
        return cls(retry_limit=settings.retry_limit, delay=settings.retry_delay_seconds)

    @property
    def is_unbounded(self) -> bool:
        return self.retry_limit is None

    def allows_retry(self, failures: int) -> bool:
        """Whether another attempt is allowed after ``failures`` failed attempts."""
        return self.retry_limit is None or failures <= self.retry_limit

    def retries_error(self, error: Exception) -> bool:
        """Whether ``error`` is worth another attempt at all."""
        return self.retry_if is None or self.retry_if(error)


@dataclass
class RetryExecutor:
    """Runs one operation under a ``RetryPolicy``.

    Attributes:
        policy: Retry limit and delay
        cancel_event: Setting this event cancels the current (or next) wait
        on_retry: Optional callback ``(attempt, error, delay)`` before each wait

    Raises (from ``run``):
        RetryExhaustedError: Finite budget used up, or a failure the policy does
            not retry; ``cause`` is the last error
        RetryCancelledError: Wait cancelled; the operation is not attempted again
    """

    policy: RetryPolicy = field(default_factory=RetryPolicy)
    cancel_event: threading.Event | None = None
    on_retry: Callable[[int, Exception, float], None] | None = None

    state: RetryState = field(default=RetryState.PENDING, init=False)
    attempts: int = field(default=0, init=False)
    last_error: Exception | None = field(default=None, init=False)
    started_at: datetime | None = field(default=None, init=False)
    errors: list[tuple[int, Exception, datetime]] = field(default_factory=list, init=False)

    def __post_init__(self) -> None:
        if self.cancel_event is None:
            self.cancel_event = threading.Event()

    @property
    def failures(self) -> int:
        return len(self.errors)

    @property
    def elapsed_seconds(self) -> float:
        """Total elapsed time since the first attempt."""
        if self.started_at is None:
            return 0.0
        return (utcnow() - self.started_at).total_seconds()

    def cancel(self) -> None:
        """Request cancellation; safe to call from another thread."""
        self.cancel_event.set()

    def _reset(self) -> None:
        self.state = RetryState.PENDING
        self.attempts = 0
        self.last_error = None
        self.errors = []
        self.started_at = utcnow()

    def _wait(self) -> bool:
        """Wait for the policy delay. Returns False when cancelled."""
        self.state = RetryState.WAITING
        try:
            return not self.cancel_event.wait(self.policy.delay)
        except KeyboardInterrupt:
            # Ctrl-C during a wait is a cancellation request, not a failure
            return False

    def run(self, operation: Callable[[], T]) -> T:
        """Execute ``operation`` until it succeeds, the budget runs out, or
        the wait is cancelled.

        Args:
            operation: Zero-argument callable performing one external request

        Returns:
            The operation's result from the first successful attempt
        """
        self._reset()

        while True:
            self.state = RetryState.ATTEMPTING
            self.attempts += 1
            try:
                result = operation()
            except Exception as e:
                failure = e
            else:
                self.state = RetryState.SUCCEEDED
                return result

            self.last_error = failure
            self.errors.append((self.attempts, failure, utcnow()))

            category = categorize_error(failure).value
            retryable = self.policy.retries_error(failure)
            if not retryable or not self.policy.allows_retry(self.failures):
                self.state = RetryState.EXHAUSTED
                logger.error(
                    "retry.exhausted",
                    attempts=self.attempts,
                    error=repr(failure),
                    error_category=category,
                    retryable=retryable,
                )
                raise RetryExhaustedError(self.attempts, failure)

            logger.warning(
                "retry.attempt_failed",
                attempt=self.attempts,
                delay=self.policy.delay,
                error=repr(failure),
                error_type=type(failure).__name__,
                error_category=category,
            )
            if self.on_retry:
                self.on_retry(self.attempts, failure, self.policy.delay)

            if not self._wait():
                self.state = RetryState.CANCELLED
                logger.warning("retry.cancelled", attempts=self.attempts)
                raise RetryCancelledError(self.attempts)


def retryable_external_request(
    operation: Callable[[], T],
    policy: RetryPolicy | None = None,
    cancel_event: threading.Event | None = None,
) -> T:
    """Run a single external request (database query, HTTP call) with retries.

    When no policy is given the process settings decide; by default that is
    an unbounded policy, so pass a ``cancel_event`` tied to a shutdown signal
    or timeout to bound total wall-clock time.
    """
    executor = RetryExecutor(
        policy=policy or RetryPolicy.from_settings(),
        cancel_event=cancel_event,
    )
    return executor.run(operation)


def with_retry(
    policy: RetryPolicy | None = None,
    cancel_event: threading.Event | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator factory that runs every call of the function under a policy.

    Example:
        >>> @with_retry(RetryPolicy(retry_limit=5, delay=1.0))
        ... def fetch_workflow(dataset_id):
        ...     return workflows.find_one({"datasetId": dataset_id})
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            return retryable_external_request(
                lambda: func(*args, **kwargs),
                policy=policy,
                cancel_event=cancel_event,
            )

        return wrapper

    return decorator


__all__ = [
    "RetryState",
    "TERMINAL_STATES",
    "RetryPolicy",
    "RetryExecutor",
    "retryable_external_request",
    "with_retry",
]
