"""Execution helpers for external requests."""

from metis_ops.execution.retry import (
    RetryExecutor,
    RetryPolicy,
    RetryState,
    retryable_external_request,
    with_retry,
)

__all__ = [
    "RetryExecutor",
    "RetryPolicy",
    "RetryState",
    "retryable_external_request",
    "with_retry",
]
