"""Tests for metis_ops.core.errors module."""

import pytest

from metis_ops.core.errors import (
    AmbiguousPrefixError,
    ConfigError,
    DuplicatePrefixError,
    ErrorCategory,
    ErrorContext,
    InvalidConfigError,
    MissingConfigError,
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


class TestErrorContext:
    """Test ErrorContext dataclass."""

    def test_create_empty_context(self):
        ctx = ErrorContext()
        assert ctx.dataset_id is None
        assert ctx.run_id is None
        assert ctx.metadata == {}

    def test_to_dict_includes_set_fields(self):
        """to_dict includes only non-None fields."""
        ctx = ErrorContext(dataset_id="2048407", run_id="2018-08-13-170336", metadata={"k": "v"})
        d = ctx.to_dict()
        assert d == {"dataset_id": "2048407", "run_id": "2018-08-13-170336", "k": "v"}
        assert "plugin_type" not in d


class TestOpsError:
    """Test the base error."""

    def test_defaults(self):
        error = OpsError("Something went wrong")
        assert error.message == "Something went wrong"
        assert str(error) == "Something went wrong"
        assert error.category == ErrorCategory.INTERNAL
        assert error.retryable is False
        assert error.cause is None

    def test_cause_is_chained(self):
        original = ConnectionResetError("reset")
        error = TransientError("request failed", cause=original)
        assert error.cause is original
        assert error.__cause__ is original

    def test_with_context_sets_known_fields_and_metadata(self):
        error = ResultParseError("bad line").with_context(run_id="r1", line_number=3)
        assert error.context.run_id == "r1"
        assert error.context.metadata == {"line_number": 3}

    def test_to_dict(self):
        error = TransientError("down", cause=TimeoutError("t")).with_context(operation="find")
        d = error.to_dict()
        assert d["error_type"] == "TransientError"
        assert d["category"] == "NETWORK"
        assert d["retryable"] is True
        assert d["context"] == {"operation": "find"}
        assert d["cause"] == "t"

    def test_explicit_overrides(self):
        error = OpsError("x", category=ErrorCategory.DATABASE, retryable=True)
        assert error.category == ErrorCategory.DATABASE
        assert error.retryable is True


class TestRetryErrors:
    def test_exhausted_chains_last_cause(self):
        last = ValueError("third failure")
        error = RetryExhaustedError(3, last)
        assert error.attempts == 3
        assert error.cause is last
        assert error.__cause__ is last
        assert "3 attempt(s)" in error.message

    def test_cancelled_has_no_cause(self):
        error = RetryCancelledError(1)
        assert error.attempts == 1
        assert error.cause is None
        assert error.__cause__ is None
        assert error.__suppress_context__ is True

    def test_cancelled_is_not_exhausted(self):
        assert not isinstance(RetryCancelledError(1), RetryExhaustedError)


class TestNamespaceErrors:
    def test_no_matching_namespace_message(self):
        error = NoMatchingNamespaceError("dc:title", ":")
        assert error.message == "String does not start with a known prefix: dc:title"
        assert isinstance(error, ValidationError)
        assert error.retryable is False

    def test_duplicate_prefix_is_config_error(self):
        error = DuplicatePrefixError("dc", "http://a/", "http://b/")
        assert isinstance(error, ConfigError)
        assert error.prefix == "dc"
        assert "http://a/" in error.message and "http://b/" in error.message

    def test_ambiguous_prefix_is_internal(self):
        error = AmbiguousPrefixError("x:y", ["x", "x"])
        assert error.category == ErrorCategory.INTERNAL


class TestConfigErrors:
    def test_missing(self):
        error = MissingConfigError("results_dir")
        assert error.key == "results_dir"
        assert "results_dir" in error.message

    def test_invalid(self):
        error = InvalidConfigError("delay", -1)
        assert error.value == -1
        assert error.category == ErrorCategory.CONFIG


class TestHelpers:
    @pytest.mark.parametrize(
        "error, expected",
        [
            (TransientError("t"), True),
            (ValidationError("v"), False),
            (ConnectionError(), True),
            (TimeoutError(), True),
            (KeyError("k"), False),
        ],
    )
    def test_is_retryable(self, error, expected):
        assert is_retryable(error) is expected

    @pytest.mark.parametrize(
        "error, expected",
        [
            (ResultParseError("p"), ErrorCategory.PARSE),
            (ConnectionRefusedError(), ErrorCategory.NETWORK),
            (ValueError(), ErrorCategory.VALIDATION),
            (RuntimeError(), ErrorCategory.UNKNOWN),
        ],
    )
    def test_categorize_error(self, error, expected):
        assert categorize_error(error) == expected
