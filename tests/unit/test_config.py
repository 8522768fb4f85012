"""Tests for RetryPolicy validation."""
from __future__ import annotations

import dataclasses

import pytest

from retryhook.config import RetryPolicy
from retryhook.errors import ErrorCode, RetryConfigurationError
from retryhook.retry.delays import exponential_delay


def _never(attempts, outcome):
    return False


class TestRetryPolicyDefaults:
    def test_defaults(self):
        policy = RetryPolicy(filter=_never)
        assert policy.delay is exponential_delay
        assert policy.max_attempts == 5
        assert policy.waiter is None
        assert policy.metrics is None

    def test_is_frozen(self):
        policy = RetryPolicy(filter=_never)
        with pytest.raises(dataclasses.FrozenInstanceError):
            policy.max_attempts = 1  # type: ignore[misc]

    def test_zero_max_attempts_allowed(self):
        assert RetryPolicy(filter=_never, max_attempts=0).max_attempts == 0


class TestRetryPolicyValidation:
    def test_missing_filter(self):
        with pytest.raises(RetryConfigurationError) as exc_info:
            RetryPolicy()
        err = exc_info.value
        assert err.code == ErrorCode.CONFIGURATION_ERROR
        assert err.message == 'A "filter" is required'
        assert err.context["field"] == "filter"

    def test_filter_not_callable(self):
        with pytest.raises(RetryConfigurationError, match="filter must be callable"):
            RetryPolicy(filter="retry-everything")  # type: ignore[arg-type]

    def test_delay_not_callable(self):
        with pytest.raises(RetryConfigurationError, match="delay must be callable"):
            RetryPolicy(filter=_never, delay=2)  # type: ignore[arg-type]

    def test_waiter_not_callable(self):
        with pytest.raises(RetryConfigurationError, match="waiter must be callable"):
            RetryPolicy(filter=_never, waiter=0.5)  # type: ignore[arg-type]

    @pytest.mark.parametrize("value", [2.5, "3", None, True])
    def test_max_attempts_must_be_int(self, value):
        with pytest.raises(RetryConfigurationError) as exc_info:
            RetryPolicy(filter=_never, max_attempts=value)  # type: ignore[arg-type]
        assert exc_info.value.context == {"field": "max_attempts", "value": value}

    def test_negative_max_attempts(self):
        with pytest.raises(RetryConfigurationError, match=">= 0"):
            RetryPolicy(filter=_never, max_attempts=-1)
