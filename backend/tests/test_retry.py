"""
Tests for the overload backoff retrier.
"""

import asyncio

import pytest

from services.retry import (
    GENERATION_POLICY,
    PROBE_POLICY,
    RetryPolicy,
    is_overload_error,
    retry_with_backoff,
    retry_with_policy,
)
from conftest import RecordingSleep


def _failing_then(errors, result="done"):
    """Operation that raises each error in turn, then returns ``result``."""
    calls = {"count": 0}
    pending = list(errors)

    async def operation():
        calls["count"] += 1
        if pending:
            raise pending.pop(0)
        return result

    return operation, calls


class TestIsOverloadError:
    """Overload detection used for retry decisions."""

    @pytest.mark.parametrize(
        "text",
        [
            "503 The model is overloaded. Please try again later.",
            "Model is Overloaded",
            "Service Unavailable",
            "upstream said: service unavailable",
        ],
    )
    def test_overload_markers(self, text):
        assert is_overload_error(Exception(text)) is True

    @pytest.mark.parametrize(
        "text",
        ["404 models/x is not found", "401 API key not valid", "429 Resource exhausted", ""],
    )
    def test_other_failures(self, text):
        assert is_overload_error(Exception(text)) is False


class TestRetryPolicy:
    """Policy validation and delay schedule."""

    def test_delay_doubles(self):
        policy = RetryPolicy(max_retries=4, base_delay=1.0)
        assert [policy.delay_for(k) for k in range(3)] == [1.0, 2.0, 4.0]

    def test_default_policies(self):
        assert (PROBE_POLICY.max_retries, PROBE_POLICY.base_delay) == (2, 0.5)
        assert (GENERATION_POLICY.max_retries, GENERATION_POLICY.base_delay) == (3, 1.0)

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_retries=0, base_delay=1.0)

    def test_rejects_negative_delay(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_retries=1, base_delay=-0.1)


class TestRetryWithBackoff:
    """Retry loop behaviour."""

    def test_first_attempt_success_does_not_sleep(self):
        sleep = RecordingSleep()
        operation, calls = _failing_then([])

        result = asyncio.run(retry_with_backoff(operation, 3, 1.0, sleep=sleep))

        assert result == "done"
        assert calls["count"] == 1
        assert sleep.delays == []

    def test_overload_retried_with_exponential_delays(self):
        sleep = RecordingSleep()
        operation, calls = _failing_then([Exception("503 overloaded"), Exception("Service Unavailable")])

        result = asyncio.run(retry_with_backoff(operation, 3, 1.0, sleep=sleep))

        assert result == "done"
        assert calls["count"] == 3
        assert sleep.delays == [1.0, 2.0]

    def test_exhaustion_reraises_last_error(self):
        sleep = RecordingSleep()
        last = Exception("503 still overloaded")
        operation, calls = _failing_then([Exception("503 overloaded"), Exception("503 again"), last])

        with pytest.raises(Exception) as exc_info:
            asyncio.run(retry_with_backoff(operation, 3, 1.0, sleep=sleep))

        assert exc_info.value is last
        assert calls["count"] == 3
        assert sleep.delays == [1.0, 2.0]

    def test_non_overload_error_fails_immediately(self):
        sleep = RecordingSleep()
        operation, calls = _failing_then([Exception("404 models/x is not found")])

        with pytest.raises(Exception, match="404"):
            asyncio.run(retry_with_backoff(operation, 3, 1.0, sleep=sleep))

        assert calls["count"] == 1
        assert sleep.delays == []

    def test_overload_then_other_error_stops(self):
        sleep = RecordingSleep()
        operation, calls = _failing_then([Exception("503 overloaded"), Exception("401 API key not valid")])

        with pytest.raises(Exception, match="401"):
            asyncio.run(retry_with_backoff(operation, 3, 1.0, sleep=sleep))

        assert calls["count"] == 2
        assert sleep.delays == [1.0]

    def test_single_attempt_never_sleeps(self):
        sleep = RecordingSleep()
        operation, calls = _failing_then([Exception("503 overloaded")])

        with pytest.raises(Exception, match="503"):
            asyncio.run(retry_with_backoff(operation, 1, 1.0, sleep=sleep))

        assert calls["count"] == 1
        assert sleep.delays == []

    def test_probe_policy_schedule(self):
        sleep = RecordingSleep()
        operation, calls = _failing_then([Exception("503 overloaded"), Exception("503 overloaded")])

        with pytest.raises(Exception, match="503"):
            asyncio.run(retry_with_policy(operation, PROBE_POLICY, sleep=sleep))

        assert calls["count"] == 2
        assert sleep.delays == [0.5]
