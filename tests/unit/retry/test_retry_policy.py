"""Unit tests for exponential-backoff retry."""

from unittest.mock import AsyncMock, MagicMock, call, patch

import pytest

from contentflow_core.retry import RetryPolicy, backoff_delay, call_with_retry
from contentflow_core.types import RetryConfig


def flaky(failures: int, value: str = "ok"):
    """Operation failing ``failures`` times before returning ``value``."""
    state = {"calls": 0}

    async def operation() -> str:
        state["calls"] += 1
        if state["calls"] <= failures:
            raise ConnectionError(f"failure {state['calls']}")
        return value

    return operation, state


class TestBackoffDelay:
    """Tests for backoff_delay."""

    def test_doubles_per_attempt(self):
        """Delay after attempt n is base * 2**n."""
        assert backoff_delay(0.1, 1) == pytest.approx(0.2)
        assert backoff_delay(0.1, 2) == pytest.approx(0.4)
        assert backoff_delay(1.0, 3) == pytest.approx(8.0)


class TestCallWithRetry:
    """Tests for call_with_retry."""

    @pytest.mark.asyncio
    async def test_first_success_does_not_sleep(self):
        """A succeeding operation runs once."""
        operation, state = flaky(0)
        with patch("contentflow_core.retry.policy.asyncio.sleep", new_callable=AsyncMock) as sleep:
            assert await call_with_retry(operation, 3, 0.1) == "ok"
        assert state["calls"] == 1
        sleep.assert_not_called()

    @pytest.mark.asyncio
    async def test_recovers_after_two_failures(self):
        """Fails twice, then succeeds: three calls with 200ms then 400ms waits."""
        operation, state = flaky(2, value="done")
        with patch("contentflow_core.retry.policy.asyncio.sleep", new_callable=AsyncMock) as sleep:
            result = await call_with_retry(operation, 3, 0.1)

        assert result == "done"
        assert state["calls"] == 3
        assert sleep.await_count == 2
        first, second = (c.args[0] for c in sleep.await_args_list)
        assert first == pytest.approx(0.2)
        assert second == pytest.approx(0.4)

    @pytest.mark.asyncio
    async def test_reraises_final_error_unchanged(self):
        """The last attempt's exception propagates as-is."""
        errors = [ValueError("first"), ValueError("second"), ValueError("third")]
        operation = AsyncMock(side_effect=errors)

        with patch("contentflow_core.retry.policy.asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(ValueError) as exc_info:
                await call_with_retry(operation, 3, 0.1)

        assert exc_info.value is errors[2]
        assert operation.await_count == 3

    @pytest.mark.asyncio
    async def test_single_attempt_never_sleeps(self):
        """max_attempts=1 means no retry."""
        operation = AsyncMock(side_effect=RuntimeError("boom"))
        with patch("contentflow_core.retry.policy.asyncio.sleep", new_callable=AsyncMock) as sleep:
            with pytest.raises(RuntimeError):
                await call_with_retry(operation, 1, 0.1)
        sleep.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejects_zero_attempts(self):
        """At least one attempt is required."""
        with pytest.raises(ValueError, match="max_attempts"):
            await call_with_retry(AsyncMock(), 0, 0.1)

    @pytest.mark.asyncio
    async def test_on_retry_called_before_each_sleep(self):
        """on_retry receives attempt, max, delay and the error."""
        operation, _ = flaky(2)
        on_retry = MagicMock()
        with patch("contentflow_core.retry.policy.asyncio.sleep", new_callable=AsyncMock):
            await call_with_retry(operation, 3, 1.0, on_retry=on_retry)

        assert on_retry.call_count == 2
        attempts = [c.args[:3] for c in on_retry.call_args_list]
        assert attempts == [(1, 3, 2.0), (2, 3, 4.0)]
        assert isinstance(on_retry.call_args_list[0].args[3], ConnectionError)


class TestRetryPolicy:
    """Tests for RetryPolicy."""

    @pytest.mark.asyncio
    async def test_uses_config(self):
        """Attempts and base delay come from RetryConfig."""
        operation = AsyncMock(side_effect=[OSError("a"), "value"])
        policy = RetryPolicy(RetryConfig(max_attempts=2, delay_seconds=0.5))

        with patch("contentflow_core.retry.policy.asyncio.sleep", new_callable=AsyncMock) as sleep:
            assert await policy.run(operation) == "value"

        sleep.assert_has_awaits([call(1.0)])
