"""Tests for the async retry-with-backoff combinator."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from authgate.core.retry import retry_with_backoff


class TransientError(Exception):
    pass


class TestRetryWithBackoff:
    def test_returns_first_success(self):
        operation = AsyncMock(return_value="ok")
        result = asyncio.run(retry_with_backoff(operation, initial_delay=0))
        assert result == "ok"
        assert operation.await_count == 1

    def test_retries_until_success(self):
        operation = AsyncMock(side_effect=[TransientError("1"), TransientError("2"), "ok"])
        result = asyncio.run(retry_with_backoff(operation, max_attempts=3, initial_delay=0))
        assert result == "ok"
        assert operation.await_count == 3

    def test_raises_last_error_after_max_attempts(self):
        operation = AsyncMock(side_effect=[TransientError("first"), TransientError("last")])
        with pytest.raises(TransientError, match="last"):
            asyncio.run(retry_with_backoff(operation, max_attempts=2, initial_delay=0))
        assert operation.await_count == 2

    def test_does_not_retry_unlisted_errors(self):
        operation = AsyncMock(side_effect=ValueError("not transient"))
        with pytest.raises(ValueError):
            asyncio.run(retry_with_backoff(operation, max_attempts=5, initial_delay=0, retry_on=(TransientError,)))
        assert operation.await_count == 1

    def test_exponential_delays_are_capped(self):
        operation = AsyncMock(side_effect=[TransientError()] * 4 + ["ok"])
        with patch("authgate.core.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            asyncio.run(
                retry_with_backoff(
                    operation,
                    max_attempts=5,
                    initial_delay=1.0,
                    max_delay=3.0,
                    backoff_factor=2.0,
                )
            )
        delays = [call.args[0] for call in mock_sleep.await_args_list]
        assert delays == [1.0, 2.0, 3.0, 3.0]

    def test_jitter_stays_within_delay(self):
        operation = AsyncMock(side_effect=[TransientError(), "ok"])
        with patch("authgate.core.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            asyncio.run(retry_with_backoff(operation, initial_delay=2.0, jitter=True))
        delay = mock_sleep.await_args.args[0]
        assert 0 <= delay <= 2.0

    def test_single_attempt_does_not_sleep(self):
        operation = AsyncMock(side_effect=TransientError())
        with patch("authgate.core.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            with pytest.raises(TransientError):
                asyncio.run(retry_with_backoff(operation, max_attempts=1))
        mock_sleep.assert_not_awaited()

    def test_retry_if_stops_on_rejected_error(self):
        operation = AsyncMock(side_effect=[TransientError("client"), "ok"])
        with pytest.raises(TransientError, match="client"):
            asyncio.run(
                retry_with_backoff(
                    operation,
                    max_attempts=3,
                    initial_delay=0,
                    retry_if=lambda e: str(e) != "client",
                )
            )
        assert operation.await_count == 1

    def test_retry_if_allows_accepted_error(self):
        operation = AsyncMock(side_effect=[TransientError("server"), "ok"])
        result = asyncio.run(
            retry_with_backoff(operation, max_attempts=3, initial_delay=0, retry_if=lambda e: str(e) == "server")
        )
        assert result == "ok"
        assert operation.await_count == 2

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            asyncio.run(retry_with_backoff(AsyncMock(), max_attempts=0))
