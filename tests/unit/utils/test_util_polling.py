# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Unit tests for the bounded predicate poller.

Tests:
- Immediate success without waiting a full interval
- No evaluations after the first truthy result
- Timeout timing, message and error type
- No task or timer left behind on any exit path
- Fail-fast propagation of predicate errors
- Independence of concurrent polls
"""

from __future__ import annotations

import asyncio
import math
import time
import warnings

import pytest

from o11y_harness.errors import PollTimeoutError
from o11y_harness.utils.util_polling import TIMEOUT_MESSAGE, wait_until


def _other_tasks() -> set[asyncio.Task[object]]:
    return asyncio.all_tasks() - {asyncio.current_task()}


class TestWaitUntilSuccess:
    """Tests for predicates that become true."""

    async def test_already_true_resolves_without_waiting(self) -> None:
        """An already-true predicate resolves before the first interval elapses."""
        calls = 0

        def predicate() -> bool:
            nonlocal calls
            calls += 1
            return True

        started = time.monotonic()
        await wait_until(predicate, poll_interval_seconds=5.0, timeout_seconds=10.0)

        assert time.monotonic() - started < 1.0
        assert calls == 1

    async def test_stops_evaluating_after_first_truthy_result(self) -> None:
        """The predicate is never called again once it returned truthy."""
        calls = 0

        def predicate() -> bool:
            nonlocal calls
            calls += 1
            return calls >= 3

        await wait_until(predicate, poll_interval_seconds=0.01, timeout_seconds=2.0)
        await asyncio.sleep(0.05)

        assert calls == 3

    async def test_returns_first_truthy_value(self) -> None:
        """The truthy value itself is returned to the caller."""
        values = iter([None, [], {"cpu_time"}])

        result = await wait_until(
            lambda: next(values), poll_interval_seconds=0.01, timeout_seconds=2.0
        )

        assert result == {"cpu_time"}

    async def test_observes_state_mutated_by_another_task(self) -> None:
        """State written by a concurrently running task is eventually observed."""
        received: list[int] = []

        async def deliver() -> None:
            await asyncio.sleep(0.1)
            received.append(1)

        delivery = asyncio.create_task(deliver())
        await wait_until(lambda: received, poll_interval_seconds=0.02, timeout_seconds=2.0)
        await delivery

        assert received == [1]


class TestWaitUntilTimeout:
    """Tests for predicates that never become true."""

    async def test_timeout_raises_poll_timeout_error(self) -> None:
        """A never-true predicate fails with PollTimeoutError."""
        with pytest.raises(PollTimeoutError) as exc_info:
            await wait_until(lambda: False, poll_interval_seconds=0.02, timeout_seconds=0.1)

        assert str(exc_info.value).startswith(TIMEOUT_MESSAGE)
        assert exc_info.value.extra_context["timeout_seconds"] == 0.1

    async def test_timeout_is_a_builtin_timeout_error(self) -> None:
        """PollTimeoutError can be handled as a builtin TimeoutError."""
        with pytest.raises(TimeoutError):
            await wait_until(lambda: False, poll_interval_seconds=0.02, timeout_seconds=0.05)

    async def test_timeout_fires_within_one_interval_of_deadline(self) -> None:
        """Failure arrives after the timeout and within one interval of slack."""
        interval = 0.1
        timeout = 0.3

        started = time.monotonic()
        with pytest.raises(PollTimeoutError):
            await wait_until(
                lambda: False, poll_interval_seconds=interval, timeout_seconds=timeout
            )
        elapsed = time.monotonic() - started

        assert elapsed >= timeout - 0.01
        # One interval of slack plus scheduler jitter
        assert elapsed < timeout + interval + 0.2

    async def test_description_included_in_message(self) -> None:
        """The caller's description makes the diagnostic actionable."""
        with pytest.raises(PollTimeoutError) as exc_info:
            await wait_until(
                lambda: False,
                poll_interval_seconds=0.01,
                timeout_seconds=0.02,
                description="collector received at least 1 payload(s)",
            )

        assert "collector received at least 1 payload(s)" in str(exc_info.value)

    async def test_zero_timeout_evaluates_exactly_once(self) -> None:
        """With a zero timeout the predicate is checked once, then the call fails."""
        calls = 0

        def predicate() -> bool:
            nonlocal calls
            calls += 1
            return False

        with pytest.raises(PollTimeoutError):
            await wait_until(predicate, poll_interval_seconds=0.01, timeout_seconds=0.0)

        assert calls == 1

    async def test_no_task_survives_timeout(self) -> None:
        """Nothing scheduled by the poller outlives a timed-out call."""
        before = _other_tasks()
        with pytest.raises(PollTimeoutError):
            await wait_until(lambda: False, poll_interval_seconds=0.01, timeout_seconds=0.05)

        assert _other_tasks() == before


class TestWaitUntilErrors:
    """Tests for predicate errors and invalid arguments."""

    async def test_predicate_exception_propagates_immediately(self) -> None:
        """A raising predicate fails the call on the first evaluation."""
        calls = 0

        def predicate() -> bool:
            nonlocal calls
            calls += 1
            raise KeyError("resourceMetrics")

        with pytest.raises(KeyError):
            await wait_until(predicate, poll_interval_seconds=0.01, timeout_seconds=1.0)

        assert calls == 1

    async def test_async_predicate_rejected(self) -> None:
        """Coroutine-returning predicates raise TypeError and are closed."""

        async def predicate() -> bool:
            return True

        with warnings.catch_warnings():
            warnings.simplefilter("error", RuntimeWarning)
            with pytest.raises(TypeError, match="synchronous"):
                await wait_until(predicate, timeout_seconds=0.1)

    @pytest.mark.parametrize(
        ("interval", "timeout"),
        [
            (0.0, 1.0),
            (-0.1, 1.0),
            (0.1, -1.0),
            (0.1, math.nan),
            (0.1, math.inf),
            (math.nan, 1.0),
            (math.inf, 1.0),
        ],
    )
    async def test_invalid_arguments(self, interval: float, timeout: float) -> None:
        """Non-positive, negative or non-finite arguments are rejected up front."""
        with pytest.raises(ValueError):
            await wait_until(
                lambda: True, poll_interval_seconds=interval, timeout_seconds=timeout
            )


class TestWaitUntilConcurrency:
    """Tests for concurrent and cancelled polls."""

    async def test_concurrent_polls_are_independent(self) -> None:
        """One poll succeeding does not affect another timing out."""
        flag: list[bool] = []

        async def set_flag() -> None:
            await asyncio.sleep(0.05)
            flag.append(True)

        results = await asyncio.gather(
            wait_until(lambda: flag, poll_interval_seconds=0.01, timeout_seconds=1.0),
            wait_until(lambda: False, poll_interval_seconds=0.01, timeout_seconds=0.2),
            set_flag(),
            return_exceptions=True,
        )

        assert results[0] == [True]
        assert isinstance(results[1], PollTimeoutError)

    async def test_cancellation_leaves_nothing_behind(self) -> None:
        """Cancelling the polling task stops it without leftovers."""
        before = _other_tasks()
        task = asyncio.create_task(
            wait_until(lambda: False, poll_interval_seconds=0.01, timeout_seconds=10.0)
        )
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert _other_tasks() == before
