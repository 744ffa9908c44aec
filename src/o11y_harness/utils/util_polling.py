# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Bounded predicate polling for eventually-observable test state.

Triggering the sandboxed worker only guarantees that its scheduled handler
returned; the telemetry it exports lands on the collector double some time
later. Assertions on collected state therefore poll with a hard deadline
instead of sleeping for a fixed duration.

Available Utilities:
    - wait_until: Evaluate a synchronous predicate on a fixed interval until
      it is truthy or the deadline passes
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import math
from collections.abc import Callable
from typing import TypeVar

from o11y_harness.enums import EnumHarnessComponent
from o11y_harness.errors import ModelHarnessErrorContext, PollTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS: float = 0.1
DEFAULT_POLL_TIMEOUT_SECONDS: float = 4.5

TIMEOUT_MESSAGE = "condition was not satisfied in time"

T = TypeVar("T")


async def wait_until(
    predicate: Callable[[], T],
    *,
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
    timeout_seconds: float = DEFAULT_POLL_TIMEOUT_SECONDS,
    description: str | None = None,
) -> T:
    """Wait until ``predicate()`` returns a truthy value or the deadline passes.

    Evaluation Schedule:
        The predicate is evaluated immediately on entry, then once after each
        ``poll_interval_seconds`` sleep. An already-true condition therefore
        resolves without waiting. The final sleep is clipped to the time
        remaining, so a timeout is reported within one interval of the
        deadline.

    Resource Guarantees:
        No timer, task or callback is scheduled besides the awaited
        ``asyncio.sleep``. On success, timeout, predicate error or
        cancellation of the calling task, nothing outlives the call.
        Concurrent calls share no state.

    Predicate Contract:
        The predicate is synchronous and reads shared state without writing
        it. Exactly one evaluation is in flight at a time, and no evaluation
        happens after the first truthy result. Exceptions raised by the
        predicate propagate immediately; they are not retried.

    Args:
        predicate: Zero-argument callable returning a truthy value when the
            awaited condition holds.
        poll_interval_seconds: Delay between evaluations (finite, > 0).
        timeout_seconds: Deadline measured from entry (finite, >= 0). With 0
            the predicate is evaluated exactly once.
        description: Human-readable description included in the timeout
            message.

    Returns:
        The first truthy value returned by the predicate.

    Raises:
        PollTimeoutError: If the predicate did not become truthy in time.
        TypeError: If the predicate returns an awaitable (async predicates
            are not supported).
        ValueError: If the interval or timeout is out of range.

    Example:
        >>> await wait_until(lambda: collector.payload_count >= 1)
        >>> names = await wait_until(
        ...     collector.get_metric_names,
        ...     timeout_seconds=2.0,
        ...     description="collector indexed at least one metric",
        ... )
    """
    if not math.isfinite(poll_interval_seconds) or poll_interval_seconds <= 0:
        raise ValueError(
            "poll_interval_seconds must be a positive finite number, "
            f"got {poll_interval_seconds}"
        )
    if not math.isfinite(timeout_seconds) or timeout_seconds < 0:
        raise ValueError(
            f"timeout_seconds must be a finite number >= 0, got {timeout_seconds}"
        )

    loop = asyncio.get_running_loop()
    started_at = loop.time()
    deadline = started_at + timeout_seconds
    attempts = 0

    while True:
        attempts += 1
        result = predicate()
        if inspect.isawaitable(result):
            if inspect.iscoroutine(result):
                result.close()
            raise TypeError(
                "wait_until predicates must be synchronous; "
                f"{getattr(predicate, '__qualname__', predicate)!r} returned an awaitable"
            )
        if result:
            logger.debug(
                "Polled condition satisfied after %d evaluation(s)",
                attempts,
                extra={
                    "description": description,
                    "elapsed_seconds": round(loop.time() - started_at, 3),
                },
            )
            return result

        remaining = deadline - loop.time()
        if remaining <= 0:
            break
        await asyncio.sleep(min(poll_interval_seconds, remaining))

    elapsed = loop.time() - started_at
    message = TIMEOUT_MESSAGE
    if description:
        message = f"{message}: {description}"
    message = (
        f"{message} (waited {elapsed:.2f}s of {timeout_seconds:.2f}s, "
        f"{attempts} evaluation(s))"
    )
    logger.debug(message)
    raise PollTimeoutError(
        message,
        context=ModelHarnessErrorContext(
            component=EnumHarnessComponent.POLLER,
            operation="wait_until",
            target_name=description,
        ),
        timeout_seconds=timeout_seconds,
        attempts=attempts,
    )


__all__: list[str] = [
    "DEFAULT_POLL_INTERVAL_SECONDS",
    "DEFAULT_POLL_TIMEOUT_SECONDS",
    "TIMEOUT_MESSAGE",
    "wait_until",
]
