"""
Deadline-bounded condition polling for DOM waits.

Built on tenacity, re-running a read-only probe rather than a failed
request: the probe is awaited until it returns a truthy value, sleeping with
exponential backoff between attempts, and the whole wait is bounded by a
deadline that also cancels a probe still pending when it passes. A probe
that raises is never re-run.

Constants balance:
- Responsiveness (notice a finished reply within ~1s)
- Load on the page (a long generation is probed at most once per second)

Example:
    >>> await poll_until(
    ...     lambda: page.evaluate(IS_IDLE_SCRIPT, {"stop": [...], "send": [...]}),
    ...     timeout_seconds=120,
    ...     on_timeout=lambda: CompletionTimeoutError("still generating", 120),
    ... )
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_result,
    stop_before_delay,
    wait_exponential,
)

from webchat_bridge.exceptions import BridgeTimeoutError

logger = logging.getLogger(__name__)

# First pause between probes (seconds)
MIN_POLL_INTERVAL = 0.1

# Backoff cap (seconds)
MAX_POLL_INTERVAL = 1.0


async def poll_until(
    probe: Callable[[], Awaitable[object]],
    timeout_seconds: float,
    on_timeout: Callable[[], BridgeTimeoutError],
    min_interval: float = MIN_POLL_INTERVAL,
    max_interval: float = MAX_POLL_INTERVAL,
) -> None:
    """
    Await probe() until it returns a truthy value.

    The deadline is hard: a probe still pending when it passes is cancelled,
    and no sleep is started that would end after it.

    Args:
        probe: Zero-argument callable returning an awaitable; truthy result ends the wait
        timeout_seconds: Deadline for the whole wait
        on_timeout: Builds the timeout error raised when the deadline passes
        min_interval: First sleep between probes
        max_interval: Longest sleep between probes

    Raises:
        BridgeTimeoutError: The error built by on_timeout, chained to tenacity's
            RetryError, or to TimeoutError when a probe was still pending
        Exception: Whatever probe() raises, unchanged and without another attempt
    """
    retrying = AsyncRetrying(
        stop=stop_before_delay(timeout_seconds),
        wait=wait_exponential(multiplier=min_interval, min=min_interval, max=max_interval),
        retry=retry_if_result(lambda satisfied: not satisfied),
    )

    deadline = asyncio.timeout(timeout_seconds)
    try:
        async with deadline:
            async for attempt in retrying:
                with attempt:
                    satisfied = await probe()
                if not attempt.retry_state.outcome.failed:
                    attempt.retry_state.set_result(satisfied)
    except RetryError as e:
        attempts = e.last_attempt.attempt_number
        logger.debug(f"Condition not met after {attempts} probes in {timeout_seconds}s")
        raise on_timeout() from e
    except TimeoutError as e:
        if not deadline.expired():
            raise
        logger.debug(f"Probe still pending at the {timeout_seconds}s deadline")
        raise on_timeout() from e
