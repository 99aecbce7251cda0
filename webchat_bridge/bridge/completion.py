"""
Completion detection: wait for the page to finish generating a reply.

Phase A (response started): a response_block rule matches more elements
than the baseline counted just before submission, so a new reply block has
appeared and pre-existing replies are ignored.

Phase B (response finished): the stop control is not visible, and either
the send control is visible or no send rule matches anything at all. Some
platforms remove the send button while idle instead of hiding it; absence
counts as idle.

Both phases share the same timeout and fail without retry.
"""

import logging
import time

from playwright.async_api import Page

from webchat_bridge.exceptions import CompletionTimeoutError, ResponseStartTimeoutError

from .dom import COUNT_EXCEEDS_SCRIPT, IS_IDLE_SCRIPT, count_matches
from .polling import poll_until

logger = logging.getLogger(__name__)


async def count_response_blocks(page: Page, rules: tuple[str, ...]) -> int:
    """Baseline: match count of the first response rule that matches anything."""
    return await count_matches(page, rules)


async def is_idle(
    page: Page, stop_rules: tuple[str, ...], send_rules: tuple[str, ...]
) -> bool:
    """Evaluate the Phase B condition once."""
    return await page.evaluate(
        IS_IDLE_SCRIPT, {"stop": list(stop_rules), "send": list(send_rules)}
    )


async def wait_for_response_start(
    page: Page,
    rules: tuple[str, ...],
    baseline: int,
    timeout_seconds: float,
) -> None:
    """
    Phase A: wait until a response rule matches more than baseline elements.

    Raises:
        ResponseStartTimeoutError: If no new block appears in time
    """
    started = time.monotonic()
    arg = {"selectors": list(rules), "baseline": baseline}

    await poll_until(
        lambda: page.evaluate(COUNT_EXCEEDS_SCRIPT, arg),
        timeout_seconds,
        lambda: ResponseStartTimeoutError(
            f"No response appeared within {timeout_seconds:g}s of submitting the prompt.",
            timeout_seconds,
        ),
    )
    logger.debug(f"Response started after {time.monotonic() - started:.1f}s")


async def wait_for_completion(
    page: Page,
    stop_rules: tuple[str, ...],
    send_rules: tuple[str, ...],
    timeout_seconds: float,
) -> None:
    """
    Phase B: wait until the busy indicator clears.

    Raises:
        CompletionTimeoutError: If the page is still generating at the deadline
    """
    started = time.monotonic()

    await poll_until(
        lambda: is_idle(page, stop_rules, send_rules),
        timeout_seconds,
        lambda: CompletionTimeoutError(
            f"Response still generating after {timeout_seconds:g}s.",
            timeout_seconds,
        ),
    )
    logger.debug(f"Response finished after {time.monotonic() - started:.1f}s")
