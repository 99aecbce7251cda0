"""
Response extraction from the page.

Replies are assumed to be appended in document order, so the latest reply
is the last element a response rule matches.
"""

import logging

from playwright.async_api import Page

from webchat_bridge.exceptions import EmptyResponseError

from .dom import FIRST_TEXT_SCRIPT, LAST_TEXT_SCRIPT

logger = logging.getLogger(__name__)


async def extract_reply_text(page: Page, rules: tuple[str, ...]) -> str:
    """
    Return the trimmed text of the latest reply block.

    Rules are tried in order; within a rule, matches are scanned from the
    last one backwards and the first non-empty text wins.

    Raises:
        EmptyResponseError: If no rule yields non-empty text
    """
    text = await page.evaluate(LAST_TEXT_SCRIPT, list(rules))
    if not text:
        raise EmptyResponseError("No assistant response found on the page.")
    return text


async def read_model_label(page: Page, rules: tuple[str, ...]) -> str | None:
    """
    Return the text of the model label, or None.

    Never raises: a missing or unreadable label only means the caller's
    model id is reported instead.
    """
    try:
        label = await page.evaluate(FIRST_TEXT_SCRIPT, list(rules))
    except Exception as e:
        logger.debug(f"Model label unreadable: {e}")
        return None
    return label or None
