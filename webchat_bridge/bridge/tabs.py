"""
Tab selection: pick the page the bridge operates on.

Selection order:
1. The page that currently holds input focus (document.hasFocus())
2. The first page whose URL matches the configured pattern
3. The first open page

Probing is read-only. A page that closes or cannot be evaluated while its
focus is probed is skipped.
"""

import logging
import re

from playwright.async_api import Page

from webchat_bridge.exceptions import NoOpenPagesError, NoSelectablePageError

from .dom import HAS_FOCUS_SCRIPT

logger = logging.getLogger(__name__)


async def find_focused_page(pages: list[Page]) -> Page | None:
    """Return the first open page reporting document focus, or None."""
    for page in pages:
        if page.is_closed():
            continue
        try:
            if await page.evaluate(HAS_FOCUS_SCRIPT):
                return page
        except Exception as e:
            logger.debug(f"Skipping page during focus probe ({page.url}): {e}")
    return None


def find_page_by_url(pages: list[Page], pattern: re.Pattern[str]) -> Page | None:
    """Return the first open page whose URL matches pattern, or None."""
    for page in pages:
        if page.is_closed():
            continue
        if pattern.search(page.url):
            return page
    return None


async def select_page(pages: list[Page], pattern: re.Pattern[str]) -> Page:
    """
    Pick the page to send the prompt to.

    Args:
        pages: Every page of every context in the connected browser
        pattern: Fallback URL pattern used when no page holds focus

    Returns:
        Page: The selected page

    Raises:
        NoOpenPagesError: If pages is empty
        NoSelectablePageError: If every page closed before one could be chosen
    """
    if not pages:
        raise NoOpenPagesError("No open pages found in the connected browser.")

    page = await find_focused_page(pages)
    if page is not None:
        logger.info(f"Selected focused tab: {page.url}")
        return page

    page = find_page_by_url(pages, pattern)
    if page is not None:
        logger.info(f"Selected tab matching URL pattern: {page.url}")
        return page

    for page in pages:
        if not page.is_closed():
            logger.info(f"No focused or matching tab, using first open tab: {page.url}")
            return page

    raise NoSelectablePageError("Unable to select an active tab: every page has closed.")
