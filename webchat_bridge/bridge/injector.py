"""
Prompt injection into the page's input control.

A plain <textarea> receives the whole prompt in one fill(). Rich editable
regions (contenteditable editors such as ProseMirror) ignore programmatic
value assignment, so they are cleared and then typed into key by key, which
fires the input events those editors listen for. Enter submits.

One attempt only: failing to locate or submit is final.
"""

import logging

from playwright.async_api import Locator, Page

from webchat_bridge.exceptions import InputNotFoundError

from .dom import IS_TEXT_FIELD_SCRIPT

logger = logging.getLogger(__name__)

# Delay between simulated keystrokes in rich editors (milliseconds)
KEYSTROKE_DELAY_MS = 5

SUBMIT_KEY = "Enter"


async def locate_input(page: Page, rules: tuple[str, ...]) -> Locator:
    """
    Return the first rule's first element that reports itself visible.

    A rule whose visibility probe raises is skipped.

    Raises:
        InputNotFoundError: If no rule yields a visible element
    """
    for rule in rules:
        locator = page.locator(rule).first
        try:
            if await locator.is_visible():
                logger.debug(f"Input control located with rule {rule!r}")
                return locator
        except Exception as e:
            logger.debug(f"Input rule {rule!r} failed: {e}")
    raise InputNotFoundError(
        "Chat input not found. Update the locator rules or focus the input."
    )


async def inject_prompt(
    page: Page,
    rules: tuple[str, ...],
    prompt: str,
    timeout_seconds: float,
) -> None:
    """
    Type the prompt into the page's input control and submit it.

    Args:
        page: Selected page
        rules: Resolved input locator rules
        prompt: Non-empty prompt text
        timeout_seconds: Bound for the click and fill actions

    Raises:
        InputNotFoundError: If no input control is visible
    """
    timeout_ms = timeout_seconds * 1000
    control = await locate_input(page, rules)
    await control.click(timeout=timeout_ms)

    if await control.evaluate(IS_TEXT_FIELD_SCRIPT):
        await control.fill(prompt, timeout=timeout_ms)
    else:
        await control.fill("")
        await control.press_sequentially(prompt, delay=KEYSTROKE_DELAY_MS)

    await control.press(SUBMIT_KEY)
    logger.info(f"Prompt submitted ({len(prompt)} chars)")
