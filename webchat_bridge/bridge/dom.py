"""
Read-only DOM probes evaluated inside the page.

Each probe is a JavaScript function taking a single argument, run through
Playwright's page.evaluate(). A selector the browser rejects (for example
:has() on an engine without support) counts as matching nothing rather than
failing the probe.

Visibility means the element exists, its computed display is not "none",
its computed visibility is not "hidden", and it has an offsetParent.
"""

from playwright.async_api import Page

_QUERY_ALL = """
const queryAll = (selector) => {
  try {
    return Array.from(document.querySelectorAll(selector));
  } catch (e) {
    return [];
  }
};
"""

_IS_VISIBLE = """
const isVisible = (selector) => {
  const el = queryAll(selector)[0];
  if (!el) {
    return false;
  }
  const style = window.getComputedStyle(el);
  if (!style || style.display === "none" || style.visibility === "hidden") {
    return false;
  }
  return Boolean(el.offsetParent);
};
"""

HAS_FOCUS_SCRIPT = "() => document.hasFocus()"

# Match count of the first selector that matches anything
COUNT_MATCHES_SCRIPT = (
    "(selectors) => {"
    + _QUERY_ALL
    + """
  for (const selector of selectors) {
    const count = queryAll(selector).length;
    if (count > 0) {
      return count;
    }
  }
  return 0;
}"""
)

# arg: {selectors, baseline}
COUNT_EXCEEDS_SCRIPT = (
    "({selectors, baseline}) => {"
    + _QUERY_ALL
    + """
  return selectors.some((selector) => queryAll(selector).length > baseline);
}"""
)

ANY_PRESENT_SCRIPT = (
    "(selectors) => {"
    + _QUERY_ALL
    + """
  return selectors.some((selector) => queryAll(selector).length > 0);
}"""
)

# arg: {stop, send}
IS_IDLE_SCRIPT = (
    "({stop, send}) => {"
    + _QUERY_ALL
    + _IS_VISIBLE
    + """
  const stopVisible = stop.some(isVisible);
  const sendVisible = send.some(isVisible);
  const sendKnown = send.some((selector) => queryAll(selector).length > 0);
  return !stopVisible && (sendVisible || !sendKnown);
}"""
)

# Latest non-empty text of the first selector that yields any
LAST_TEXT_SCRIPT = (
    "(selectors) => {"
    + _QUERY_ALL
    + """
  for (const selector of selectors) {
    const matches = queryAll(selector);
    for (let i = matches.length - 1; i >= 0; i -= 1) {
      const text = (matches[i].textContent || "").trim();
      if (text) {
        return text;
      }
    }
  }
  return "";
}"""
)

# Text of the first matching element, first selector that yields any
FIRST_TEXT_SCRIPT = (
    "(selectors) => {"
    + _QUERY_ALL
    + """
  for (const selector of selectors) {
    const el = queryAll(selector)[0];
    const text = el ? (el.textContent || "").trim() : "";
    if (text) {
      return text;
    }
  }
  return null;
}"""
)

IS_TEXT_FIELD_SCRIPT = "(node) => node instanceof HTMLTextAreaElement"


async def count_matches(page: Page, selectors: tuple[str, ...]) -> int:
    return await page.evaluate(COUNT_MATCHES_SCRIPT, list(selectors))


async def any_present(page: Page, selectors: tuple[str, ...]) -> bool:
    if not selectors:
        return False
    return await page.evaluate(ANY_PRESENT_SCRIPT, list(selectors))
