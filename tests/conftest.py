"""
Shared fakes for bridge tests.

FakePage stands in for a Playwright Page. Its DOM is a mapping from
selector string to a list of FakeElement, so a selector "matches" exactly
the elements stored under that key. evaluate() recognises the probe scripts
from webchat_bridge.bridge.dom and answers them from that mapping.
"""

import asyncio

import pytest

from webchat_bridge.bridge import dom
from webchat_bridge.exceptions import ChannelConnectError


class FakeElement:
    def __init__(self, text="", visible=True, tag="div"):
        self.text = text
        self.visible = visible
        self.tag = tag
        self.value = ""


class FakePage:
    def __init__(
        self,
        url="about:blank",
        title="",
        dom_elements=None,
        focused=False,
        closed=False,
        on_submit=None,
        on_probe=None,
    ):
        self.url = url
        self._title = title
        self.dom = {key: list(value) for key, value in (dom_elements or {}).items()}
        self.focused = focused
        self.closed = closed
        self.on_submit = on_submit
        self.on_probe = on_probe
        self.fail_evaluate = False
        self.hang_evaluate = False
        self.actions = []

    def is_closed(self):
        return self.closed

    async def title(self):
        return self._title

    def matches(self, selector):
        return self.dom.get(selector, [])

    def is_visible(self, selector):
        elements = self.matches(selector)
        return bool(elements) and elements[0].visible

    def locator(self, selector):
        return FakeLocatorGroup(self, selector)

    async def evaluate(self, script, arg=None):
        if self.fail_evaluate:
            raise RuntimeError("Target page, context or browser has been closed")
        if self.hang_evaluate:
            await asyncio.Event().wait()
        if self.on_probe is not None:
            self.on_probe(self)

        if script == dom.HAS_FOCUS_SCRIPT:
            return self.focused
        if script == dom.COUNT_MATCHES_SCRIPT:
            for selector in arg:
                if self.matches(selector):
                    return len(self.matches(selector))
            return 0
        if script == dom.COUNT_EXCEEDS_SCRIPT:
            return any(len(self.matches(s)) > arg["baseline"] for s in arg["selectors"])
        if script == dom.ANY_PRESENT_SCRIPT:
            return any(self.matches(s) for s in arg)
        if script == dom.IS_IDLE_SCRIPT:
            stop_visible = any(self.is_visible(s) for s in arg["stop"])
            send_visible = any(self.is_visible(s) for s in arg["send"])
            send_known = any(self.matches(s) for s in arg["send"])
            return not stop_visible and (send_visible or not send_known)
        if script == dom.LAST_TEXT_SCRIPT:
            for selector in arg:
                for element in reversed(self.matches(selector)):
                    if element.text.strip():
                        return element.text.strip()
            return ""
        if script == dom.FIRST_TEXT_SCRIPT:
            for selector in arg:
                elements = self.matches(selector)
                if elements and elements[0].text.strip():
                    return elements[0].text.strip()
            return None
        raise AssertionError(f"Unexpected script: {script[:40]}")


class FakeLocatorGroup:
    def __init__(self, page, selector):
        self.first = FakeLocator(page, selector)


class FakeLocator:
    def __init__(self, page, selector):
        self.page = page
        self.selector = selector

    @property
    def element(self):
        return self.page.matches(self.selector)[0]

    async def is_visible(self):
        return self.page.is_visible(self.selector)

    async def click(self, timeout=None):
        self.page.actions.append(("click", self.selector))

    async def evaluate(self, script, arg=None):
        assert script == dom.IS_TEXT_FIELD_SCRIPT
        return self.element.tag == "textarea"

    async def fill(self, value, timeout=None):
        self.element.value = value
        self.page.actions.append(("fill", self.selector, value))

    async def press_sequentially(self, text, delay=None):
        self.element.value += text
        self.page.actions.append(("type", self.selector, text))

    async def press(self, key):
        self.page.actions.append(("press", self.selector, key))
        if key == "Enter" and self.page.on_submit is not None:
            self.page.on_submit(self.page)


class FakeChannel:
    def __init__(self, endpoint, pages=None, fail_connect=False):
        self.endpoint = endpoint
        self._pages = pages or []
        self.fail_connect = fail_connect
        self.connect_calls = 0
        self.close_calls = 0

    @property
    def connected(self):
        return self.connect_calls > 0 and not self.fail_connect

    async def connect(self):
        self.connect_calls += 1
        if self.fail_connect:
            raise ChannelConnectError(
                f"Cannot connect to browser at {self.endpoint}: connection refused"
            )

    def pages(self):
        return list(self._pages)

    async def close(self):
        self.close_calls += 1


class ChannelRecorder:
    """Channel factory that remembers every channel it built."""

    def __init__(self, pages=None, fail_connect=False):
        self.pages = pages or []
        self.fail_connect = fail_connect
        self.channels = []

    def __call__(self, endpoint):
        channel = FakeChannel(endpoint, self.pages, self.fail_connect)
        self.channels.append(channel)
        return channel


def reply_on_submit(text, selector='[data-message-author-role="assistant"]'):
    """on_submit hook: append an assistant reply block holding text."""

    def hook(page):
        page.dom.setdefault(selector, []).append(FakeElement(text))

    return hook


@pytest.fixture
def chat_page():
    """A focused ChatGPT tab with one earlier exchange and a visible send button."""
    return FakePage(
        url="https://chatgpt.com/c/abc",
        title="ChatGPT",
        focused=True,
        dom_elements={
            "#prompt-textarea": [FakeElement(tag="textarea")],
            "textarea#prompt-textarea": [FakeElement(tag="textarea")],
            '[data-message-author-role="assistant"]': [FakeElement("first reply")],
            'button[aria-label*="Send"]': [FakeElement()],
            'button[data-testid="model-switcher"]': [FakeElement("GPT-4o")],
        },
        on_submit=reply_on_submit("hi there"),
    )
