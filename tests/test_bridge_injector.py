"""
Tests for bridge.injector module.

Tests cover:
- Input location by rule priority and visibility
- Plain textarea filled in one step
- Rich editors cleared and typed into
- Enter submits
- Missing input raises InputNotFoundError
"""

import pytest
from conftest import FakeElement, FakePage

from webchat_bridge.bridge.injector import KEYSTROKE_DELAY_MS, inject_prompt, locate_input
from webchat_bridge.exceptions import InputNotFoundError

EDITOR = 'div[contenteditable="true"][role="textbox"]'


class TestLocateInput:
    """Test suite for locate_input()."""

    @pytest.mark.asyncio
    async def test_first_visible_rule_wins(self):
        page = FakePage(
            dom_elements={
                "#hidden": [FakeElement(visible=False)],
                "textarea": [FakeElement(tag="textarea")],
                EDITOR: [FakeElement()],
            }
        )

        locator = await locate_input(page, ("#hidden", "#missing", "textarea", EDITOR))

        assert locator.selector == "textarea"

    @pytest.mark.asyncio
    async def test_no_visible_input(self):
        page = FakePage(dom_elements={"textarea": [FakeElement(visible=False)]})

        with pytest.raises(InputNotFoundError, match="Chat input not found"):
            await locate_input(page, ("textarea", "#missing"))


class TestInjectPrompt:
    """Test suite for inject_prompt()."""

    @pytest.mark.asyncio
    async def test_textarea_filled_then_submitted(self):
        field = FakeElement(tag="textarea")
        page = FakePage(dom_elements={"textarea": [field]})

        await inject_prompt(page, ("textarea",), "hello", timeout_seconds=5)

        assert field.value == "hello"
        assert page.actions == [
            ("click", "textarea"),
            ("fill", "textarea", "hello"),
            ("press", "textarea", "Enter"),
        ]

    @pytest.mark.asyncio
    async def test_rich_editor_cleared_and_typed(self):
        editor = FakeElement()
        editor.value = "draft left by the user"
        page = FakePage(dom_elements={EDITOR: [editor]})

        await inject_prompt(page, (EDITOR,), "compare\nthese", timeout_seconds=5)

        assert editor.value == "compare\nthese"
        assert page.actions == [
            ("click", EDITOR),
            ("fill", EDITOR, ""),
            ("type", EDITOR, "compare\nthese"),
            ("press", EDITOR, "Enter"),
        ]

    @pytest.mark.asyncio
    async def test_submit_fires_page_hook(self):
        submitted = []
        page = FakePage(
            dom_elements={"textarea": [FakeElement(tag="textarea")]},
            on_submit=lambda p: submitted.append(True),
        )

        await inject_prompt(page, ("textarea",), "hello", timeout_seconds=5)

        assert submitted == [True]

    @pytest.mark.asyncio
    async def test_missing_input_does_nothing(self):
        page = FakePage()

        with pytest.raises(InputNotFoundError):
            await inject_prompt(page, ("textarea",), "hello", timeout_seconds=5)
        assert page.actions == []

    def test_keystroke_delay(self):
        assert KEYSTROKE_DELAY_MS == 5
