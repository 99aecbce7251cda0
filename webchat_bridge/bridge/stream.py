"""
Browser bridge: a streaming model provider backed by an open chat tab.

BrowserBridge.stream() runs the whole pipeline for one conversation:

    select tab -> detect platform -> resolve locators -> read model label
    -> count reply blocks -> inject prompt -> wait for start -> wait for finish
    -> extract reply -> emit events

Scraping yields the reply in one piece, so success is framed the way a
token-streaming provider frames it, with the whole text as a single delta:

    start, content-start, content-delta, content-end, done

Every failure, from an empty prompt to an unexpected exception, ends the
stream with a single error event instead. Nothing is raised to the caller
and nothing is retried.

Example:
    >>> bridge = BrowserBridge(resolve_settings())
    >>> conversation = Conversation(messages=[Message(role="user", content="hello")])
    >>> async for event in bridge.stream(ModelInfo(id="chat-tab"), conversation):
    ...     print(event.type)
    start
    content-start
    content-delta
    content-end
    done
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator

from webchat_bridge.config.schema import BridgeSettings
from webchat_bridge.exceptions import (
    BridgeError,
    EmptyPromptError,
    RunAbortedError,
    UnknownFailureError,
)
from webchat_bridge.utils.logging import log_with_context

from .channel import BrowserChannel, ChannelFactory, open_channel
from .completion import count_response_blocks, wait_for_completion, wait_for_response_start
from .detector import detect_platform, page_title
from .extractor import extract_reply_text, read_model_label
from .injector import inject_prompt
from .locators import resolve_strategy
from .models import (
    BRIDGE_API,
    AssistantMessage,
    Conversation,
    ModelInfo,
    ScrapedReply,
    StreamEvent,
    build_assistant_message,
    extract_latest_user_prompt,
)
from .tabs import select_page

logger = logging.getLogger(__name__)

ERROR_PREFIX = "Browser bridge error: "
EMPTY_PROMPT_MESSAGE = "Browser bridge: empty prompt."


def wrap_unexpected(error: Exception) -> UnknownFailureError:
    """Wrap a non-bridge exception, keeping it as __cause__."""
    wrapped = UnknownFailureError(str(error) or type(error).__name__)
    wrapped.__cause__ = error
    return wrapped


class BrowserBridge:
    """
    Streaming provider that relays prompts through an open browser tab.

    Attributes:
        api: API family served ("browser-universal")
        settings: Endpoint, tab URL pattern, and timeout
        channel_factory: Builds the per-call browser channel

    Example:
        >>> bridge = BrowserBridge(resolve_settings({"timeout_seconds": 300}))
        >>> message = await bridge.complete(ModelInfo(id="chat-tab"), conversation)
        >>> message.stop_reason, message.text
        ('stop', 'Here are three options...')
    """

    api = BRIDGE_API

    def __init__(
        self,
        settings: BridgeSettings | None = None,
        channel_factory: ChannelFactory = BrowserChannel,
    ):
        self.settings = settings or BridgeSettings()
        self.channel_factory = channel_factory

    async def stream(
        self,
        model: ModelInfo,
        conversation: Conversation,
        abort: asyncio.Event | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """
        Relay the latest user turn and stream back the reply.

        Args:
            model: Identifiers stamped on the assistant message
            conversation: Turns; only the most recent user turn is sent
            abort: Checked once, before the browser connection is opened

        Yields:
            StreamEvent: Success framing ending in "done", or a single "error"
        """
        prompt = extract_latest_user_prompt(conversation)
        if not prompt:
            logger.warning("Refusing to relay an empty prompt")
            yield self._error_event(model, EmptyPromptError(EMPTY_PROMPT_MESSAGE))
            return

        started = time.monotonic()
        try:
            if abort is not None and abort.is_set():
                raise RunAbortedError("Browser bridge run aborted.")
            reply = await self._relay(prompt)
        except BridgeError as e:
            logger.warning(f"Bridge round trip failed: {type(e).__name__}: {e}")
            yield self._error_event(model, e)
            return
        except Exception as e:
            logger.error(f"Bridge round trip failed unexpectedly: {e}", exc_info=True)
            yield self._error_event(model, wrap_unexpected(e))
            return

        log_with_context(
            logger,
            logging.INFO,
            "Reply scraped",
            context={
                "chars": len(reply.text),
                "model_label": reply.model_label,
                "elapsed_seconds": round(time.monotonic() - started, 2),
            },
        )

        message = build_assistant_message(reply.text, model, reply.model_label)
        yield StreamEvent(type="start", partial=message)
        yield StreamEvent(type="content-start", content_index=0, partial=message)
        yield StreamEvent(
            type="content-delta", content_index=0, delta=reply.text, partial=message
        )
        yield StreamEvent(
            type="content-end", content_index=0, content=reply.text, partial=message
        )
        yield StreamEvent(type="done", reason="stop", message=message)

    async def complete(
        self,
        model: ModelInfo,
        conversation: Conversation,
        abort: asyncio.Event | None = None,
    ) -> AssistantMessage:
        """Drain stream() and return the terminal message (check stop_reason)."""
        final: AssistantMessage | None = None
        async for event in self.stream(model, conversation, abort):
            if event.is_terminal:
                final = event.message if event.type == "done" else event.error
        if final is None:
            raise RuntimeError("Bridge stream ended without a terminal event")
        return final

    async def inspect_tabs(self) -> list[dict]:
        """
        Describe the open tabs without touching any of them.

        Returns one dict per page with index, url, title, platform, and
        whether the bridge would select it.

        Raises:
            ChannelConnectError: If the browser is unreachable
            NoOpenPagesError: If the browser has no pages
        """
        settings = self.settings
        tabs = []

        async with open_channel(settings.cdp_url, self.channel_factory) as channel:
            pages = channel.pages()
            selected = await select_page(pages, settings.url_pattern)
            for index, page in enumerate(pages):
                if page.is_closed():
                    continue
                profile = await detect_platform(page, settings.url_pattern)
                tabs.append(
                    {
                        "index": index,
                        "url": page.url,
                        "title": await page_title(page),
                        "platform": str(profile.platform),
                        "selected": page is selected,
                    }
                )

        return tabs

    async def _relay(self, prompt: str) -> ScrapedReply:
        settings = self.settings
        timeout = settings.timeout_seconds

        async with open_channel(settings.cdp_url, self.channel_factory) as channel:
            page = await select_page(channel.pages(), settings.url_pattern)
            profile = await detect_platform(page, settings.url_pattern)
            strategy = resolve_strategy(profile)
            logger.info(f"Relaying prompt to {profile.platform} tab {page.url}")

            model_label = await read_model_label(page, strategy.model_label)
            baseline = await count_response_blocks(page, strategy.response_block)

            await inject_prompt(page, strategy.input, prompt, timeout)
            await wait_for_response_start(page, strategy.response_block, baseline, timeout)
            await wait_for_completion(
                page, strategy.stop_control, strategy.send_control, timeout
            )
            text = await extract_reply_text(page, strategy.response_block)

        return ScrapedReply(text=text, model_label=model_label)

    @staticmethod
    def _error_event(model: ModelInfo, error: BridgeError) -> StreamEvent:
        if isinstance(error, EmptyPromptError):
            text = str(error)
        else:
            text = f"{ERROR_PREFIX}{error}"
        message = build_assistant_message(text, model, stop_reason="error")
        return StreamEvent(type="error", reason="error", error=message)
