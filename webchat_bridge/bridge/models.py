"""
Conversation, assistant message, and stream event models for webchat-bridge.

The bridge consumes a Conversation and produces the event shapes a
token-streaming model provider would, so callers written against such a
provider can consume a browser tab unchanged.

Key components:
- Conversation / Message / ContentPart: inbound turns
- ModelInfo: identifiers the caller addresses the bridge with
- AssistantMessage / Usage / Cost: outbound message snapshot
- StreamEvent: tagged variant (start, content-start, content-delta,
  content-end, done, error)
- extract_latest_user_prompt / build_assistant_message helpers

Example:
    >>> conversation = Conversation(messages=[Message(role="user", content="hello")])
    >>> extract_latest_user_prompt(conversation)
    'hello'
    >>> message = build_assistant_message("hi there", ModelInfo(id="chat-tab"))
    >>> message.usage.total_tokens
    0
"""

from dataclasses import asdict, dataclass, field
from typing import Literal

from webchat_bridge.utils.time import epoch_millis

BRIDGE_API = "browser-universal"
BRIDGE_PROVIDER = "webchat-bridge"

StopReason = Literal["stop", "error"]
EventType = Literal[
    "start", "content-start", "content-delta", "content-end", "done", "error"
]


@dataclass
class ContentPart:
    """
    One typed part of a turn's content.

    Only parts with type "text" contribute to the prompt; images and other
    rich parts are carried but ignored by the bridge.
    """

    type: str
    text: str | None = None
    data: str | None = None
    mime_type: str | None = None


@dataclass
class Message:
    """
    A role-tagged conversation turn.

    Attributes:
        role: "user", "assistant", "system", or "tool"
        content: Plain text or a sequence of typed content parts
    """

    role: str
    content: str | list[ContentPart]


@dataclass
class Conversation:
    """Ordered conversation turns plus an optional system prompt (unused by browser tabs)."""

    messages: list[Message] = field(default_factory=list)
    system_prompt: str | None = None


@dataclass(frozen=True)
class ModelInfo:
    """
    Identifiers a caller addresses the bridge with.

    Attributes:
        id: Model id reported when the page shows no model label
        api: API family (always the bridge API for this provider)
        provider: Provider name stamped on every assistant message
    """

    id: str
    api: str = BRIDGE_API
    provider: str = BRIDGE_PROVIDER


@dataclass
class Cost:
    """Cost breakdown in USD. Web chat UIs expose no accounting, so always zero."""

    input: float = 0.0
    output: float = 0.0
    cache_read: float = 0.0
    cache_write: float = 0.0
    total: float = 0.0


@dataclass
class Usage:
    """Token counters. Always zero for scraped replies."""

    input: int = 0
    output: int = 0
    cache_read: int = 0
    cache_write: int = 0
    total_tokens: int = 0
    cost: Cost = field(default_factory=Cost)


@dataclass
class TextContent:
    type: Literal["text"] = "text"
    text: str = ""


@dataclass
class AssistantMessage:
    """
    Snapshot of the assistant reply carried by every stream event.

    Attributes:
        role: Always "assistant"
        content: Text parts (the bridge produces exactly one)
        api: API family from ModelInfo
        provider: Provider from ModelInfo
        model: Detected model label, or ModelInfo.id when none was found
        usage: Zeroed counters
        stop_reason: "stop" on success, "error" on failure
        timestamp: Epoch milliseconds when the message was built
    """

    content: list[TextContent]
    api: str
    provider: str
    model: str
    usage: Usage = field(default_factory=Usage)
    stop_reason: StopReason = "stop"
    timestamp: int = 0
    role: Literal["assistant"] = "assistant"

    @property
    def text(self) -> str:
        """Concatenated text of all content parts."""
        return "".join(part.text for part in self.content)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class StreamEvent:
    """
    One event of an assistant message stream.

    Which optional fields are set depends on type:
        start, content-start: partial
        content-delta: partial, content_index, delta
        content-end: partial, content_index, content
        done: message, reason="stop"
        error: error, reason="error"
    """

    type: EventType
    partial: AssistantMessage | None = None
    message: AssistantMessage | None = None
    error: AssistantMessage | None = None
    content_index: int | None = None
    delta: str | None = None
    content: str | None = None
    reason: StopReason | None = None

    @property
    def is_terminal(self) -> bool:
        return self.type in ("done", "error")

    def to_dict(self) -> dict:
        return {key: value for key, value in asdict(self).items() if value is not None}


@dataclass
class ScrapedReply:
    """Reply text read from the page plus the model label shown there, if any."""

    text: str
    model_label: str | None = None


def extract_latest_user_prompt(conversation: Conversation) -> str:
    """
    Return the text of the most recent user turn.

    String content is trimmed; part sequences contribute their text parts,
    newline-joined in order, then trimmed. Earlier user turns are never
    consulted: a latest turn without text yields "".

    Example:
        >>> conversation = Conversation(messages=[
        ...     Message(role="user", content="first"),
        ...     Message(role="assistant", content="ok"),
        ...     Message(role="user", content=[
        ...         ContentPart(type="text", text="compare"),
        ...         ContentPart(type="image", data="..."),
        ...         ContentPart(type="text", text="these "),
        ...     ]),
        ... ])
        >>> extract_latest_user_prompt(conversation)
        'compare\\nthese'
    """
    for message in reversed(conversation.messages):
        if message.role != "user":
            continue
        if isinstance(message.content, str):
            return message.content.strip()
        texts = [
            part.text
            for part in message.content
            if part.type == "text" and part.text is not None
        ]
        return "\n".join(texts).strip()
    return ""


def build_assistant_message(
    text: str,
    model: ModelInfo,
    detected_model: str | None = None,
    stop_reason: StopReason = "stop",
) -> AssistantMessage:
    """
    Build an assistant message snapshot with zeroed usage.

    Args:
        text: Reply text (or diagnostic text for errors)
        model: Caller's model identifiers
        detected_model: Model label read from the page; wins over model.id
        stop_reason: "stop" or "error"
    """
    resolved_model = (detected_model or "").strip() or model.id
    return AssistantMessage(
        content=[TextContent(text=text)],
        api=model.api,
        provider=model.provider,
        model=resolved_model,
        usage=Usage(),
        stop_reason=stop_reason,
        timestamp=epoch_millis(),
    )
