"""
Browser bridge module for webchat-bridge.

This module provides the complete bridge infrastructure including:
- BrowserBridge: streaming provider backed by an open chat tab
- Conversation and stream event models
- Locator rules and platform profiles
- Provider registry

Example:
    >>> from webchat_bridge.bridge import (
    ...     Conversation, Message, ModelInfo, ProviderRegistry, register_browser_bridge,
    ... )
    >>>
    >>> register_browser_bridge()
    >>> bridge = ProviderRegistry.get("browser-universal")
    >>> conversation = Conversation(messages=[Message(role="user", content="hello")])
    >>> message = await bridge.complete(ModelInfo(id="chat-tab"), conversation)
    >>> message.text
    'Hello! How can I help you today?'
"""

# Models
from .models import (
    BRIDGE_API,
    BRIDGE_PROVIDER,
    AssistantMessage,
    ContentPart,
    Conversation,
    Message,
    ModelInfo,
    StreamEvent,
)

# Locator rules
from .locators import (
    GENERIC_RULES,
    PLATFORM_PROFILES,
    LocatorRuleSet,
    PlatformId,
    PlatformProfile,
    resolve_strategy,
)

# Provider and registry
from .stream import BrowserBridge
from .registry import ProviderRegistry, StreamProvider, register_browser_bridge

__all__ = [
    # Constants
    "BRIDGE_API",
    "BRIDGE_PROVIDER",
    # Data classes
    "AssistantMessage",
    "ContentPart",
    "Conversation",
    "Message",
    "ModelInfo",
    "StreamEvent",
    # Locators
    "GENERIC_RULES",
    "PLATFORM_PROFILES",
    "LocatorRuleSet",
    "PlatformId",
    "PlatformProfile",
    "resolve_strategy",
    # Provider
    "BrowserBridge",
    "ProviderRegistry",
    "StreamProvider",
    "register_browser_bridge",
]
