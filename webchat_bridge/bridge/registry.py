"""
Provider registry for streaming model providers.

Callers that speak to several model APIs look providers up by API name.
The browser bridge registers itself under "browser-universal", so a caller
addressing that API gets its replies from the user's open chat tab.

Key components:
- StreamProvider: Protocol a registered provider implements
- ProviderRegistry: Process-wide API name -> provider mapping
- register_browser_bridge: One-shot registration of the browser bridge

Example:
    >>> register_browser_bridge(resolve_settings())
    >>> provider = ProviderRegistry.get("browser-universal")
    >>> async for event in provider.stream(ModelInfo(id="chat-tab"), conversation):
    ...     ...
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Protocol

from webchat_bridge.config.schema import BridgeSettings

from .models import BRIDGE_API, Conversation, ModelInfo, StreamEvent
from .stream import BrowserBridge

logger = logging.getLogger(__name__)


class StreamProvider(Protocol):
    """
    Protocol for providers held by the registry.

    Attributes:
        api: API family the provider serves

    Note:
        This is a Protocol (PEP 544): providers don't inherit from it, they
        only need an api attribute and a stream() method of this shape.
    """

    api: str

    def stream(
        self,
        model: ModelInfo,
        conversation: Conversation,
        abort: asyncio.Event | None = None,
    ) -> AsyncIterator[StreamEvent]: ...


class ProviderRegistry:
    """
    Global registry of streaming providers keyed by API name.

    Class attributes:
        _providers: Dictionary mapping API names to provider instances

    Example:
        >>> ProviderRegistry.register(BrowserBridge())
        >>> ProviderRegistry.list_providers()
        [{'api': 'browser-universal', 'class_name': 'BrowserBridge'}]
    """

    _providers: dict[str, StreamProvider] = {}

    @classmethod
    def register(cls, provider: StreamProvider) -> StreamProvider:
        """
        Register a provider under its api attribute.

        Re-registering an API replaces the previous provider with a warning.

        Raises:
            AttributeError: If the provider has no api attribute or stream method
        """
        for attribute in ("api", "stream"):
            if not hasattr(provider, attribute):
                raise AttributeError(
                    f"Provider {type(provider).__name__} missing required attribute: "
                    f"{attribute}"
                )

        if provider.api in cls._providers:
            logger.warning(
                f"Provider for '{provider.api}' already registered. "
                f"Overwriting with {type(provider).__name__}"
            )

        cls._providers[provider.api] = provider
        logger.debug(f"Registered provider: {provider.api} ({type(provider).__name__})")
        return provider

    @classmethod
    def get(cls, api: str) -> StreamProvider:
        """
        Return the provider registered for api.

        Raises:
            ValueError: If no provider serves api
        """
        if api not in cls._providers:
            available = ", ".join(cls._providers.keys()) if cls._providers else "none"
            raise ValueError(f"Unknown provider API: '{api}'. Available: {available}")
        return cls._providers[api]

    @classmethod
    def is_registered(cls, api: str) -> bool:
        return api in cls._providers

    @classmethod
    def list_providers(cls) -> list[dict]:
        """List registered providers as {"api", "class_name"} dicts."""
        return [
            {"api": api, "class_name": type(provider).__name__}
            for api, provider in cls._providers.items()
        ]

    @classmethod
    def clear(cls) -> None:
        """Remove every provider. Intended for tests."""
        cls._providers.clear()


def register_browser_bridge(settings: BridgeSettings | None = None) -> StreamProvider:
    """
    Register a BrowserBridge under "browser-universal".

    Idempotent: if a provider already serves that API, it is returned as is
    and settings are ignored.

    Args:
        settings: Bridge settings (defaults resolved from BridgeSettings())

    Returns:
        StreamProvider: The registered provider
    """
    if ProviderRegistry.is_registered(BRIDGE_API):
        logger.debug("Browser bridge already registered")
        return ProviderRegistry.get(BRIDGE_API)
    return ProviderRegistry.register(BrowserBridge(settings))
