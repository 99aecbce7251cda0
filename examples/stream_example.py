#!/usr/bin/env python3
"""
Example usage of BrowserBridge for webchat-bridge.

This script relays two prompts through the chat tab open in your browser:
once consuming the event stream, once through complete().

Usage:
    # Start Chrome with remote debugging and log in to a chat platform
    google-chrome --remote-debugging-port=9222 https://claude.ai/new

    # Run the example (the focused tab receives the prompts)
    python examples/stream_example.py

Note:
    The prompts are really sent: they show up in your chat history on the
    platform, and count against its usage limits.
"""

import asyncio
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from webchat_bridge.bridge import (
    BRIDGE_API,
    Conversation,
    Message,
    ModelInfo,
    ProviderRegistry,
    register_browser_bridge,
)
from webchat_bridge.bridge.channel import probe_endpoint
from webchat_bridge.config.loader import resolve_settings


async def main():
    """Demonstrate streaming and complete() against a live tab."""
    settings = resolve_settings({"timeout_seconds": 180})

    if await probe_endpoint(settings.cdp_url) is None:
        print(f"Error: no browser answering at {settings.cdp_url}")
        print("Usage: google-chrome --remote-debugging-port=9222")
        sys.exit(1)

    # Example 1: Consume the event stream
    print("=" * 80)
    print("Example 1: Streaming events from the registered provider")
    print("=" * 80)

    register_browser_bridge(settings)
    provider = ProviderRegistry.get(BRIDGE_API)
    model = ModelInfo(id="chat-tab")

    conversation = Conversation(
        messages=[Message(role="user", content="Name three prime numbers greater than 100.")]
    )
    print(f"\nPrompt: {conversation.messages[-1].content}")

    async for event in provider.stream(model, conversation):
        print(f"  event: {event.type}")
        if event.type == "done":
            print(f"\n✓ Reply from {event.message.model}:")
            print(f"  {event.message.text[:200]}")
        elif event.type == "error":
            print(f"\n✗ {event.error.text}")
            sys.exit(1)

    # Example 2: complete() with a follow-up turn
    print("\n" + "=" * 80)
    print("Example 2: complete() sends only the latest user turn")
    print("=" * 80)

    conversation.messages.append(Message(role="assistant", content="101, 103, 107"))
    conversation.messages.append(Message(role="user", content="Which of them is largest?"))

    message = await provider.complete(model, conversation)
    if message.stop_reason == "error":
        print(f"\n✗ {message.text}")
        sys.exit(1)

    print(f"\n✓ Reply from {message.model}:")
    print(f"  {message.text[:200]}")

    # Example 3: Error handling
    print("\n" + "=" * 80)
    print("Example 3: Empty prompt is rejected before the browser is touched")
    print("=" * 80)

    message = await provider.complete(model, Conversation(messages=[Message(role="user", content="  ")]))
    print(f"✓ stop_reason={message.stop_reason}: {message.text}")


if __name__ == "__main__":
    asyncio.run(main())
