"""
Tests for bridge.registry module.

Tests cover:
- Registration, lookup, listing, clearing
- Idempotent browser bridge registration
"""

import pytest

from webchat_bridge.bridge.models import BRIDGE_API
from webchat_bridge.bridge.registry import ProviderRegistry, register_browser_bridge
from webchat_bridge.bridge.stream import BrowserBridge
from webchat_bridge.config.schema import BridgeSettings


@pytest.fixture(autouse=True)
def empty_registry():
    ProviderRegistry.clear()
    yield
    ProviderRegistry.clear()


class DummyProvider:
    api = "dummy-api"

    async def stream(self, model, conversation, abort=None):
        yield None


class TestProviderRegistry:
    """Test suite for ProviderRegistry."""

    def test_register_and_get(self):
        provider = DummyProvider()

        ProviderRegistry.register(provider)

        assert ProviderRegistry.get("dummy-api") is provider
        assert ProviderRegistry.is_registered("dummy-api")

    def test_get_unknown(self):
        with pytest.raises(ValueError, match="Unknown provider API: 'nope'"):
            ProviderRegistry.get("nope")

    def test_register_requires_api(self):
        with pytest.raises(AttributeError, match="missing required attribute: api"):
            ProviderRegistry.register(object())

    def test_reregister_replaces(self):
        first, second = DummyProvider(), DummyProvider()

        ProviderRegistry.register(first)
        ProviderRegistry.register(second)

        assert ProviderRegistry.get("dummy-api") is second

    def test_list_providers(self):
        ProviderRegistry.register(DummyProvider())

        assert ProviderRegistry.list_providers() == [
            {"api": "dummy-api", "class_name": "DummyProvider"}
        ]

    def test_clear(self):
        ProviderRegistry.register(DummyProvider())

        ProviderRegistry.clear()

        assert ProviderRegistry.list_providers() == []


class TestRegisterBrowserBridge:
    """Test suite for register_browser_bridge()."""

    def test_registers_under_bridge_api(self):
        provider = register_browser_bridge(BridgeSettings(timeout_seconds=30))

        assert isinstance(provider, BrowserBridge)
        assert ProviderRegistry.get(BRIDGE_API) is provider
        assert provider.settings.timeout_seconds == 30

    def test_second_call_is_noop(self):
        first = register_browser_bridge(BridgeSettings(timeout_seconds=30))
        second = register_browser_bridge(BridgeSettings(timeout_seconds=60))

        assert second is first
        assert ProviderRegistry.get(BRIDGE_API).settings.timeout_seconds == 30
        assert len(ProviderRegistry.list_providers()) == 1
