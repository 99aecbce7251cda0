"""
Tests for bridge.locators module.

Tests cover:
- merge_rules ordering and de-duplication
- resolve_strategy for known and unknown platforms
- Built-in profile registry shape
"""

from webchat_bridge.bridge.locators import (
    CATEGORIES,
    GENERIC_RULES,
    PLATFORM_PROFILES,
    UNKNOWN_PROFILE,
    LocatorRuleSet,
    PlatformId,
    PlatformProfile,
    merge_rules,
    resolve_strategy,
)


def profile_for(platform):
    return next(p for p in PLATFORM_PROFILES if p.platform == platform)


class TestMergeRules:
    """Test suite for merge_rules()."""

    def test_overrides_first_duplicates_dropped(self):
        assert merge_rules(("a", "b"), ("b", "c", "a")) == ("a", "b", "c")

    def test_empty_overrides_keep_generic_order(self):
        assert merge_rules((), ("x", "y")) == ("x", "y")

    def test_both_empty(self):
        assert merge_rules((), ()) == ()

    def test_duplicate_within_overrides(self):
        assert merge_rules(("a", "a", "b"), ("c",)) == ("a", "b", "c")


class TestResolveStrategy:
    """Test suite for resolve_strategy()."""

    def test_unknown_profile_gets_generic_rules(self):
        strategy = resolve_strategy(UNKNOWN_PROFILE)

        for category in CATEGORIES:
            assert getattr(strategy, category) == getattr(GENERIC_RULES, category)
        assert strategy.fingerprint == ()

    def test_profile_overrides_come_first(self):
        profile = profile_for(PlatformId.CLAUDE)
        strategy = resolve_strategy(profile)

        assert strategy.input[:2] == profile.overrides.input
        assert strategy.response_block[0] == 'div[data-testid="chat-messages"]'

    def test_shared_rule_appears_once(self):
        strategy = resolve_strategy(profile_for(PlatformId.CHATGPT))

        assert strategy.response_block.count('[data-message-author-role="assistant"]') == 1
        assert strategy.response_block[0] == '[data-message-author-role="assistant"]'

    def test_every_category_non_empty_for_known_platforms(self):
        for profile in PLATFORM_PROFILES:
            strategy = resolve_strategy(profile)
            for category in CATEGORIES:
                assert getattr(strategy, category), (profile.platform, category)

    def test_category_missing_from_overrides_falls_back(self):
        profile = PlatformProfile(
            platform=PlatformId.UNKNOWN,
            overrides=LocatorRuleSet(input=("#custom-input",)),
        )
        strategy = resolve_strategy(profile)

        assert strategy.input[0] == "#custom-input"
        assert strategy.stop_control == GENERIC_RULES.stop_control


class TestProfiles:
    """Test suite for the built-in profile registry."""

    def test_registry_order(self):
        platforms = [profile.platform for profile in PLATFORM_PROFILES]
        assert platforms == [PlatformId.CHATGPT, PlatformId.CLAUDE, PlatformId.GEMINI]

    def test_every_known_profile_has_fingerprint(self):
        for profile in PLATFORM_PROFILES:
            assert profile.overrides.fingerprint

    def test_platform_id_is_string(self):
        assert str(PlatformId.CHATGPT) == "chatgpt"
