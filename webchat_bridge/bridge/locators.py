"""
Locator rules, platform profiles, and the strategy resolver.

Locator rules are CSS selectors (Playwright also accepts its :has() and
text= extensions here) grouped into categories. The generic rule set works
on most chat UIs; each platform profile lists the rules that work on that
platform and they are tried first.

Key components:
- LocatorRuleSet: category -> ordered selectors
- PlatformId: closed enumeration of known platforms plus UNKNOWN
- PlatformProfile: URL/title hints plus partial rule overrides
- PLATFORM_PROFILES / UNKNOWN_PROFILE: process-wide, read-only registry
- resolve_strategy: merge a profile's overrides over the generic rules

Platforms are data, not subclasses: detection (detector.py) and every
pipeline stage work off a single resolved rule table.
"""

import re
from dataclasses import dataclass, field, fields
from enum import StrEnum


@dataclass(frozen=True)
class LocatorRuleSet:
    """
    Ordered locator rules per category. Order is priority: first match wins.

    Attributes:
        input: Prompt input control
        stop_control: Busy indicator shown while generating
        send_control: Send button shown while idle
        response_block: One element per assistant reply, in document order
        model_label: Element whose text names the active model
        fingerprint: Rules that only confirm platform identity
    """

    input: tuple[str, ...] = ()
    stop_control: tuple[str, ...] = ()
    send_control: tuple[str, ...] = ()
    response_block: tuple[str, ...] = ()
    model_label: tuple[str, ...] = ()
    fingerprint: tuple[str, ...] = ()


CATEGORIES = tuple(f.name for f in fields(LocatorRuleSet))


class PlatformId(StrEnum):
    CHATGPT = "chatgpt"
    CLAUDE = "claude"
    GEMINI = "gemini"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class PlatformProfile:
    """
    Identity and locator overrides of one chat platform.

    Attributes:
        platform: Platform identity
        url_hints: Patterns tested against the page URL and title
        overrides: Rules tried before the generic ones, per category
    """

    platform: PlatformId
    url_hints: tuple[re.Pattern[str], ...] = ()
    overrides: LocatorRuleSet = field(default_factory=LocatorRuleSet)


GENERIC_RULES = LocatorRuleSet(
    input=(
        "#prompt-textarea",
        'textarea[placeholder*="Message"]',
        'textarea[placeholder*="Send"]',
        "textarea",
        'div[contenteditable="true"][role="textbox"]',
        'div[role="textbox"][contenteditable="true"]',
        '[contenteditable="true"]',
    ),
    stop_control=(
        'button[aria-label*="Stop"]',
        'button[title*="Stop"]',
        'button:has(svg[aria-label*="Stop"])',
        'button:has(svg[data-icon*="stop"])',
        'button:has(svg[data-testid*="stop"])',
    ),
    send_control=(
        'button[aria-label*="Send"]',
        'button[title*="Send"]',
        'button[data-testid*="send"]',
        'button:has(svg[aria-label*="Send"])',
        'button:has(svg[data-icon*="send"])',
    ),
    response_block=(
        '[data-message-author-role="assistant"]',
        ".markdown",
        ".prose",
        "article",
    ),
    model_label=(
        'button[data-testid*="model"]',
        'button[aria-haspopup="listbox"]',
        '[data-testid*="model"]',
        'div[role="button"][aria-haspopup="listbox"]',
    ),
)

PLATFORM_PROFILES: tuple[PlatformProfile, ...] = (
    PlatformProfile(
        platform=PlatformId.CHATGPT,
        url_hints=(
            re.compile(r"chatgpt\.com", re.IGNORECASE),
            re.compile(r"chat\.openai\.com", re.IGNORECASE),
        ),
        overrides=LocatorRuleSet(
            input=(
                "textarea#prompt-textarea",
                'div[contenteditable="true"][data-testid="prompt-textarea"]',
            ),
            response_block=(
                '[data-message-author-role="assistant"]',
                ".markdown",
                ".prose",
            ),
            stop_control=('button[aria-label*="Stop"]', 'button[data-testid*="stop"]'),
            send_control=('button[aria-label*="Send"]', 'button[data-testid*="send"]'),
            model_label=(
                'button[data-testid="model-switcher"]',
                'button[aria-label*="Model"]',
                'button[aria-haspopup="listbox"]',
            ),
            fingerprint=('[data-message-author-role="assistant"]', "#prompt-textarea"),
        ),
    ),
    PlatformProfile(
        platform=PlatformId.CLAUDE,
        url_hints=(re.compile(r"claude\.ai", re.IGNORECASE),),
        overrides=LocatorRuleSet(
            input=('div[contenteditable="true"][role="textbox"]', "textarea"),
            response_block=('div[data-testid="chat-messages"]', ".prose", "article"),
            stop_control=(
                'button[aria-label*="Stop"]',
                'button:has(svg[data-icon*="stop"])',
            ),
            send_control=('button[aria-label*="Send"]', 'button[type="submit"]'),
            model_label=(
                'button[data-testid*="model"]',
                'button[aria-label*="Model"]',
                'div[role="button"][aria-haspopup="listbox"]',
            ),
            fingerprint=('[data-testid="chat-messages"]', 'button[aria-label*="Model"]'),
        ),
    ),
    PlatformProfile(
        platform=PlatformId.GEMINI,
        url_hints=(
            re.compile(r"gemini\.google\.com", re.IGNORECASE),
            re.compile(r"bard\.google\.com", re.IGNORECASE),
        ),
        overrides=LocatorRuleSet(
            input=(
                'textarea[aria-label*="Enter a prompt"]',
                'textarea[placeholder*="Enter"]',
                'rich-textarea div[contenteditable="true"]',
            ),
            response_block=("response-container", ".markdown", ".prose", "article"),
            stop_control=(
                'button[aria-label*="Stop"]',
                'button:has(svg[data-icon*="stop"])',
            ),
            send_control=(
                'button[aria-label*="Send"]',
                'button[aria-label*="Submit"]',
                'button[type="submit"]',
            ),
            model_label=(
                'button[aria-label*="Model"]',
                'button[aria-haspopup="listbox"]',
                '[data-test-id*="model"]',
            ),
            fingerprint=('body:has([data-test-id*="gemini"])', 'div[aria-label*="Gemini"]'),
        ),
    ),
)

UNKNOWN_PROFILE = PlatformProfile(platform=PlatformId.UNKNOWN)


def merge_rules(overrides: tuple[str, ...], generic: tuple[str, ...]) -> tuple[str, ...]:
    """
    Overrides first, then generic rules, exact duplicates dropped.

    The first occurrence of a rule keeps its position; relative order is
    otherwise unchanged.

    Example:
        >>> merge_rules(("a", "b"), ("b", "c", "a"))
        ('a', 'b', 'c')
    """
    return tuple(dict.fromkeys((*overrides, *generic)))


def resolve_strategy(profile: PlatformProfile) -> LocatorRuleSet:
    """
    Merge a profile's overrides over GENERIC_RULES, category by category.

    Every category of the result is non-empty except fingerprint, which
    is empty for UNKNOWN_PROFILE (it never fingerprint-matches).

    Example:
        >>> strategy = resolve_strategy(UNKNOWN_PROFILE)
        >>> strategy.input == GENERIC_RULES.input
        True
        >>> strategy.fingerprint
        ()
    """
    return LocatorRuleSet(
        **{
            category: merge_rules(
                getattr(profile.overrides, category), getattr(GENERIC_RULES, category)
            )
            for category in CATEGORIES
        }
    )
