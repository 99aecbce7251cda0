"""
Platform detection for a selected page.

DOM fingerprints are trusted over URLs: URLs can be ambiguous (redirect
domains, custom hosts) while a platform's DOM structure is specific to it.

Detection order, first match wins:
1. Candidates = profiles whose URL hints match the page URL or title
2. First candidate whose fingerprint rules match the DOM
3. First profile of all profiles whose fingerprint rules match the DOM
4. If the generic URL pattern matches the URL, the first profile whose
   URL hints match the URL
5. UNKNOWN_PROFILE (generic rules only)
"""

import logging
import re

from playwright.async_api import Page

from .dom import any_present
from .locators import PLATFORM_PROFILES, UNKNOWN_PROFILE, PlatformProfile

logger = logging.getLogger(__name__)


def _hints_match(profile: PlatformProfile, *texts: str) -> bool:
    return any(hint.search(text) for hint in profile.url_hints for text in texts)


async def page_title(page: Page) -> str:
    try:
        return await page.title()
    except Exception as e:
        logger.debug(f"Could not read page title: {e}")
        return ""


async def detect_platform(
    page: Page,
    url_pattern: re.Pattern[str],
    profiles: tuple[PlatformProfile, ...] = PLATFORM_PROFILES,
) -> PlatformProfile:
    """
    Identify which chat platform the page is showing.

    Args:
        page: Selected page
        url_pattern: Generic URL pattern from settings
        profiles: Profile registry (the built-in profiles by default)

    Returns:
        PlatformProfile: Detected profile, or UNKNOWN_PROFILE

    Example:
        >>> profile = await detect_platform(page, settings.url_pattern)
        >>> profile.platform
        <PlatformId.CLAUDE: 'claude'>
    """
    url = page.url
    title = await page_title(page)

    candidates = [profile for profile in profiles if _hints_match(profile, url, title)]
    for profile in candidates:
        if await any_present(page, profile.overrides.fingerprint):
            logger.debug(f"Platform {profile.platform} confirmed by URL and DOM")
            return profile

    for profile in profiles:
        if await any_present(page, profile.overrides.fingerprint):
            if candidates:
                logger.info(
                    f"DOM fingerprints as {profile.platform} although URL suggests "
                    f"{candidates[0].platform}; trusting DOM"
                )
            return profile

    if url_pattern.search(url):
        for profile in profiles:
            if _hints_match(profile, url):
                logger.debug(f"Platform {profile.platform} inferred from URL only")
                return profile

    logger.info(f"Unknown chat platform at {url}; using generic locator rules")
    return UNKNOWN_PROFILE
