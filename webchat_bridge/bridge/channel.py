"""
Remote-control channel to an already-running browser.

The channel is a Playwright connection over the Chrome DevTools Protocol.
It is acquired fresh for each bridge call and released when the call ends,
whatever the outcome, through the open_channel() async context manager.
Releasing disconnects from the browser; the user's browser and its tabs
stay open.

Launching a browser is not this module's job: start Chrome with
--remote-debugging-port=9222 yourself. probe_endpoint() tells whether one
is listening.

Example:
    >>> async with open_channel("http://127.0.0.1:9222") as channel:
    ...     for page in channel.pages():
    ...         print(page.url)
"""

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

import httpx
from playwright.async_api import Browser, Page, Playwright, async_playwright

from webchat_bridge.exceptions import ChannelConnectError

logger = logging.getLogger(__name__)

# Timeout for DevTools HTTP discovery requests (seconds)
PROBE_TIMEOUT = 5.0


class BrowserChannel:
    """
    Playwright CDP connection to a running browser.

    Attributes:
        endpoint: DevTools endpoint (http(s) discovery URL or ws(s) URL)
    """

    def __init__(self, endpoint: str):
        self.endpoint = endpoint
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None

    @property
    def connected(self) -> bool:
        return self._browser is not None

    async def connect(self) -> None:
        """
        Connect over CDP.

        Raises:
            ChannelConnectError: If Playwright cannot start or the endpoint refuses
        """
        logger.debug(f"Connecting to browser at {self.endpoint}")
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.connect_over_cdp(
                self.endpoint
            )
        except Exception as e:
            raise ChannelConnectError(
                f"Cannot connect to browser at {self.endpoint}: {e}"
            ) from e
        logger.info(f"Connected to browser at {self.endpoint}")

    def pages(self) -> list[Page]:
        """Every page of every browser context, in context order."""
        if self._browser is None:
            return []
        return [page for context in self._browser.contexts for page in context.pages]

    async def close(self) -> None:
        """
        Disconnect and stop the Playwright driver.

        Safe to call when connect() failed part-way or never ran. Errors are
        logged, not raised, so they cannot mask the pipeline's own outcome.
        """
        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as e:
                logger.warning(f"Failed to disconnect from {self.endpoint}: {e}")
            self._browser = None

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.warning(f"Failed to stop Playwright driver: {e}")
            self._playwright = None

        logger.debug(f"Channel to {self.endpoint} released")


ChannelFactory = Callable[[str], BrowserChannel]


@asynccontextmanager
async def open_channel(
    endpoint: str, factory: ChannelFactory = BrowserChannel
) -> AsyncIterator[BrowserChannel]:
    """
    Connect for the duration of the block, then always release.

    close() runs even when connect() raises, so a half-started driver is
    never leaked.

    Raises:
        ChannelConnectError: If the connection cannot be established
    """
    channel = factory(endpoint)
    try:
        await channel.connect()
        yield channel
    finally:
        await channel.close()


def _http_base(cdp_url: str) -> str:
    if cdp_url.startswith("ws://"):
        cdp_url = "http://" + cdp_url[len("ws://") :]
    elif cdp_url.startswith("wss://"):
        cdp_url = "https://" + cdp_url[len("wss://") :]
    # A ws URL points at /devtools/browser/<id>; discovery lives at the root
    host_end = cdp_url.find("/", cdp_url.find("//") + 2)
    return cdp_url if host_end == -1 else cdp_url[:host_end]


async def probe_endpoint(cdp_url: str, timeout: float = PROBE_TIMEOUT) -> dict | None:
    """
    Read the DevTools version document.

    Returns:
        dict | None: Parsed /json/version (Browser, Protocol-Version,
            webSocketDebuggerUrl, ...) or None if nothing answers

    Example:
        >>> info = await probe_endpoint("http://127.0.0.1:9222")
        >>> info["Browser"]
        'Chrome/131.0.6778.86'
    """
    url = f"{_http_base(cdp_url)}/json/version"
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.get(url)
    except httpx.HTTPError as e:
        logger.debug(f"DevTools endpoint {url} unreachable: {e}")
        return None

    if response.status_code != 200:
        logger.debug(f"DevTools endpoint {url} answered HTTP {response.status_code}")
        return None

    try:
        return response.json()
    except ValueError as e:
        logger.debug(f"DevTools endpoint {url} returned invalid JSON: {e}")
        return None


async def list_targets(cdp_url: str, timeout: float = PROBE_TIMEOUT) -> list[dict]:
    """
    List DevTools targets (tabs, workers, extensions) without attaching.

    Returns an empty list if the endpoint is unreachable.
    """
    url = f"{_http_base(cdp_url)}/json/list"
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.get(url)
            response.raise_for_status()
            targets = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.debug(f"Could not list DevTools targets at {url}: {e}")
        return []

    return [target for target in targets if isinstance(target, dict)]
