"""Browser orchestration module built on Playwright.

This module provides:
- BrowserManager: Chromium lifecycle (launch, context, cleanup) behind an
  async context manager
- PageSession: the navigate/query surface the price resolver drives
- open_page_session: acquisition of a ready PageSession for one run

Design Rationale:
    Quote pages are rendered client-side and some sources turn away obvious
    automation, so the context presents a fixed desktop viewport and
    user-agent and masks the webdriver flag. None of this is visible to the
    resolver, which only sees ``navigate`` and ``query_text``.

    The async context managers guarantee the browser is closed on every exit
    path, including an exception escaping the batch loop.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Self

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    async_playwright,
)
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from config.settings import GlobalConfig, get_config
from quote_harvester.exceptions import (
    BrowserInitializationError,
    LocatorNotFoundError,
    NavigationError,
)
from quote_harvester.logger import get_logger

log = get_logger(__name__)

LAUNCH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-extensions",
    "--disable-web-security",
    "--allow-running-insecure-content",
]

STEALTH_JS = """
Object.defineProperty(navigator, 'webdriver', {
    get: () => undefined,
});
Object.defineProperty(navigator, 'languages', {
    get: () => ['en-IN', 'en-US', 'en'],
});
window.chrome = {
    runtime: {},
};
"""


class BrowserManager:
    """Manages the Playwright browser lifecycle.

    Attributes:
        config: GlobalConfig instance for runtime configuration.
        _playwright: Playwright instance (initialized on context entry).
        _browser: Chromium browser instance.
        _context: BrowserContext with viewport and user-agent applied.

    Example:
        async with BrowserManager.create() as browser:
            page = await browser.new_page()
            await browser.navigate(page, "https://www.bseindia.com/")
    """

    def __init__(self, config: GlobalConfig) -> None:
        """Initialize BrowserManager with configuration.

        Note:
            Do not instantiate directly. Use the ``create()`` class method
            so the browser is always cleaned up.
        """
        self.config = config
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None

    @classmethod
    @asynccontextmanager
    async def create(
        cls, config: GlobalConfig | None = None
    ) -> AsyncGenerator[Self, None]:
        """Create a launched BrowserManager and clean it up on exit.

        Args:
            config: Optional GlobalConfig. Uses singleton if not provided.

        Yields:
            Initialized BrowserManager instance.

        Raises:
            BrowserInitializationError: If browser launch fails.
        """
        if config is None:
            config = get_config()

        instance = cls(config)
        try:
            await instance._initialize()
            yield instance
        finally:
            await instance._cleanup()

    async def _initialize(self) -> None:
        """Start Playwright, launch Chromium and open the browser context.

        Raises:
            BrowserInitializationError: If any initialization step fails.
        """
        log.info("Initializing browser", headless=self.config.headless)

        try:
            self._playwright = await async_playwright().start()

            self._browser = await self._playwright.chromium.launch(
                headless=self.config.headless,
                args=LAUNCH_ARGS,
            )

            self._context = await self._browser.new_context(
                viewport={
                    "width": self.config.viewport_width,
                    "height": self.config.viewport_height,
                },
                user_agent=self.config.user_agent,
                locale="en-IN",
                java_script_enabled=True,
                bypass_csp=True,
                ignore_https_errors=True,
            )
            await self._context.add_init_script(STEALTH_JS)

            log.info(
                "Browser initialized successfully",
                user_agent=self.config.user_agent[:50] + "...",
            )

        except Exception as exc:
            await self._cleanup()
            raise BrowserInitializationError(
                reason=str(exc), browser_type="chromium"
            ) from exc

    async def new_page(self) -> Page:
        """Create a new page within the current browser context.

        Raises:
            BrowserInitializationError: If context is not initialized.
        """
        if self._context is None:
            raise BrowserInitializationError(
                reason="Browser context not initialized", browser_type="chromium"
            )

        page = await self._context.new_page()
        page.set_default_navigation_timeout(self.config.navigation_timeout_ms)

        log.debug("New page created")
        return page

    async def navigate(
        self,
        page: Page,
        url: str,
        wait_until: str = "domcontentloaded",
    ) -> None:
        """Navigate to ``url``, treating HTTP errors as failures.

        Args:
            page: Playwright Page instance.
            url: Target URL to navigate to.
            wait_until: Navigation wait condition (load, domcontentloaded, networkidle).

        Raises:
            NavigationError: If navigation fails, times out or returns 4xx/5xx.
        """
        log.debug("Navigating to URL", url=url, wait_until=wait_until)

        try:
            response = await page.goto(url, wait_until=wait_until)
        except (PlaywrightTimeoutError, TimeoutError) as exc:
            raise NavigationError(
                url=url,
                reason=f"Navigation timeout after {self.config.navigation_timeout_ms}ms",
            ) from exc
        except Exception as exc:
            raise NavigationError(url=url, reason=str(exc)) from exc

        if response is None:
            raise NavigationError(url=url, reason="No response received")

        if response.status >= 400:
            raise NavigationError(
                url=url,
                reason=f"HTTP {response.status}",
                status_code=response.status,
            )

        log.debug("Navigation successful", url=url, status_code=response.status)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator["PageSession", None]:
        """Open a page and wrap it as a PageSession, closing it on exit."""
        page = await self.new_page()
        try:
            yield PageSession(self, page)
        finally:
            try:
                await page.close()
            except Exception as exc:
                log.warning("Error closing page", error=str(exc))

    async def _cleanup(self) -> None:
        """Clean up browser resources in reverse initialization order."""
        if self._context is not None:
            try:
                await self._context.close()
            except Exception as exc:
                log.warning("Error closing context", error=str(exc))
            self._context = None

        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as exc:
                log.warning("Error closing browser", error=str(exc))
            self._browser = None

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as exc:
                log.warning("Error stopping playwright", error=str(exc))
            self._playwright = None

        log.info("Browser resources cleaned up")


class PageSession:
    """A single browser tab the resolver navigates and queries.

    Attributes:
        browser: Owning BrowserManager, used for navigation.
        page: The Playwright page all queries run against.
    """

    def __init__(self, browser: BrowserManager, page: Page) -> None:
        self.browser = browser
        self.page = page

    async def navigate(self, url: str) -> None:
        """Load ``url`` in the session's page.

        Raises:
            NavigationError: If the page cannot be loaded.
        """
        await self.browser.navigate(self.page, url)

    async def query_text(self, locator: str, timeout_ms: int) -> str:
        """Wait up to ``timeout_ms`` for ``locator`` and return its text.

        Args:
            locator: CSS selector for the element.
            timeout_ms: Bounded wait before giving up.

        Returns:
            The element's inner text with surrounding whitespace removed
            (may be empty).

        Raises:
            LocatorNotFoundError: If nothing matched within the timeout.
        """
        try:
            handle = await self.page.wait_for_selector(
                locator, timeout=timeout_ms, state="attached"
            )
        except (PlaywrightTimeoutError, TimeoutError) as exc:
            raise LocatorNotFoundError(locator, self.page.url, timeout_ms) from exc

        if handle is None:
            raise LocatorNotFoundError(locator, self.page.url, timeout_ms)

        text = await handle.inner_text()
        return text.strip()


@asynccontextmanager
async def open_page_session(
    config: GlobalConfig | None = None,
) -> AsyncGenerator[PageSession, None]:
    """Launch a browser and yield a PageSession for the whole run.

    Both the page and the browser are released when the block exits.

    Example:
        async with open_page_session(config) as session:
            await session.navigate(url)
            text = await session.query_text("#quoteLtp", 15000)
    """
    async with BrowserManager.create(config) as browser:
        async with browser.session() as session:
            yield session
