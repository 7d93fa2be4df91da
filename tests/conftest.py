"""Pytest configuration and shared fixtures for the Quote Harvester test suite.

Guarantees:
- No external network requests (Playwright is mocked, quote pages are faked)
- No real waiting (settle and politeness delays are zeroed or recorded)
- Isolated state (config singleton cleared, files under tmp_path)
"""

from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
from pytest_mock import MockerFixture

from config.settings import GlobalConfig
from quote_harvester.exceptions import LocatorNotFoundError, NavigationError


@pytest.fixture
def mock_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> GlobalConfig:
    """Provide isolated GlobalConfig with safe test defaults.

    Clears the lru_cache singleton before and after, and points every path
    at tmp_path.
    """
    from config.settings import get_config

    get_config.cache_clear()

    log_dir = tmp_path / "logs"
    log_dir.mkdir()

    test_env = {
        "APP_NAME": "QuoteHarvester-Test",
        "ENVIRONMENT": "test",
        "DEBUG": "false",
        "HEADLESS": "true",
        "LOG_LEVEL": "DEBUG",
        "LOG_DIR": str(log_dir),
        "LOG_ROTATION": "1 day",
        "LOG_RETENTION": "1 day",
        "SYMBOLS_PATH": str(tmp_path / "stocks_list.csv"),
        "OUTPUT_PATH": str(tmp_path / "output" / "stock_prices_output.xlsx"),
        "SETTLE_DELAY_SEC": "0",
        "PROBE_TIMEOUT_MS": "50",
        "POLITENESS_DELAY_SEC": "0",
        "NAVIGATION_TIMEOUT_MS": "5000",
    }

    for key, value in test_env.items():
        monkeypatch.setenv(key, value)

    config = get_config()

    yield config

    get_config.cache_clear()


class FakeQuoteSession:
    """In-memory stand-in for a browser session.

    ``pages`` maps a URL to ``{locator: text}``; a text value that is an
    Exception instance is raised instead of returned. URLs listed in
    ``broken_urls`` fail to navigate. Every navigation and query is recorded.
    """

    def __init__(
        self,
        pages: dict[str, dict[str, Any]] | None = None,
        broken_urls: set[str] | None = None,
    ) -> None:
        self.pages = pages or {}
        self.broken_urls = broken_urls or set()
        self.current_url: str | None = None
        self.visits: list[str] = []
        self.queries: list[tuple[str, str]] = []

    async def navigate(self, url: str) -> None:
        self.visits.append(url)
        if url in self.broken_urls:
            self.current_url = None
            raise NavigationError(url=url, reason="HTTP 403", status_code=403)
        self.current_url = url

    async def query_text(self, locator: str, timeout_ms: int) -> str:
        self.queries.append((self.current_url or "", locator))
        elements = self.pages.get(self.current_url or "", {})
        if locator not in elements:
            raise LocatorNotFoundError(locator, self.current_url or "", timeout_ms)
        value = elements[locator]
        if isinstance(value, Exception):
            raise value
        return value


@pytest.fixture
def fake_session_factory() -> Callable[..., FakeQuoteSession]:
    """Factory fixture building FakeQuoteSession instances.

    Example:
        def test_x(fake_session_factory):
            session = fake_session_factory(pages={url: {"#quoteLtp": "3,450.10"}})
    """

    def _create(
        pages: dict[str, dict[str, Any]] | None = None,
        broken_urls: set[str] | None = None,
    ) -> FakeQuoteSession:
        return FakeQuoteSession(pages=pages, broken_urls=broken_urls)

    return _create


@pytest.fixture
def recording_sleep() -> AsyncMock:
    """Awaitable sleep that returns immediately and records its durations."""
    return AsyncMock(return_value=None)


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Clock frozen at 2024-03-15 09:30:00."""
    return lambda: datetime(2024, 3, 15, 9, 30, 0)


def create_playwright_mock() -> tuple[MagicMock, MagicMock, MagicMock, MagicMock]:
    """Create a Playwright mock chain for the async_playwright().start() pattern.

    Returns:
        Tuple of (async_playwright_instance, playwright_mock, browser_mock, context_mock)
    """
    page_mock = MagicMock()
    page_mock.url = "about:blank"
    page_mock.goto = AsyncMock(return_value=MagicMock(status=200))
    page_mock.wait_for_selector = AsyncMock()
    page_mock.close = AsyncMock()

    context_mock = MagicMock()
    context_mock.add_init_script = AsyncMock()
    context_mock.new_page = AsyncMock(return_value=page_mock)
    context_mock.close = AsyncMock()

    browser_mock = MagicMock()
    browser_mock.new_context = AsyncMock(return_value=context_mock)
    browser_mock.close = AsyncMock()

    playwright_mock = MagicMock()
    playwright_mock.chromium.launch = AsyncMock(return_value=browser_mock)
    playwright_mock.stop = AsyncMock()

    async_playwright_instance = MagicMock()
    async_playwright_instance.start = AsyncMock(return_value=playwright_mock)

    return async_playwright_instance, playwright_mock, browser_mock, context_mock


@pytest.fixture
def playwright_chain(mocker: MockerFixture) -> tuple[MagicMock, MagicMock, MagicMock]:
    """Patch async_playwright and return (playwright, browser, context) mocks."""
    async_pw, pw_mock, browser_mock, context_mock = create_playwright_mock()
    mocker.patch("quote_harvester.browser.async_playwright", return_value=async_pw)
    return pw_mock, browser_mock, context_mock


@pytest.fixture
def session_factory_spy() -> tuple[Callable[..., Any], dict[str, int]]:
    """Session factory for QuoteScraper that counts acquisitions and releases.

    The yielded session is whatever is stored under ``counts["session"]``
    (set by the test before running).
    """
    counts: dict[str, Any] = {"acquired": 0, "released": 0, "session": None}

    @asynccontextmanager
    async def _factory(config: GlobalConfig):
        counts["acquired"] += 1
        try:
            yield counts["session"]
        finally:
            counts["released"] += 1

    return _factory, counts


def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests requiring full stack",
    )
