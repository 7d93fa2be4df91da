"""Price extraction: the selector probe and the provider fallback resolver.

Resolution for one symbol walks two ordered dimensions:

1. providers, in priority order (primary, then the two fallbacks)
2. within a provider, its candidate locators in declared order

The first locator yielding non-empty text ends the search. A provider whose
page fails to load is abandoned immediately, and a symbol that no provider
can price becomes an ``"Error"`` quote. Nothing raised while resolving one
symbol escapes ``PriceResolver.resolve``.

Design Rationale:
    Page markup at the quote sources is unstable, so the resolver relies on
    breadth (many candidate locators, several sources) rather than retries.
    An element that exists but renders empty is treated exactly like a
    missing element.
"""

import asyncio
from datetime import datetime
from typing import Awaitable, Callable, Protocol, Sequence

from config.settings import GlobalConfig, get_config
from quote_harvester.exceptions import AllProvidersExhaustedError
from quote_harvester.logger import get_logger
from quote_harvester.providers import DEFAULT_PROVIDERS, Provider
from quote_harvester.validator import Clock, FetchOutcome, Quote, ResolutionMonitor

log = get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class QuoteSession(Protocol):
    """The browser surface the resolver needs."""

    async def navigate(self, url: str) -> None: ...

    async def query_text(self, locator: str, timeout_ms: int) -> str: ...


async def probe(session: QuoteSession, locator: str, timeout_ms: int) -> FetchOutcome:
    """Look for ``locator`` on the current page within ``timeout_ms``.

    Args:
        session: Browser session positioned on a quote page.
        locator: CSS selector for the price element.
        timeout_ms: Bounded wait for the element.

    Returns:
        ``found`` with the trimmed text, or ``not_found`` if the element is
        absent, empty, or the query failed in any way.
    """
    try:
        text = await session.query_text(locator, timeout_ms)
    except Exception as exc:
        log.debug(
            "Locator failed",
            locator=locator,
            error_type=type(exc).__name__,
        )
        return FetchOutcome.not_found()

    text = (text or "").strip()
    if not text:
        log.debug("Locator matched empty text", locator=locator)
        return FetchOutcome.not_found()

    return FetchOutcome.found(text)


class PriceResolver:
    """Drives a browser session through the provider chain for one symbol.

    Attributes:
        config: GlobalConfig supplying the settle delay and probe timeout.
        providers: Providers in fallback order.
        monitor: Optional ResolutionMonitor recording which source answered.

    Example:
        resolver = PriceResolver(config)
        async with open_page_session(config) as session:
            quote = await resolver.resolve(session, "TCS")
    """

    def __init__(
        self,
        config: GlobalConfig | None = None,
        providers: Sequence[Provider] = DEFAULT_PROVIDERS,
        monitor: ResolutionMonitor | None = None,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = datetime.now,
    ) -> None:
        self.config = config or get_config()
        self.providers = tuple(providers)
        self.monitor = monitor
        self._sleep = sleep
        self._clock = clock

    async def resolve(self, session: QuoteSession, symbol: str) -> Quote:
        """Resolve a price for ``symbol``.

        Returns:
            A Quote carrying the first price found, or the ``"Error"``
            sentinel when every provider was exhausted or resolution failed.
        """
        try:
            provider, price = await self._resolve_price(session, symbol)
        except AllProvidersExhaustedError as exc:
            log.warning(
                "All sources failed",
                symbol=symbol,
                providers=exc.providers,
            )
            self._record_exhausted(symbol)
            return Quote.error(symbol, self._clock)
        except Exception as exc:
            log.error(
                "Unexpected failure while resolving price",
                symbol=symbol,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            self._record_exhausted(symbol)
            return Quote.error(symbol, self._clock)

        if self.monitor is not None:
            self.monitor.record_resolved(provider.name)

        return Quote.create(symbol, price, self._clock)

    async def _resolve_price(
        self, session: QuoteSession, symbol: str
    ) -> tuple[Provider, str]:
        """Walk the provider chain until one yields a price.

        Raises:
            AllProvidersExhaustedError: If no provider produced a price.
        """
        for position, provider in enumerate(self.providers):
            if position > 0:
                log.info("Falling back", symbol=symbol, provider=provider.name)

            outcome = await self.try_provider(session, provider, symbol)
            if outcome.is_found:
                return provider, outcome.text

        raise AllProvidersExhaustedError(
            symbol=symbol, providers=[p.name for p in self.providers]
        )

    async def try_provider(
        self, session: QuoteSession, provider: Provider, symbol: str
    ) -> FetchOutcome:
        """Load the provider's page for ``symbol`` and probe its locators.

        Returns:
            ``found`` on the first locator with text, ``navigation_error`` if
            the page could not be loaded, otherwise ``not_found``.
        """
        url = provider.build_url(symbol)
        log.info("Fetching quote page", symbol=symbol, provider=provider.name, url=url)

        try:
            await session.navigate(url)
        except Exception as exc:
            log.warning(
                "Provider page failed to load",
                symbol=symbol,
                provider=provider.name,
                error=str(exc),
            )
            return FetchOutcome.navigation_error(str(exc))

        await self._sleep(self.config.settle_delay_sec)

        for locator in provider.locators:
            outcome = await probe(session, locator, self.config.probe_timeout_ms)
            if outcome.is_found:
                log.info(
                    "Price found",
                    symbol=symbol,
                    provider=provider.name,
                    locator=locator,
                    price=outcome.text,
                )
                return outcome

        log.info("No locator matched", symbol=symbol, provider=provider.name)
        return FetchOutcome.not_found()

    def _record_exhausted(self, symbol: str) -> None:
        if self.monitor is not None:
            self.monitor.record_exhausted(symbol)
