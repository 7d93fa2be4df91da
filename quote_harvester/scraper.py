"""Batch orchestration over a symbol list.

QuoteScraper owns the browser session for the length of a run and feeds
each symbol through the PriceResolver, one at a time, pausing between
symbols so the quote sources are not hammered.

Every symbol yields exactly one Quote in input order. A failure while
resolving one symbol is recorded as an ``"Error"`` price and the batch
continues; the browser is released however the loop ends.
"""

import asyncio
from contextlib import AbstractAsyncContextManager
from datetime import datetime
from typing import Callable, Sequence

from config.settings import GlobalConfig, get_config
from quote_harvester.browser import open_page_session
from quote_harvester.exceptions import SourceReadError
from quote_harvester.extractor import PriceResolver, QuoteSession, Sleep
from quote_harvester.logger import get_logger
from quote_harvester.sources import SymbolSource
from quote_harvester.validator import Clock, Quote, ResolutionMonitor

log = get_logger(__name__)

SessionFactory = Callable[[GlobalConfig], AbstractAsyncContextManager[QuoteSession]]


class QuoteScraper:
    """Resolves prices for a batch of symbols with a single browser session.

    Attributes:
        config: GlobalConfig supplying delays and browser settings.
        monitor: ResolutionMonitor summarising the run.
        resolver: PriceResolver applied to each symbol.

    Example:
        scraper = QuoteScraper(config)
        quotes = await scraper.run(["TCS", "INFY"])
    """

    def __init__(
        self,
        config: GlobalConfig | None = None,
        resolver: PriceResolver | None = None,
        session_factory: SessionFactory = open_page_session,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = datetime.now,
    ) -> None:
        """Initialize the scraper.

        Args:
            config: Optional GlobalConfig. Uses singleton if not provided.
            resolver: Optional PriceResolver; one sharing ``monitor``,
                ``sleep`` and ``clock`` is built if not provided.
            session_factory: Acquires the browser session for a run.
            sleep: Awaitable sleep used for the politeness delay.
            clock: Source of wall-clock time for fallback quotes.
        """
        self.config = config or get_config()
        self.monitor = ResolutionMonitor()
        self.resolver = resolver or PriceResolver(
            self.config, monitor=self.monitor, sleep=sleep, clock=clock
        )
        if self.resolver.monitor is None:
            self.resolver.monitor = self.monitor
        else:
            self.monitor = self.resolver.monitor
        self._session_factory = session_factory
        self._sleep = sleep
        self._clock = clock

    async def run(self, symbols: Sequence[str]) -> list[Quote]:
        """Resolve a quote for every symbol, in order.

        Args:
            symbols: Tickers to price.

        Returns:
            One Quote per symbol, same order. Empty input returns an empty
            list without launching a browser. Blank symbols are skipped.
        """
        symbols = [symbol for symbol in symbols if symbol.strip()]
        if not symbols:
            log.warning("No symbols to process - browser not started")
            return []

        log.info(
            "Batch started",
            symbol_count=len(symbols),
            politeness_delay_sec=self.config.politeness_delay_sec,
        )

        quotes: list[Quote] = []

        async with self._session_factory(self.config) as session:
            for index, symbol in enumerate(symbols):
                try:
                    quote = await self.resolver.resolve(session, symbol)
                except Exception as exc:
                    log.error(
                        "Error fetching data",
                        symbol=symbol,
                        error_type=type(exc).__name__,
                        error=str(exc),
                    )
                    quote = Quote.error(symbol, self._clock)
                    self.monitor.record_exhausted(symbol)

                quotes.append(quote)
                log.info(
                    "Fetched data",
                    symbol=quote.symbol,
                    price=quote.price,
                    progress=f"{index + 1}/{len(symbols)}",
                )

                if index < len(symbols) - 1:
                    await self._sleep(self.config.politeness_delay_sec)

        log.info(
            "Batch complete",
            total=len(quotes),
            errors=sum(1 for quote in quotes if quote.is_error),
        )
        return quotes

    async def run_from_source(self, source: SymbolSource) -> list[Quote]:
        """Read symbols from ``source`` and run the batch.

        An unreadable source is reported and yields an empty batch; the
        browser is never started in that case.
        """
        try:
            symbols = source.read()
        except SourceReadError as exc:
            log.error(
                "Error reading symbol file - please ensure it exists with stock symbols",
                path=str(exc.path),
                reason=exc.context.get("reason"),
            )
            return []

        return await self.run(symbols)
