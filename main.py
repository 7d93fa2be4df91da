"""Quote Harvester entry point.

Bootstrap and orchestration only; all functional code lives in
/quote_harvester.

Responsibilities:
    1. Load and validate configuration
    2. Initialize logging infrastructure (fail-fast on error)
    3. Run the quote pipeline: read symbols, resolve prices, write workbook
    4. Handle top-level exceptions with graceful shutdown

Individual symbols that cannot be priced, a missing symbol file and a
failed workbook write are all reported but still exit 0.

Usage:
    python main.py
"""

import asyncio
import sys
from typing import NoReturn

from loguru import logger
from pydantic import ValidationError

from config.settings import GlobalConfig, get_config
from quote_harvester.exceptions import (
    ConfigValidationError,
    LoggingInitializationError,
    QuoteHarvesterError,
    SinkWriteError,
)
from quote_harvester.logger import configure_logging
from quote_harvester.reporter import QuoteReportWriter
from quote_harvester.scraper import QuoteScraper
from quote_harvester.sources import symbol_source_for


async def _run_pipeline(config: GlobalConfig) -> int:
    """Execute the quote pipeline.

    Args:
        config: The validated GlobalConfig instance.

    Returns:
        Exit code (0 for a completed run).
    """
    logger.info(
        "Pipeline execution started",
        app_name=config.app_name,
        environment=config.environment,
        symbols_path=str(config.symbols_path),
        output_path=str(config.output_path),
    )

    scraper = QuoteScraper(config)
    quotes = await scraper.run_from_source(symbol_source_for(config.symbols_path))

    if not quotes:
        logger.warning(
            "No stock symbols found - skipping workbook output",
            symbols_path=str(config.symbols_path),
        )
        return 0

    try:
        output_path = QuoteReportWriter(config).write(quotes)
    except SinkWriteError as exc:
        logger.error(
            "Error writing to Excel file",
            output_path=exc.context["output_path"],
            reason=exc.context["reason"],
        )
    else:
        logger.info("Stock price data has been written", output_path=str(output_path))

    logger.info("Resolution summary", **scraper.monitor.get_summary())
    logger.info("Pipeline execution completed")
    return 0


def _handle_fatal_error(exc: Exception) -> NoReturn:
    """Log a fatal error and exit with status 1.

    Args:
        exc: The exception that ended the run.
    """
    if isinstance(exc, QuoteHarvesterError):
        logger.critical(
            "Fatal application error",
            error_type=type(exc).__name__,
            message=exc.message,
            context=exc.context,
        )
        sys.exit(1)

    logger.exception("Unexpected fatal error", error=str(exc))
    sys.exit(1)


def main() -> int:
    """Application entry point.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    try:
        config = get_config()
    except ValidationError as exc:
        # Cannot log yet - print to stderr
        print(f"FATAL: {ConfigValidationError(reason=str(exc))}", file=sys.stderr)
        return 1

    try:
        configure_logging(config)
    except LoggingInitializationError as exc:
        print(f"FATAL: {exc}", file=sys.stderr)
        return 1

    try:
        return asyncio.run(_run_pipeline(config))
    except KeyboardInterrupt:
        logger.warning("Pipeline interrupted by user (Ctrl+C)")
        return 130
    except Exception as exc:
        _handle_fatal_error(exc)


if __name__ == "__main__":
    sys.exit(main())
