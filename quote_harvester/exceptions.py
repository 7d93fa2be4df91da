"""Custom exception hierarchy for Quote Harvester.

Each exception carries contextual information (symbol, URL, locator, path)
so failures can be logged with enough detail to diagnose markup changes at
the quote sources or a bad input file.

Most of these never leave the pipeline: locator and navigation failures are
recovered inside the resolver, and an exhausted provider chain becomes an
"Error" price. Only startup failures reach the entry point.
"""

from datetime import UTC, datetime
from pathlib import Path
from typing import Any


class QuoteHarvesterError(Exception):
    """Base exception for all Quote Harvester errors.

    Attributes:
        message: Human-readable error description.
        context: Optional dictionary with additional debugging information.
        timestamp: UTC timestamp when the exception was raised.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        self.message = message
        self.context = context or {}
        self.timestamp = datetime.now(UTC)
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format exception message with context for logging."""
        base = f"[{self.timestamp.isoformat()}] {self.message}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{base} | Context: {context_str}"
        return base


class ConfigValidationError(QuoteHarvesterError):
    """Raised when configuration cannot be loaded or validated."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            message=f"Configuration loading failed: {reason}",
            context={"reason": reason},
        )


class BrowserInitializationError(QuoteHarvesterError):
    """Raised when the browser instance fails to initialize.

    Common causes include missing Playwright browsers or resource constraints.
    """

    def __init__(self, reason: str, browser_type: str = "chromium") -> None:
        super().__init__(
            message=f"Failed to initialize {browser_type} browser: {reason}",
            context={"browser_type": browser_type, "reason": reason},
        )


class NavigationError(QuoteHarvesterError):
    """Raised when page navigation fails.

    Forfeits the current provider; the resolver moves on to the next one.
    """

    def __init__(self, url: str, reason: str, status_code: int | None = None) -> None:
        super().__init__(
            message=f"Navigation to '{url}' failed: {reason}",
            context={"url": url, "reason": reason, "status_code": status_code},
        )


class LocatorNotFoundError(QuoteHarvesterError):
    """Raised when a locator matches nothing within its bounded wait."""

    def __init__(self, locator: str, url: str, timeout_ms: int) -> None:
        super().__init__(
            message=f"Locator '{locator}' matched no element within {timeout_ms}ms",
            context={"locator": locator, "url": url, "timeout_ms": timeout_ms},
        )


class AllProvidersExhaustedError(QuoteHarvesterError):
    """Raised when no provider yields a price for a symbol."""

    def __init__(self, symbol: str, providers: list[str]) -> None:
        super().__init__(
            message=f"No price found for '{symbol}' from any source",
            context={"symbol": symbol, "providers": providers},
        )
        self.symbol = symbol
        self.providers = providers


class SourceReadError(QuoteHarvesterError):
    """Raised when the symbol list is missing or unreadable."""

    def __init__(self, path: Path | str, reason: str) -> None:
        super().__init__(
            message=f"Cannot read stock symbols from '{path}': {reason}",
            context={"path": str(path), "reason": reason},
        )
        self.path = Path(path)


class SinkWriteError(QuoteHarvesterError):
    """Raised when the quote workbook cannot be written."""

    def __init__(self, output_path: Path | str, reason: str) -> None:
        super().__init__(
            message=f"Failed to write quotes to '{output_path}': {reason}",
            context={"output_path": str(output_path), "reason": reason},
        )


class LoggingInitializationError(QuoteHarvesterError):
    """Raised when the logging system fails to initialize.

    Startup-blocking: the application does not run without its logs.
    """

    def __init__(self, log_dir: str, reason: str) -> None:
        super().__init__(
            message=f"Failed to initialize logging at '{log_dir}': {reason}",
            context={"log_dir": log_dir, "reason": reason},
        )
