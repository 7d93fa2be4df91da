"""Quote and fetch outcome models, plus run-level resolution monitoring.

This module implements:
- Quote: the validated (symbol, price, timestamp) record written to the sheet
- FetchOutcome: the tagged result of one locator probe or provider attempt
- ResolutionMonitor: counts which source answered for each symbol

Prices are kept as the literal display text from the page. The only
validation applied is that a price is never blank: it is either trimmed
page text or the "Error" sentinel.
"""

from collections import Counter
from datetime import datetime
from typing import Any, Callable, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

ERROR_PRICE = "Error"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

Clock = Callable[[], datetime]


def format_timestamp(moment: datetime) -> str:
    """Format a wall-clock moment as ``yyyy-MM-dd HH:mm:ss``."""
    return moment.strftime(TIMESTAMP_FORMAT)


class Quote(BaseModel):
    """One output row: a symbol, its price text and when it was recorded.

    Attributes:
        symbol: Ticker as read from the input, case preserved.
        price: Trimmed price text from the page, or ``"Error"``.
        timestamp: Local time the quote was created, ``%Y-%m-%d %H:%M:%S``.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str = Field(..., min_length=1, description="Stock ticker symbol")
    price: str = Field(..., min_length=1, description="Displayed price or sentinel")
    timestamp: str = Field(
        ...,
        pattern=r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}$",
        description="Record creation time",
    )

    @field_validator("symbol", "price", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> str:
        """Trim surrounding whitespace; blank values are rejected.

        Raises:
            ValueError: If the value is not a string or is blank.
        """
        if not isinstance(value, str):
            raise ValueError(f"Expected a string, got {type(value).__name__}")

        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Value cannot be blank")

        return cleaned

    @classmethod
    def create(cls, symbol: str, price: str, clock: Clock = datetime.now) -> "Quote":
        """Build a quote stamped with the current time."""
        return cls(symbol=symbol, price=price, timestamp=format_timestamp(clock()))

    @classmethod
    def error(cls, symbol: str, clock: Clock = datetime.now) -> "Quote":
        """Build the sentinel quote for a symbol no source could price."""
        return cls.create(symbol, ERROR_PRICE, clock)

    @property
    def is_error(self) -> bool:
        """True when the price is the ``"Error"`` sentinel."""
        return self.price == ERROR_PRICE


class FetchOutcome(BaseModel):
    """Tagged result of probing a locator or attempting a provider.

    Exactly one of three shapes:
        found: ``text`` holds the trimmed, non-empty element text.
        not_found: nothing usable matched.
        navigation_error: the page could not be loaded; ``cause`` says why.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["found", "not_found", "navigation_error"]
    text: str | None = None
    cause: str | None = None

    @classmethod
    def found(cls, text: str) -> "FetchOutcome":
        return cls(kind="found", text=text)

    @classmethod
    def not_found(cls) -> "FetchOutcome":
        return cls(kind="not_found")

    @classmethod
    def navigation_error(cls, cause: str) -> "FetchOutcome":
        return cls(kind="navigation_error", cause=cause)

    @property
    def is_found(self) -> bool:
        return self.kind == "found"


class ResolutionMonitor:
    """Tracks how each symbol of a run was resolved.

    Counts the provider that supplied each price and the symbols that ended
    as ``"Error"``. Unlike a watchdog it never halts a run: a symbol nobody
    can price is recorded as data, not treated as a failure of the batch.

    Example:
        monitor = ResolutionMonitor()
        monitor.record_resolved("NSE India")
        monitor.record_exhausted("BADSYM")
        monitor.get_summary()["error_count"]  # 1
    """

    def __init__(self) -> None:
        self._provider_hits: Counter[str] = Counter()
        self._errors: list[str] = []

    def record_resolved(self, provider: str) -> None:
        """Record a price supplied by ``provider``."""
        self._provider_hits[provider] += 1

    def record_exhausted(self, symbol: str) -> None:
        """Record a symbol that ended with the sentinel price."""
        self._errors.append(symbol)

    @property
    def total(self) -> int:
        return sum(self._provider_hits.values()) + len(self._errors)

    @property
    def error_symbols(self) -> list[str]:
        return list(self._errors)

    def get_summary(self) -> dict[str, Any]:
        """Generate summary statistics for the end-of-run log line.

        Returns:
            Dictionary with per-provider hit counts and error totals.
        """
        resolved = sum(self._provider_hits.values())
        rate = resolved / self.total if self.total else 0.0
        return {
            "total_symbols": self.total,
            "resolved_count": resolved,
            "error_count": len(self._errors),
            "resolved_rate": f"{rate:.1%}",
            "provider_hits": dict(self._provider_hits),
            "error_symbols": list(self._errors),
        }
