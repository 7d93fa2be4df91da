"""Global configuration management using pydantic-settings.

Values are loaded from environment variables (or a local .env file) with
strict type validation. The defaults reproduce the fixed constants the
harvester has always run with: a 5 second settle delay after navigation,
a 15 second bound per locator probe, a 3 second pause between symbols,
and fixed input/output file names.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GlobalConfig(BaseSettings):
    """Centralized configuration with environment variable binding.

    Attributes:
        app_name: Application identifier for logging.
        environment: Deployment environment.
        debug: Enable verbose debugging output.
        headless: Run Chromium without a visible window.
        log_level: Minimum log level for output filtering.
        log_dir: Directory path for structured JSON log files.
        log_rotation: Log file rotation interval.
        log_retention: Log file retention period.
        symbols_path: Input file listing one ticker per row.
        output_path: Excel workbook the quotes are written to.
        settle_delay_sec: Pause after navigation before probing locators.
        probe_timeout_ms: Bounded wait for a single locator to match.
        politeness_delay_sec: Pause between successive symbols.
        navigation_timeout_ms: Page load timeout.
        user_agent: User-agent presented by the browser context.
        viewport_width: Fixed viewport width in pixels.
        viewport_height: Fixed viewport height in pixels.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Metadata
    app_name: str = Field(default="QuoteHarvester", description="Application identifier")
    environment: Literal["development", "staging", "production", "test"] = Field(
        default="development", description="Deployment environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    # Browser Configuration
    headless: bool = Field(default=True, description="Run browser in headless mode")
    user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
        ),
        description="Browser user-agent string",
    )
    viewport_width: int = Field(default=1920, ge=320, le=7680, description="Viewport width")
    viewport_height: int = Field(default=1080, ge=240, le=4320, description="Viewport height")

    # Logging Configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Minimum log level"
    )
    log_dir: Path = Field(default=Path("logs"), description="Log output directory")
    log_rotation: str = Field(default="1 week", description="Log rotation interval")
    log_retention: str = Field(default="1 month", description="Log retention period")

    # Input / Output
    symbols_path: Path = Field(
        default=Path("stocks_list.csv"), description="Stock symbol list (CSV, text or xlsx)"
    )
    output_path: Path = Field(
        default=Path("stock_prices_output.xlsx"), description="Quote workbook path"
    )

    # Timing
    settle_delay_sec: float = Field(
        default=5.0, ge=0.0, le=120.0, description="Wait after navigation before probing"
    )
    probe_timeout_ms: int = Field(
        default=15000, ge=1, le=120000, description="Per-locator bounded wait in milliseconds"
    )
    politeness_delay_sec: float = Field(
        default=3.0, ge=0.0, le=120.0, description="Pause between symbols"
    )
    navigation_timeout_ms: int = Field(
        default=60000, ge=1000, le=300000, description="Page load timeout in milliseconds"
    )

    @field_validator("log_dir", "symbols_path", "output_path", mode="before")
    @classmethod
    def ensure_path(cls, value: str | Path) -> Path:
        """Convert string paths to Path objects."""
        return Path(value) if isinstance(value, str) else value

    @field_validator("output_path")
    @classmethod
    def validate_output_suffix(cls, value: Path) -> Path:
        """Quotes are always written as an xlsx workbook."""
        return value if value.suffix.lower() == ".xlsx" else value.with_suffix(".xlsx")


@lru_cache(maxsize=1)
def get_config() -> GlobalConfig:
    """Retrieve the singleton GlobalConfig instance.

    Returns:
        GlobalConfig: The validated configuration instance.
    """
    return GlobalConfig()
