"""Integration tests for end-to-end pipeline execution.

Validates main.py orchestration including:
- Symbols file -> resolver -> workbook wiring
- Exit status 0 for per-symbol errors, missing input and failed writes
- Logging setup and fail-fast behaviour
- Startup and interrupt handling

Playwright is never launched: the browser session is replaced with an
in-memory fake, so the internal component wiring is tested end-to-end.
"""

import json
from pathlib import Path
from typing import Callable
from unittest.mock import AsyncMock, MagicMock

import pandas as pd
import pytest
from loguru import logger
from pytest_mock import MockerFixture

from config.settings import GlobalConfig
from quote_harvester.exceptions import SinkWriteError
from quote_harvester.providers import MONEYCONTROL, NSE_INDIA
from quote_harvester.reporter import SHEET_NAME
from quote_harvester.scraper import QuoteScraper


@pytest.fixture
def reset_loguru():
    """Drop sinks added by configure_logging once the test finishes."""
    yield
    logger.remove()


@pytest.fixture
def patched_scraper(
    mocker: MockerFixture,
    fake_session_factory: Callable,
    session_factory_spy: tuple[Callable, dict],
) -> dict:
    """Make main build QuoteScrapers backed by a fake browser session."""
    factory, counts = session_factory_spy
    counts["session"] = fake_session_factory(
        pages={
            NSE_INDIA.build_url("TCS"): {"#quoteLtp": "3,450.10"},
            MONEYCONTROL.build_url("INFY"): {"#nsecp": "1,650.00"},
        }
    )

    mocker.patch(
        "main.QuoteScraper",
        side_effect=lambda config: QuoteScraper(
            config, session_factory=factory, sleep=AsyncMock()
        ),
    )
    return counts


class TestPipelineOrchestration:
    """Test suite for main.py pipeline flow."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_successful_pipeline_execution(
        self, mock_config: GlobalConfig, patched_scraper: dict
    ) -> None:
        """Every data row becomes one sheet row, unresolvable ones as Error."""
        mock_config.symbols_path.write_text("Symbol\nTCS\nINFY\nBADSYM\n", encoding="utf-8")

        from main import _run_pipeline

        exit_code = await _run_pipeline(mock_config)

        assert exit_code == 0
        assert patched_scraper["acquired"] == patched_scraper["released"] == 1

        df = pd.read_excel(mock_config.output_path, sheet_name=SHEET_NAME, dtype=str)
        assert df["Stock Symbol"].tolist() == ["TCS", "INFY", "BADSYM"]
        assert df["Current Price"].tolist() == ["3,450.10", "1,650.00", "Error"]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_missing_symbols_file_skips_browser_and_output(
        self, mock_config: GlobalConfig, mocker: MockerFixture
    ) -> None:
        playwright = mocker.patch("quote_harvester.browser.async_playwright")

        from main import _run_pipeline

        exit_code = await _run_pipeline(mock_config)

        assert exit_code == 0
        playwright.assert_not_called()
        assert not mock_config.output_path.exists()

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_header_only_file_writes_nothing(
        self, mock_config: GlobalConfig, mocker: MockerFixture, patched_scraper: dict
    ) -> None:
        mock_config.symbols_path.write_text("Stock Symbol\n\n", encoding="utf-8")
        writer = mocker.patch("main.QuoteReportWriter")

        from main import _run_pipeline

        assert await _run_pipeline(mock_config) == 0
        writer.assert_not_called()
        assert patched_scraper["acquired"] == 0

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_write_failure_still_exits_zero(
        self, mock_config: GlobalConfig, mocker: MockerFixture, patched_scraper: dict
    ) -> None:
        mock_config.symbols_path.write_text("TCS\n", encoding="utf-8")
        writer = mocker.patch("main.QuoteReportWriter")
        writer.return_value.write = MagicMock(
            side_effect=SinkWriteError(mock_config.output_path, "file locked")
        )

        from main import _run_pipeline

        assert await _run_pipeline(mock_config) == 0
        writer.return_value.write.assert_called_once()

    @pytest.mark.integration
    def test_main_handles_keyboard_interrupt(
        self, mocker: MockerFixture, mock_config: GlobalConfig
    ) -> None:
        """Ctrl+C exits with 130 (128 + SIGINT)."""

        def _interrupt(coro):
            coro.close()
            raise KeyboardInterrupt()

        mocker.patch("main.asyncio.run", side_effect=_interrupt)
        mocker.patch("main.get_config", return_value=mock_config)
        mocker.patch("main.configure_logging")

        from main import main

        assert main() == 130

    @pytest.mark.integration
    def test_unexpected_error_exits_one(
        self, mocker: MockerFixture, mock_config: GlobalConfig
    ) -> None:
        def _explode(coro):
            coro.close()
            raise RuntimeError("browser binary missing")

        mocker.patch("main.asyncio.run", side_effect=_explode)
        mocker.patch("main.get_config", return_value=mock_config)
        mocker.patch("main.configure_logging")

        from main import main

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1

    def test_invalid_configuration_exits_one(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
    ) -> None:
        from config.settings import get_config
        from main import main

        get_config.cache_clear()
        monkeypatch.setenv("SETTLE_DELAY_SEC", "-1")

        try:
            assert main() == 1
        finally:
            get_config.cache_clear()

        assert "FATAL" in capsys.readouterr().err


class TestLoggingInfrastructure:
    """Test suite for structured logging setup."""

    def test_log_directory_created_on_init(
        self, mock_config: GlobalConfig, tmp_path: Path, reset_loguru: None
    ) -> None:
        from quote_harvester.logger import configure_logging

        mock_config.log_dir = tmp_path / "fresh" / "logs"

        configure_logging(mock_config)

        assert mock_config.log_dir.is_dir()

    def test_log_file_contains_valid_json(
        self, mock_config: GlobalConfig, reset_loguru: None
    ) -> None:
        from quote_harvester.logger import configure_logging, get_logger

        configure_logging(mock_config)

        log = get_logger(__name__)
        log.info("Price found", symbol="TCS", provider="NSE India", price="3,450.10")

        log_files = list(mock_config.log_dir.glob("*.json"))
        assert len(log_files) == 1, "No log files created"

        entries = [
            json.loads(line)
            for line in log_files[0].read_text().splitlines()
            if line.strip()
        ]
        assert entries
        for entry in entries:
            assert {"timestamp", "level", "message"} <= entry.keys()

        price_entry = next(e for e in entries if e["message"] == "Price found")
        assert price_entry["context"]["symbol"] == "TCS"
        assert price_entry["context"]["module"] == __name__

    def test_logging_fails_fast_with_invalid_directory(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path, reset_loguru: None
    ) -> None:
        """A log path beneath a regular file can never be created."""
        from config.settings import get_config
        from quote_harvester.exceptions import LoggingInitializationError
        from quote_harvester.logger import configure_logging

        blocker = tmp_path / "not_a_directory"
        blocker.write_text("occupied")
        invalid_path = blocker / "logs"

        get_config.cache_clear()
        monkeypatch.setenv("LOG_DIR", str(invalid_path))

        try:
            with pytest.raises(LoggingInitializationError) as exc_info:
                configure_logging(get_config())
        finally:
            get_config.cache_clear()

        assert str(invalid_path) in str(exc_info.value)
