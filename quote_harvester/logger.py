"""Structured logging configuration using loguru.

Two sinks are installed:
- a colourised, human-readable console sink on stderr, which narrates each
  provider attempt and the resulting price as the run progresses
- a rotating JSON-lines file sink for later inspection of a run

Log directory writability is checked up front so a run never starts
without its logs.
"""

import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from loguru import logger

from config.settings import GlobalConfig, get_config
from quote_harvester.exceptions import LoggingInitializationError


def _json_serializer(record: dict[str, Any]) -> str:
    """Render a loguru record as a single JSON line.

    Args:
        record: Loguru record dictionary containing log metadata.

    Returns:
        JSON-formatted string terminated by a newline.
    """
    subset = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "module": record["name"],
        "function": record["function"],
        "line": record["line"],
    }

    if record["exception"] is not None:
        exc_type = record["exception"].type
        exc_value = record["exception"].value
        subset["exception"] = {
            "type": exc_type.__name__ if exc_type else None,
            "value": str(exc_value) if exc_value else None,
        }

    context = {k: v for k, v in record["extra"].items() if k != "serialized"}
    if context:
        subset["context"] = context

    return json.dumps(subset, default=str) + "\n"


def _validate_log_directory(log_dir: Path) -> None:
    """Create the log directory and prove it is writable.

    Args:
        log_dir: Path to the log directory.

    Raises:
        LoggingInitializationError: If directory creation or write test fails.
    """
    try:
        log_dir.mkdir(parents=True, exist_ok=True)

        probe_file = log_dir / ".write_test"
        probe_file.write_text("write_test")
        probe_file.unlink()

    except PermissionError as exc:
        raise LoggingInitializationError(
            log_dir=str(log_dir),
            reason=f"Permission denied: {exc}",
        ) from exc
    except OSError as exc:
        raise LoggingInitializationError(
            log_dir=str(log_dir),
            reason=f"OS error during directory validation: {exc}",
        ) from exc


def configure_logging(config: GlobalConfig | None = None) -> None:
    """Initialize the logging infrastructure.

    Call once during bootstrap, before any module logs.

    Args:
        config: Optional GlobalConfig instance. If None, uses singleton.

    Raises:
        LoggingInitializationError: If log directory validation fails.
    """
    if config is None:
        config = get_config()

    logger.remove()

    _validate_log_directory(config.log_dir)

    console_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{extra[module]}</cyan> | "
        "<level>{message}</level>"
    )

    logger.configure(extra={"module": "quote_harvester"})

    logger.add(
        sys.stderr,
        format=console_format,
        level=config.log_level,
        colorize=True,
        backtrace=config.debug,
        diagnose=config.debug,
    )

    log_file_path = config.log_dir / "quote_harvester_{time:YYYY-MM-DD}.json"

    logger.add(
        str(log_file_path),
        format="{extra[serialized]}",
        level=config.log_level,
        rotation=config.log_rotation,
        retention=config.log_retention,
        compression="gz",
        serialize=False,
        filter=lambda record: record["extra"].update(serialized=_json_serializer(record)) or True,
    )

    logger.info(
        "Logging infrastructure initialized",
        app_name=config.app_name,
        environment=config.environment,
        log_level=config.log_level,
        log_dir=str(config.log_dir),
    )


def get_logger(name: str) -> "logger":
    """Get a logger bound with the module name.

    Args:
        name: Module or component name for log attribution.

    Returns:
        Loguru logger bound with the provided name.

    Example:
        >>> log = get_logger(__name__)
        >>> log.info("Price found", symbol="TCS", provider="NSE India")
    """
    return logger.bind(module=name)
