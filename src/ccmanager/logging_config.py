"""
Logging configuration for ccmanager.

All loggers live under the "ccmanager" namespace so one call to
setup_logging() configures the whole package. The monitor logs to a file
(and optionally a Rich console); CLI commands stay quiet unless something
goes wrong.
"""

import logging
from pathlib import Path
from typing import Any, Optional

from rich.logging import RichHandler

ROOT_LOGGER_NAME = "ccmanager"
DEFAULT_LOG_DIR = Path.home() / ".ccmanager" / "logs"
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ccmanager namespace ("ccmanager.<name>")."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    console: bool = True,
    rich_console: bool = False,
) -> logging.Logger:
    """Configure the ccmanager root logger.

    Existing handlers are removed first, so calling this twice does not
    duplicate output.

    Args:
        level: Log level for the ccmanager namespace
        log_file: Optional file to append logs to (parent dirs are created)
        console: Whether to log to stderr
        rich_console: Use a Rich handler for console output

    Returns:
        The configured root ccmanager logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(level)

    if console:
        if rich_console:
            handler: logging.Handler = RichHandler(rich_tracebacks=True, show_path=False)
        else:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    return logger


def setup_monitor_logging(
    log_file: Optional[Path] = None,
    level: int = logging.INFO,
    console: bool = False,
) -> logging.Logger:
    """Configure logging for a long-running session monitor."""
    setup_logging(
        level=level,
        log_file=log_file if log_file is not None else DEFAULT_LOG_DIR / "monitor.log",
        console=console,
        rich_console=console,
    )
    return get_logger("monitor")


def setup_cli_logging(verbose: bool = False) -> logging.Logger:
    """Configure logging for one-shot CLI commands."""
    setup_logging(level=logging.DEBUG if verbose else logging.WARNING, console=True, rich_console=True)
    return get_logger("cli")


class StructuredLogger:
    """Logger wrapper that appends key=value context to every message.

    Usage:
        log = get_structured_logger("sessions").with_context(session_id=sid)
        log.info("state changed", old="idle", new="busy")
        # -> "state changed | session_id=... old=idle new=busy"
    """

    def __init__(self, logger: logging.Logger, context: Optional[dict] = None):
        self._logger = logger
        self._context = dict(context or {})

    def with_context(self, **context: Any) -> "StructuredLogger":
        return StructuredLogger(self._logger, {**self._context, **context})

    def _format(self, message: str, extra: dict) -> str:
        fields = {**self._context, **extra}
        if not fields:
            return message
        rendered = " ".join(f"{k}={v}" for k, v in fields.items())
        return f"{message} | {rendered}"

    def debug(self, message: str, **kwargs: Any) -> None:
        self._logger.debug(self._format(message, kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        self._logger.info(self._format(message, kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self._logger.warning(self._format(message, kwargs))

    def error(self, message: str, **kwargs: Any) -> None:
        self._logger.error(self._format(message, kwargs))

    def exception(self, message: str, **kwargs: Any) -> None:
        self._logger.exception(self._format(message, kwargs))


def get_structured_logger(name: str) -> StructuredLogger:
    return StructuredLogger(get_logger(name))
