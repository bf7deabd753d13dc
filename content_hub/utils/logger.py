"""
Logger setup for the content pipeline.

Every module logs through ``get_logger(__name__)``; all of those loggers are
children of the ``content_hub`` root, so one ``setup_logger()`` call from the
CLI configures the whole pipeline. HTTP and SDK libraries are turned down to
WARNING because they log every request at INFO.
"""

import logging
import sys
from pathlib import Path
from typing import Optional


ROOT_LOGGER = "content_hub"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries that log one line per HTTP request or SDK call
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "google_genai", "langchain_google_genai")


class ColoredFormatter(logging.Formatter):
    """Colors the level name on a terminal; the message itself is left plain."""

    # ANSI color codes
    LEVEL_COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow, used for repaired AI output
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"
    BOLD = "\033[1m"

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        color = self.LEVEL_COLORS.get(levelname)
        if color:
            record.levelname = f"{self.BOLD}{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # The file handler formats the same record after us
            record.levelname = levelname


def _plain_formatter() -> logging.Formatter:
    return logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)


def setup_logger(
    name: str = ROOT_LOGGER,
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
    use_color: bool = True,
) -> logging.Logger:
    """
    Configure a pipeline logger with console and optional file output.

    Calling it again for the same name only changes the level, so the CLI
    can apply ``--log-level`` after settings have been loaded.

    Args:
        name: Logger name (defaults to the package root)
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path for a UTF-8 log file
        use_color: Color level names when stdout is a terminal

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()) if level else logging.INFO)

    if logger.handlers:
        return logger

    # Handlers live here only; the root logger would print everything twice
    logger.propagate = False

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG)
    if use_color and sys.stdout.isatty():
        console_handler.setFormatter(ColoredFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    else:
        console_handler.setFormatter(_plain_formatter())
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(_plain_formatter())
        logger.addHandler(file_handler)

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger inside the ``content_hub`` hierarchy.

    Module names (``content_hub.linking.internal_links``) are used as-is;
    a bare name such as ``"cli"`` becomes ``content_hub.cli`` so it still
    picks up the handlers installed by ``setup_logger()``.
    """
    if name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
