"""Logging configuration using Loguru.

Console output goes to stderr so it never mixes with the rankings and
reports the CLI prints on stdout. The file sink keeps the full run at the
configured level, serialized as JSON by default, and carries any context
bound through ``get_logger`` (for example the slate date being replayed).

Example:
    >>> from pra_model.logging import setup_logging, get_logger
    >>> setup_logging(level="INFO", console_level="WARNING")
    >>> logger = get_logger(__name__, game_date="2024-11-19")
    >>> logger.info("Scored {} players with {}", 212, "context_first")

Status Tags:
    >>> from pra_model.logging import SUCCESS, FAIL, WARN
    >>> logger.info(f"{SUCCESS} 2024-11-19: winner rank 2, top-5 hit 80%")
    >>> logger.warning(f"{WARN} 2024-11-19: 3 predicted players missing from box scores")
    >>> logger.error(f"{FAIL} Cannot read slates/2024-11-19.json")
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

from loguru import logger

# Status tags for replayed days and boundary failures
SUCCESS = "\033[92m[SUCCESS]\033[0m"  # Green
FAIL = "\033[91m[FAIL]\033[0m"  # Red
WARN = "\033[93m[WARN]\033[0m"  # Yellow

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> | "
    "<level>{message}</level>"
)
FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | "
    "{level: <8} | "
    "{extra[name]}:{function}:{line} | "
    "{message}"
)
LOG_FILE_PATTERN = "pra_model_{time:YYYY-MM-DD}.log"


class InterceptHandler(logging.Handler):
    """Forward stdlib log records (pandas, typer) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        """Re-emit a stdlib record through loguru at the matching level."""
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = sys._getframe(6), 6
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.bind(name=record.name).opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging(
    level: str = "INFO",
    log_dir: str | Path = "logs",
    rotation: str = "1 day",
    retention: str = "30 days",
    serialize: bool = True,
    console_level: str | None = None,
) -> None:
    """Configure console and file logging for a run.

    Args:
        level: Minimum level written to the log file.
        log_dir: Directory for log files, created when missing.
        rotation: When to rotate log files (e.g., "1 day", "100 MB").
        retention: How long to keep old log files.
        serialize: Whether to write JSON-formatted logs to file.
        console_level: Minimum level shown on stderr; ``level`` when None.
    """
    logger.remove()
    logger.configure(extra={"name": "pra_model"})

    logger.add(
        sys.stderr,
        level=console_level or level,
        format=CONSOLE_FORMAT,
        colorize=True,
    )

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    logger.add(
        log_path / LOG_FILE_PATTERN,
        level=level,
        format=FILE_FORMAT,
        rotation=rotation,
        retention=retention,
        serialize=serialize,
        enqueue=True,
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)


def get_logger(name: str, **context: Any) -> Any:
    """Get a logger bound with a module name and optional run context.

    Args:
        name: Logger name, typically __name__ of the calling module.
        **context: Extra fields attached to every record, such as
            ``game_date`` or ``variant``.

    Returns:
        Loguru logger bound with the given name and context.
    """
    return logger.bind(name=name, **context)


__all__ = ["get_logger", "logger", "setup_logging", "SUCCESS", "FAIL", "WARN"]
