"""Logging configuration for the medication tracker."""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from medtracker.config import settings


def setup_logger(
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    logs_dir: Optional[Path] = None,
) -> None:
    """Configure loguru logger with console and file outputs.

    Sets up:
    - Console output with colors on stderr, so command output on stdout stays clean
    - File output with daily rotation, 30-day retention and compression

    Args:
        console_level: Log level for console output (default: INFO)
        file_level: Log level for file output (default: DEBUG)
        logs_dir: Directory for log files (default: LOGS_DIR setting)
    """
    # Remove default handler
    logger.remove()

    logger.add(
        sys.stderr,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        ),
        level=console_level,
        colorize=True,
        backtrace=True,
        diagnose=True,
    )

    if logs_dir is None:
        logs_dir = settings.logs_dir
    logs_dir.mkdir(parents=True, exist_ok=True)

    logger.add(
        logs_dir / "tracker_{time:YYYY-MM-DD}.log",
        format=(
            "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
            "{level: <8} | "
            "{name}:{function}:{line} | "
            "{message}"
        ),
        level=file_level,
        rotation="00:00",  # Rotate at midnight
        retention="30 days",
        compression="zip",
        backtrace=True,
        diagnose=True,
        enqueue=True,
    )

    logger.debug(f"Console log level: {console_level}")
    logger.debug(f"File log level: {file_level}")
    logger.debug(f"Logs directory: {logs_dir}")


__all__ = ["setup_logger", "logger"]
