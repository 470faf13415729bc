"""Logging setup shared by the CLI and embedding applications."""

import sys
from pathlib import Path

from loguru import logger


def configure_logging(*, verbose: bool = False, log_file: Path | None = None) -> None:
    """Route loguru output to stderr, and optionally to a rotating file.

    Args:
        verbose: Log DEBUG messages to stderr instead of INFO and up.
        log_file: Extra sink that always records DEBUG, rotated at 1 MB.
    """
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO", format="{level.icon} {message}")
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level="DEBUG",
            rotation="1 MB",
            retention=3,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}",
        )
