"""Logging setup for the harness (loguru)."""

import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>{thread.name}</magenta> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> "
    "- <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {thread.name} | {name}:{function}:{line} - {message}"


def setup_logging(
    log_file: Optional[Union[str, Path]] = None,
    level: str = "INFO",
    rotation: str = "1 day",
) -> None:
    """Replace loguru's default sink with a coloured stderr sink and an optional rotating file.

    Records carry the thread name since fold units log from pool threads.

    Args:
        log_file: Optional path of the log file; parent directories are created
        level: Minimum level for both sinks
        rotation: Rotation policy for the file sink
    """
    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level.upper())

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_file, format=FILE_FORMAT, level=level.upper(), rotation=rotation)
