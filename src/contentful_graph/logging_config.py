"""Logging setup for the contentful-graph CLI.

Library modules only ever call ``loguru.logger``; sinks are installed here.
"""

import sys
from pathlib import Path

from loguru import logger

_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}"


def configure_logging(*, verbose: bool = False, log_file: Path | None = None) -> None:
    """Log to stderr, and at debug level to ``log_file`` when one is given."""
    logger.remove()
    level = "DEBUG" if verbose else "INFO"
    logger.add(sys.stderr, level=level, format="{level.icon} {message}")
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_file, level="DEBUG", format=_FILE_FORMAT, rotation="10 MB")
