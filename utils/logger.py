"""Logging utilities for the pipeline."""
import logging
from typing import Optional

from rich.logging import RichHandler
from rich.console import Console

import config

console = Console(stderr=True)


def setup_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """Set up a logger with rich formatting.

    Args:
        name: Logger name
        level: Logging level, defaults to LOG_LEVEL from the environment

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Configure once; later calls keep whatever level the caller has set
    if not logger.handlers:
        logger.setLevel(level if level is not None else logging.getLevelName(config.LOG_LEVEL))
        handler = RichHandler(
            rich_tracebacks=True,
            console=console,
            show_time=True,
            show_path=False
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)

    return logger
