"""Logging utilities for streamjson."""

import logging
import sys
from typing import Optional, Union


def get_logger(
    name: Optional[str] = None, level: Union[int, str] = logging.INFO
) -> logging.Logger:
    """Get a configured logger instance.

    Args:
        name: Logger name (defaults to this module)
        level: Logging level, as a number or a level name such as "DEBUG"

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name or __name__)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(level)
    return logger
