"""
Logging setup shared by the API process and the storefront client.
"""

import logging
import sys
from typing import Optional

from config import config


def setup_logging(level: Optional[str] = None, format_string: Optional[str] = None) -> None:
    """
    Configure root logging to stdout.

    Args:
        level: log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_string: logging format string
    """
    log_level = level or config.LOG_LEVEL
    log_format = format_string or config.LOG_FORMAT

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format=log_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("stripe").setLevel(logging.WARNING)

    logging.getLogger(__name__).info("Logging configured at %s level", log_level.upper())
