"""
Urban Feedback - Logging Configuration
Log setup for the API process and the demo script.

Modules log through logging.getLogger(__name__); this module only decides
where records go and how verbose each source is.
"""

import logging
import sys
from typing import Optional

from src.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"

# One line per geocoding request at INFO
HTTP_CLIENT_LOGGERS = ("httpx", "httpcore")


def setup_logging(
    level: Optional[str] = None,
    debug: Optional[bool] = None
) -> logging.Logger:
    """
    Configure logging for the application.

    Args:
        level: Log level for application modules (DEBUG, INFO, WARNING, ...)
        debug: Keep HTTP client request logs; defaults to settings.debug

    Returns:
        Logger of the src package
    """
    log_level = getattr(logging, (level or settings.log_level).upper())
    debug = settings.debug if debug is None else debug

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    app_logger = logging.getLogger("src")
    app_logger.setLevel(log_level)

    client_level = log_level if debug else max(log_level, logging.WARNING)
    for name in HTTP_CLIENT_LOGGERS:
        logging.getLogger(name).setLevel(client_level)

    return app_logger
