"""Logging setup for the API process."""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """
    Configure the root logger with a single stdout handler.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR)

    Returns:
        The configured root logger
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root_logger.addHandler(handler)

    # Quiet down chatty third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    return root_logger
