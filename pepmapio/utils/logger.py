"""
Logger configuration for pepmapio.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional, Union

DEFAULT_LOG_FORMAT = "[%(asctime)s] %(levelname).1s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%H:%M:%S"


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name."""
    return logging.getLogger(name)


def setup_logging(
    level: Union[str, int] = "INFO",
    log_file: Optional[str] = None,
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    max_file_size: int = 10 * 1024 * 1024,
    backup_count: int = 3,
) -> logging.Logger:
    """
    Configure the ``pepmapio`` logger hierarchy.

    Args:
        level: Logging level name or number
        log_file: Optional file to write logs to (rotated by size)
        log_format: Format string for log records
        date_format: Format string for timestamps
        max_file_size: Maximum size of a log file before rotation, in bytes
        backup_count: Number of rotated log files to keep

    Returns:
        The configured package logger
    """
    logger = logging.getLogger("pepmapio")
    if isinstance(level, str):
        level = level.upper()
    logger.setLevel(level)

    formatter = logging.Formatter(log_format, datefmt=date_format)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = RotatingFileHandler(
            log_file, maxBytes=max_file_size, backupCount=backup_count
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger


def configure_from_env() -> Dict[str, Any]:
    """
    Read logging configuration from ``PEPMAPIO_LOG_LEVEL`` and ``PEPMAPIO_LOG_FILE``.

    Returns:
        Keyword arguments suitable for :func:`setup_logging`
    """
    config: Dict[str, Any] = {"level": os.environ.get("PEPMAPIO_LOG_LEVEL", "INFO")}
    log_file = os.environ.get("PEPMAPIO_LOG_FILE")
    if log_file:
        config["log_file"] = log_file
    return config
