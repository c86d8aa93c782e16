"""
Shared logger utility for the competitor pricing agent tools.
Provides a consistent logger configuration for all modules.
"""

import logging

from config.config import DEFAULT_CONFIG


def get_logger(name: str | None = None, level: str | None = None) -> logging.Logger:
    """
    Returns a logger with the specified name, configured with a standard format.
    The level defaults to the configured application log level (INFO unless
    overridden). If no name is provided, returns the root logger.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(level or DEFAULT_CONFIG.log_level)
    return logger
