"""Logging configuration for the shortener service."""

import logging
import sys

LOGGER_NAME = "shortener"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Configure the 'shortener' logger hierarchy.

    Every module logs through logging.getLogger(__name__), so a single
    stdout handler on the package logger covers all of them.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        The configured package logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger
