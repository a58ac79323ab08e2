"""Logging configuration for css_sprite."""

import logging
import sys
from typing import Optional

# Package logger
_PACKAGE_NAME = "css_sprite"

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: int = logging.INFO,
    format_string: Optional[str] = None,
    handler: Optional[logging.Handler] = None,
) -> logging.Logger:
    """
    Configure logging for the css_sprite package.

    Sprite regeneration runs on the dependency watch thread, so the package
    logger is usually the only place its failures show up.

    Args:
        level: Logging level (e.g., logging.DEBUG, logging.INFO)
        format_string: Custom format string. If None, uses DEFAULT_FORMAT.
        handler: Custom handler. If None, uses StreamHandler to stderr.

    Returns:
        The configured package logger.

    Example:
        from css_sprite import setup_logging
        import logging

        # Watch-loop detail
        setup_logging(level=logging.DEBUG)

        # Log regenerations next to the site logs
        setup_logging(handler=logging.FileHandler("sprites.log"))
    """
    logger = logging.getLogger(_PACKAGE_NAME)
    logger.setLevel(level)

    # Calling setup twice must not double every line
    logger.handlers.clear()

    if handler is None:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(format_string or DEFAULT_FORMAT))

    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger for a module within the package.

    Args:
        name: Module name (e.g., "creator", "cache").
              If None, returns the package root logger.

    Returns:
        Logger instance.
    """
    if name is None:
        return logging.getLogger(_PACKAGE_NAME)
    return logging.getLogger(f"{_PACKAGE_NAME}.{name}")
