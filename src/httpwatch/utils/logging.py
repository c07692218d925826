"""Logging setup for httpwatch.

The CLI calls ``setup_logging`` twice: once before settings are loaded, so
configuration errors are reported, and again with the loaded ``logging``
section. Only the ``httpwatch`` logger is touched; uvicorn keeps its own.
"""

from __future__ import annotations

import logging
import sys

from httpwatch.config.settings import LoggingConfig


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure the ``httpwatch`` logger.

    Sets the level and format, logs to stderr and, when ``config.file``
    is set, to that file as well. Calling it again replaces the handlers
    installed by the previous call.

    Args:
        config: Logging configuration. If None, uses defaults
                (INFO level, stderr output).
    """
    if config is None:
        config = LoggingConfig()

    logger = logging.getLogger("httpwatch")
    logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(config.format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if config.file:
        file_handler = logging.FileHandler(config.file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug("Logging initialized at %s level", config.level)
