"""Logging setup for the planka-mcp server.

The MCP stdio transport owns stdout, so every handler here writes to stderr
or a file.
"""

from __future__ import annotations

import logging
import sys

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

# Libraries that log every HTTP request or protocol message at INFO/DEBUG
CHATTY_LOGGERS = ("urllib3", "mcp", "httpx")

CONSOLE_FORMAT = "%(levelname)s: %(message)s"
DEBUG_CONSOLE_FORMAT = "%(levelname)s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO", log_file: str | None = None) -> logging.Logger:
    """Configure the ``planka_mcp`` logger and quiet chatty dependencies.

    Args:
        level: DEBUG, INFO, WARNING or ERROR (case-insensitive). Unknown
               names fall back to INFO.
        log_file: Optional path; when given, records also go to this file
                  with timestamps.

    Returns:
        The configured ``planka_mcp`` logger.

    Example:
        >>> setup_logging("DEBUG")  # every Planka request, logger names shown
        >>> setup_logging("INFO", "planka-mcp.log")
    """
    resolved = LEVELS.get(level.upper(), logging.INFO)

    logger = logging.getLogger("planka_mcp")
    logger.setLevel(resolved)

    # Calling again replaces handlers instead of stacking them
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_format = DEBUG_CONSOLE_FORMAT if resolved == logging.DEBUG else CONSOLE_FORMAT
    console_handler.setFormatter(logging.Formatter(console_format))
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    # Third-party chatter only at DEBUG
    library_level = logging.DEBUG if resolved == logging.DEBUG else logging.WARNING
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    logger.propagate = False
    return logger
