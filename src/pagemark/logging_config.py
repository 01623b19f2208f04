"""Logging setup for the pagemark command and library users."""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

# Console lines share stderr with the progress spinner, so they stay short
CONSOLE_FORMAT = "%(levelname)s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    format_string: Optional[str] = None,
    force: bool = False,
) -> logging.Logger:
    """
    Configure the ``pagemark`` logger.

    Records go to stderr, never stdout, because stdout carries the converted
    Markdown or JSON. A log file, when given, gets timestamped records in
    UTF-8 and its directory is created. Calling again without ``force`` keeps
    the existing handlers and only changes the level.

    Args:
        level: Level name; unknown names mean INFO
        log_file: Optional path for a file handler
        format_string: Format for every handler (defaults differ per handler)
        force: Replace existing handlers

    Returns:
        The ``pagemark`` logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger = logging.getLogger("pagemark")
    logger.setLevel(numeric_level)

    if force or not logger.handlers:
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(format_string or CONSOLE_FORMAT))
        logger.addHandler(console_handler)

        if log_file:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
            file_handler.setFormatter(logging.Formatter(format_string or FILE_FORMAT))
            logger.addHandler(file_handler)

    for handler in logger.handlers:
        handler.setLevel(numeric_level)

    # pagemark records are handled here only
    logger.propagate = False

    return logger
