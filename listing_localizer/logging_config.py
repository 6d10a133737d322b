"""Logging setup for the ``listing_localizer`` logger tree.

Every module logs through ``logging.getLogger(__name__)``; this installs the
handlers once, on the package root logger, so CLI runs and embedding
applications see the same output.
"""
import logging
import sys
from pathlib import Path
from typing import Optional, Union

ROOT_LOGGER = "listing_localizer"

_DETAILED_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | %(module)s:%(funcName)s:%(lineno)d | "
    "%(message)s"
)

_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: Union[str, int] = "INFO",
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """Configure the package root logger.

    Args:
        level: Console log level (name or number).
        log_file: Optional path; when given, DEBUG+ records are also written
            there with module and line information.

    Returns:
        The ``listing_localizer`` logger.
    """
    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(logging.DEBUG)

    # Repeated calls (tests, re-entrant CLI use) keep the first handlers
    if root_logger.handlers:
        return root_logger

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level.upper() if isinstance(level, str) else level)
    console_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT))
    root_logger.addHandler(console_handler)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_DETAILED_FORMAT, datefmt=_DATE_FORMAT))
        root_logger.addHandler(file_handler)

    return root_logger
