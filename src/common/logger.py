"""
Logging configuration for the index project.

Every module gets its logger from here so output format and level are
decided in one place (config.LOG_LEVEL, config.LOG_TO_FILE).

Usage:
    from src.common.logger import get_logger

    logger = get_logger(__name__)
    logger.debug("Leaf split")
"""

import logging
import sys
from typing import List, Optional

# Track if logging has been set up
_logging_initialized = False

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _build_handlers(level: int, log_file_path: Optional[str]) -> List[logging.Handler]:
    """Stdout handler, plus a file handler when a path is given."""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file_path:
        handlers.append(logging.FileHandler(log_file_path))

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def setup_logging(
    level: Optional[str] = None,
    log_to_file: Optional[bool] = None,
    log_file_path: Optional[str] = None,
) -> None:
    """
    Route the root logger to stdout (and optionally a file).

    Only the first call has an effect.

    Args:
        level: Log level name (DEBUG, INFO, ...). Defaults to config.LOG_LEVEL.
        log_to_file: Also write to a file. Defaults to config.LOG_TO_FILE.
        log_file_path: File to write to. Defaults to config.LOG_FILE_PATH.
    """
    global _logging_initialized

    if _logging_initialized:
        return

    # Deferred import; config lives at the project root
    import config

    level = level or config.LOG_LEVEL
    if log_to_file is None:
        log_to_file = config.LOG_TO_FILE
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()
    file_path = (log_file_path or config.LOG_FILE_PATH) if log_to_file else None
    for handler in _build_handlers(numeric_level, file_path):
        root_logger.addHandler(handler)

    _logging_initialized = True


def get_logger(name: str) -> logging.Logger:
    """Logger for a module name, setting up logging on first use."""
    if not _logging_initialized:
        setup_logging()

    return logging.getLogger(name)
