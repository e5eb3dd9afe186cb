"""Logging configuration for the reconciliation application."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

APP_LOGGER = "ledger_recon"

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    log_format: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the ``ledger_recon`` logger tree.

    Every module logs through ``logging.getLogger(__name__)``, so one
    console handler here covers the whole pipeline. Calling it again
    replaces the handlers instead of stacking them.

    Args:
        level: Console logging level (e.g., logging.DEBUG, logging.INFO)
        log_file: Optional rotating log file; always records DEBUG
        log_format: Console format string, DEFAULT_LOG_FORMAT when omitted

    Returns:
        The configured application logger
    """
    logger = logging.getLogger(APP_LOGGER)
    logger.handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(log_format or DEFAULT_LOG_FORMAT))
    logger.addHandler(console_handler)

    if log_file:
        logger.addHandler(_rotating_file_handler(log_file))
        # The file wants DEBUG even when the console is quieter
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(level)

    return logger


def _rotating_file_handler(log_file: Path) -> RotatingFileHandler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_file,
        maxBytes=5 * 1024 * 1024,  # 5MB
        backupCount=3,
        encoding="utf-8",
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
    return handler
