"""
Centralized logging configuration for the SDG pipeline.

Every module obtains its logger through ``create_logger(__name__)`` so
console output shares one colour-coded format.
"""

import logging
import os
import sys
from typing import Any, Dict, Optional, Union

import colorlog

LOG_LEVEL = os.getenv("SDG_LOG_LEVEL", "INFO").upper()
LOG_DIR = os.getenv("SDG_LOG_DIR")


def create_logger(
    name: Optional[str] = None,
    log_level: Union[int, str, None] = None,
    log_dir: Optional[str] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Create a structured, color-coded logger with optional file logging.

    :param name: Name of the logger (typically __name__)
    :param log_level: Logging level (default: SDG_LOG_LEVEL or INFO)
    :param log_dir: Directory to store log files (default: SDG_LOG_DIR)
    :param log_file: Specific log file name (optional)
    :return: Configured logger instance
    """
    level = log_level or LOG_LEVEL
    log_dir = log_dir or LOG_DIR

    logger = colorlog.getLogger(name or "sdg_pipeline")
    logger.setLevel(level)
    logger.propagate = False

    # Remove any existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    console_handler = colorlog.StreamHandler(sys.stdout)
    console_handler.setLevel(level)

    formatter = colorlog.ColoredFormatter(
        "%(log_color)s[%(levelname)s]%(reset)s "
        "%(blue)s[%(name)s]%(reset)s "
        "%(message)s",
        log_colors={
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "red,bg_white",
        },
        secondary_log_colors={},
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_dir or log_file:
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        if not log_file:
            log_file = f"{name or 'sdg_pipeline'}.log"

        if log_dir:
            log_file = os.path.join(log_dir, log_file)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)

        # Plain text formatter for file logs
        file_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    return logger


def log_exception(
    logger: logging.Logger, e: BaseException, context: Optional[Dict[str, Any]] = None
) -> None:
    """
    Standardized exception logging with optional context.

    :param logger: Logger instance
    :param e: Exception object
    :param context: Optional additional context for the error
    """
    logger.error(f"Error Type: {type(e).__name__}")
    logger.error(f"Error Details: {str(e)}")

    if context:
        for key, value in context.items():
            logger.error(f"   {key}: {value}")

    if e.__cause__ is not None:
        logger.debug(f"Caused by: {type(e.__cause__).__name__}: {e.__cause__}")
