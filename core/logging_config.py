"""
Logging configuration for Filter Sync.

This module provides centralized logging configuration with proper
formatting, log levels, and file output options. Nothing is configured
at import time; the application entry point calls setup_logging_from_config().
"""

import logging
import os
from pathlib import Path
from typing import Dict, Optional

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Chatty third-party loggers kept quieter than the application
DEFAULT_LOGGER_LEVELS = {
    'werkzeug': 'WARNING',
}


def _make_file_handler(log_file: str, log_dir: str, level: int, formatter: logging.Formatter) -> logging.FileHandler:
    Path(log_dir).mkdir(parents=True, exist_ok=True)
    log_path = os.path.join(log_dir, log_file)

    file_handler = logging.FileHandler(log_path)
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    return file_handler


def setup_logging(
    level: str = 'INFO',
    log_file: Optional[str] = None,
    log_dir: Optional[str] = None,
    format_string: Optional[str] = None,
    logger_levels: Optional[Dict[str, str]] = None
) -> None:
    """
    Set up logging configuration for the application.

    Args:
        level: Logging level ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
        log_file: Name of log file (optional)
        log_dir: Directory for log files (defaults to 'logs')
        format_string: Custom format string (optional)
        logger_levels: Per-logger level overrides (defaults to DEFAULT_LOGGER_LEVELS)
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Clear existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = _make_file_handler(log_file, log_dir or 'logs', numeric_level, formatter)
        root_logger.addHandler(file_handler)
        logging.info(f"Logging to file: {file_handler.baseFilename}")

    overrides = DEFAULT_LOGGER_LEVELS if logger_levels is None else logger_levels
    for name, name_level in overrides.items():
        logging.getLogger(name).setLevel(getattr(logging, name_level.upper(), logging.WARNING))

    logging.info(f"Logging configured with level: {level}")


def setup_logging_from_config(log_config) -> None:
    """
    Configure logging from a LoggingConfig section.

    Args:
        log_config: core.config.LoggingConfig instance
    """
    setup_logging(
        level=log_config.level,
        log_file=log_config.log_file,
        log_dir=log_config.log_dir
    )


def set_log_level(level: str) -> None:
    """
    Set the log level for the root logger and its handlers.

    Args:
        level: Logging level ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.getLogger().setLevel(numeric_level)

    for handler in logging.getLogger().handlers:
        handler.setLevel(numeric_level)

    logging.info(f"Log level set to: {level}")


def add_file_handler(
    log_file: str,
    log_dir: str = 'logs',
    level: str = 'INFO',
    format_string: Optional[str] = None
) -> None:
    """
    Add a file handler to the root logger.

    Args:
        log_file: Name of log file
        log_dir: Directory for log files
        level: Logging level for this handler
        format_string: Custom format string (optional)
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)
    file_handler = _make_file_handler(log_file, log_dir, numeric_level, formatter)
    logging.getLogger().addHandler(file_handler)

    logging.info(f"Added file handler: {file_handler.baseFilename}")
