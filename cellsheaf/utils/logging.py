"""Logging infrastructure for cellsheaf.

Library modules log through ``logging.getLogger(__name__)``; this module
configures named loggers with console and optional file output for scripts
and tests.

Key features:
- Configurable log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
- Default level taken from the CELLSHEAF_LOG_LEVEL environment variable
- Console and file output support
- Thread-safe logger registry
"""

import logging
import os
import sys
import threading
from pathlib import Path
from typing import Optional, Dict

# Global logger registry to prevent duplicate handlers
_loggers: Dict[str, logging.Logger] = {}
_lock = threading.Lock()

LOG_LEVEL_ENV = "CELLSHEAF_LOG_LEVEL"


def setup_logger(
    name: str,
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
    format_type: str = "standard"
) -> logging.Logger:
    """Configure logger with console and optional file output.

    Args:
        name: Logger name (typically module name)
        level: Logging level; falls back to $CELLSHEAF_LOG_LEVEL, then INFO
        log_file: Optional path to log file
        format_type: Format type ('standard', 'detailed', 'simple')

    Returns:
        Configured logger instance

    Raises:
        ValueError: If level is invalid

    Example:
        >>> logger = setup_logger('cellsheaf.dsl', level='DEBUG')
        >>> logger.info('Parsing sheaf expression')
    """
    with _lock:
        if name in _loggers:
            return _loggers[name]

        level = level or os.environ.get(LOG_LEVEL_ENV, "INFO")
        numeric_level = getattr(logging, level.upper(), None)
        if not isinstance(numeric_level, int):
            raise ValueError(f"Invalid log level: {level}")

        logger = logging.getLogger(name)
        logger.setLevel(numeric_level)

        if logger.handlers:
            logger.handlers.clear()

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(_get_formatter(format_type))
        console_handler.setLevel(numeric_level)
        logger.addHandler(console_handler)

        if log_file:
            try:
                log_file.parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.FileHandler(log_file, mode='a')
                file_handler.setFormatter(_get_formatter('detailed'))
                file_handler.setLevel(numeric_level)
                logger.addHandler(file_handler)
            except (OSError, PermissionError) as e:
                logger.warning(f"Could not create file handler for {log_file}: {e}")

        logger.propagate = False
        _loggers[name] = logger

        return logger


def _get_formatter(format_type: str) -> logging.Formatter:
    formats = {
        'standard': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        'detailed': '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
        'simple': '%(levelname)s - %(message)s'
    }
    return logging.Formatter(formats.get(format_type, formats['standard']))


def get_logger(name: str) -> logging.Logger:
    """Get existing logger or create new one with default settings."""
    if name in _loggers:
        return _loggers[name]
    return setup_logger(name)


def log_execution_time(logger: logging.Logger, duration_seconds: float, context: str = "",
                       level: int = logging.INFO) -> None:
    """Log execution time with context.

    The duration is attached to the record as ``duration_seconds`` so handlers
    can pick it up.
    """
    record = logger.makeRecord(
        logger.name, level, "", 0,
        f"Execution time: {duration_seconds:.4f}s {context}".rstrip(),
        (), None
    )
    record.duration_seconds = duration_seconds
    if logger.isEnabledFor(level):
        logger.handle(record)


def shutdown_logging() -> None:
    """Close handlers of all configured loggers and clear the registry."""
    with _lock:
        for logger in _loggers.values():
            for handler in logger.handlers:
                handler.close()
            logger.handlers.clear()
        _loggers.clear()
