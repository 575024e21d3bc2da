"""
Logging configuration for Access Log Parser

Every module logs through get_logger(__name__). Records go to stderr so that
parsed entries written to stdout stay machine readable; a dated file under
logs/ can be added from the 'logging' section of config.yaml.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional
from datetime import datetime


DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DETAILED_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'

LOG_LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL
}

# Loggers created by this module, by name
_loggers: Dict[str, logging.Logger] = {}

# Shared file handler once file logging is enabled
_file_handler: Optional[logging.FileHandler] = None


def _level(level: str) -> int:
    return LOG_LEVELS.get(str(level).upper(), logging.INFO)


def _default_log_file() -> Path:
    log_dir = Path('logs')
    log_dir.mkdir(exist_ok=True)
    return log_dir / f"access_log_parser_{datetime.now().strftime('%Y%m%d')}.log"


def _make_file_handler(log_file=None) -> logging.FileHandler:
    handler = logging.FileHandler(log_file or _default_log_file(), encoding='utf-8')
    handler.setLevel(logging.DEBUG)  # file always gets everything
    handler.setFormatter(logging.Formatter(DETAILED_FORMAT))
    return handler


def setup_logger(
    name: str,
    level: str = 'INFO',
    console_output: bool = True,
    detailed: bool = False
) -> logging.Logger:
    """
    Create a logger with a stderr handler.

    If file logging is already enabled the logger writes to that file too.
    Calling it again for the same name returns the existing logger.

    Args:
        name: Logger name (usually __name__)
        level: Log level ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
        console_output: Attach the stderr handler
        detailed: Include filename and line number in console records

    Returns:
        Configured logger instance
    """
    if name in _loggers:
        return _loggers[name]

    logger = logging.getLogger(name)
    logger.setLevel(_level(level))
    logger.handlers.clear()

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(_level(level))
        console_handler.setFormatter(logging.Formatter(DETAILED_FORMAT if detailed else DEFAULT_FORMAT))
        logger.addHandler(console_handler)

    if _file_handler is not None:
        logger.addHandler(_file_handler)

    logger.propagate = False
    _loggers[name] = logger
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get or create a logger with default settings."""
    if name in _loggers:
        return _loggers[name]
    return setup_logger(name)


def set_log_level(level: str):
    """Set the level of every logger and its console handler."""
    log_level = _level(level)
    for logger in _loggers.values():
        logger.setLevel(log_level)
        for handler in logger.handlers:
            if not isinstance(handler, logging.FileHandler):
                handler.setLevel(log_level)


def enable_file_logging(log_file: Optional[str] = None) -> Path:
    """
    Write the records of every logger, including ones created later, to a file.

    Args:
        log_file: Log file path (default: logs/access_log_parser_<date>.log)

    Returns:
        Path of the log file in use
    """
    global _file_handler

    if _file_handler is None:
        _file_handler = _make_file_handler(log_file)
        for logger in _loggers.values():
            logger.addHandler(_file_handler)

    return Path(_file_handler.baseFilename)


def configure_logging(section: Dict[str, Any]):
    """
    Apply the 'logging' section of config.yaml.

    Recognized keys: level, file_output, log_file.
    """
    if section.get('level'):
        set_log_level(section['level'])
    if section.get('file_output'):
        path = enable_file_logging(section.get('log_file'))
        get_logger(__name__).debug(f"Logging to file: {path}")


# Default package logger
_root_logger = setup_logger('access_log_parser', level='INFO')
