"""
Core module for Access Log Parser

This module provides common utilities and infrastructure:
- Custom exceptions
- Configuration management
- Logging setup
- Utility classes (ParamParser and the config.yaml section views)
"""

from .exceptions import (
    LogParserError,
    SchemaBuildError,
    NoMatchError,
    FieldDecodeError,
    ResourceClosedError,
    FileNotFoundError,
    InvalidFormatError,
    ValidationError,
    ConfigurationError
)
from .config import ConfigManager
from .logging_config import setup_logger, get_logger
from .utils import ParamParser, ParserConfig, LoggingConfig, MultiprocessingConfig

__all__ = [
    'LogParserError',
    'SchemaBuildError',
    'NoMatchError',
    'FieldDecodeError',
    'ResourceClosedError',
    'FileNotFoundError',
    'InvalidFormatError',
    'ValidationError',
    'ConfigurationError',
    'ConfigManager',
    'setup_logger',
    'get_logger',
    'ParamParser',
    'ParserConfig',
    'LoggingConfig',
    'MultiprocessingConfig',
]
