"""
Custom exceptions for Access Log Parser

This module defines all custom exceptions used throughout the library.
"""


class LogParserError(Exception):
    """Base exception for all Access Log Parser errors"""
    pass


class SchemaBuildError(LogParserError):
    """Raised when a schema builder function cannot be compiled into a parser"""

    def __init__(self, message: str, schema: str = None):
        self.schema = schema
        if schema:
            message = f"Schema '{schema}': {message}"
        super().__init__(message)


class NoMatchError(LogParserError):
    """Raised when a log line does not match the compiled parser pattern"""

    def __init__(self, message: str, line: str = None, line_number: int = None):
        self.line = line
        self.line_number = line_number
        if line_number:
            message = f"Parse error at line {line_number}: {message}"
        super().__init__(message)


class FieldDecodeError(LogParserError):
    """Raised on field access when the captured text cannot be decoded"""

    def __init__(self, field: str, raw: str, error: Exception):
        self.field = field
        self.raw = raw
        self.error = error
        super().__init__(f"Failed to decode field '{field}' from {raw!r}: {error}")


class ResourceClosedError(LogParserError):
    """Raised when iterating a line source that was already consumed and closed"""

    def __init__(self, message: str = None):
        if message is None:
            message = "Line source already iterated and closed"
        super().__init__(message)


class FileNotFoundError(LogParserError):
    """Raised when an input file is not found"""

    def __init__(self, file_path: str, message: str = None):
        self.file_path = file_path
        if message is None:
            message = f"File not found: {file_path}"
        super().__init__(message)


class InvalidFormatError(LogParserError):
    """Raised when a log format name or LogFormat string is not supported"""

    def __init__(self, message: str, format_type: str = None):
        self.format_type = format_type
        super().__init__(message)


class ValidationError(LogParserError):
    """Raised when input validation fails"""

    def __init__(self, parameter: str, message: str):
        self.parameter = parameter
        super().__init__(f"Validation error for '{parameter}': {message}")


class ConfigurationError(LogParserError):
    """Raised when configuration is invalid or missing"""

    def __init__(self, message: str, config_file: str = None):
        self.config_file = config_file
        if config_file:
            message = f"Configuration error in {config_file}: {message}"
        super().__init__(message)
