"""
Tests for core.logging_config module
"""

import logging

import pytest

from core import logging_config
from core.logging_config import configure_logging, enable_file_logging, get_logger, set_log_level


@pytest.fixture
def file_logging(temp_dir):
    """Enable file logging into the temp dir and detach it afterwards"""
    path = enable_file_logging(str(temp_dir / "parser.log"))
    yield path
    handler = logging_config._file_handler
    for logger in logging_config._loggers.values():
        logger.removeHandler(handler)
    handler.close()
    logging_config._file_handler = None


@pytest.fixture
def restore_level():
    yield
    set_log_level('INFO')


def test_get_logger_cached():
    """Test get_logger returns the same logger for a name"""
    assert get_logger('tests.cached') is get_logger('tests.cached')


def test_set_log_level(restore_level):
    """Test set_log_level updates every logger"""
    logger = get_logger('tests.level')
    set_log_level('warning')
    assert logger.level == logging.WARNING
    set_log_level('bogus')
    assert logger.level == logging.INFO


def test_file_logging(file_logging):
    """Test records of existing and new loggers reach the log file"""
    get_logger('log_parser').info("existing logger record")
    get_logger('tests.created_later').warning("new logger record")
    logging_config._file_handler.flush()

    text = file_logging.read_text(encoding='utf-8')
    assert "existing logger record" in text
    assert "new logger record" in text


def test_configure_logging(file_logging, restore_level):
    """Test applying a 'logging' config section"""
    logger = get_logger('tests.configured')
    configure_logging({'level': 'ERROR', 'file_output': True, 'log_file': None})
    assert logger.level == logging.ERROR
    # already enabled, so the existing file is kept
    assert enable_file_logging() == file_logging
