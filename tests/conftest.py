"""
Pytest configuration and fixtures for Access Log Parser tests
"""

import gzip
import pytest
from pathlib import Path
import tempfile
import shutil

from core.config import ConfigManager


APACHE_COMMON_LINES = [
    '127.0.0.1 - - [21/Sep/2005:23:06:41 +0100] "GET / HTTP/1.1" 404 -',
    '192.168.0.10 - frank [10/Oct/2000:13:55:36 -0700] "GET /apache_pb.gif HTTP/1.0" 200 2326',
    '10.0.0.1 - - [08/Aug/2024:09:00:02 +0000] "POST /api/users HTTP/1.1" 201 57',
]

APACHE_COMBINED_LINES = [
    '127.0.0.1 - - [08/Aug/2024:09:00:00 +0000] "GET /api/test HTTP/1.1" 200 1234 "-" "Mozilla/5.0"',
    '127.0.0.2 - - [08/Aug/2024:09:00:01 +0000] "POST /api/users/123 HTTP/1.1" 404 567 '
    '"http://example.com/start" "curl/8.0 (x86_64)"',
    '127.0.0.3 - - [08/Aug/2024:09:00:02 +0000] "GET /api/products HTTP/1.1" 500 890 "-" "Mozilla/5.0"',
]

IIS_LINES = [
    '#Software: Microsoft Internet Information Services 6.0',
    '#Fields: date time s-ip cs-method cs-uri-stem cs-uri-query s-port cs-username '
    'c-ip cs(User-Agent) sc-status sc-substatus sc-win32-status time-taken',
    '2008-10-03 01:02:03 10.0.0.1 GET /index.html q=1 80 - 192.168.1.2 Mozilla/4.0+(compatible) 200 0 0 1500',
    '2008-10-03 01:02:04 10.0.0.1 POST /login - 443 bob 192.168.1.3 - 302 0 0 15',
]


@pytest.fixture(autouse=True)
def reset_config():
    """Every test starts without a loaded config.yaml"""
    ConfigManager().clear_cache()
    yield
    ConfigManager().clear_cache()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files"""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path)


@pytest.fixture
def sample_common_log(temp_dir):
    """Create a sample Apache common log file"""
    log_file = temp_dir / "sample_common.log"
    log_file.write_text('\n'.join(APACHE_COMMON_LINES) + '\n')
    return log_file


@pytest.fixture
def sample_apache_log(temp_dir):
    """Create a sample Apache combined log file"""
    log_file = temp_dir / "sample_apache.log"
    log_file.write_text('\n'.join(APACHE_COMBINED_LINES) + '\n')
    return log_file


@pytest.fixture
def sample_gzip_log(temp_dir):
    """Create a gzip-compressed Apache combined log file"""
    log_file = temp_dir / "sample_apache.log.gz"
    with gzip.open(log_file, 'wt', encoding='utf-8') as f:
        f.write('\n'.join(APACHE_COMBINED_LINES) + '\n')
    return log_file


@pytest.fixture
def sample_iis_log(temp_dir):
    """Create a sample IIS W3C log file with header comments"""
    log_file = temp_dir / "sample_iis.log"
    log_file.write_text('\n'.join(IIS_LINES) + '\n')
    return log_file


@pytest.fixture
def sample_broken_log(temp_dir):
    """Apache common log with one non-matching line, a blank line and a bad IP"""
    lines = [
        APACHE_COMMON_LINES[0],
        'this line is not an access log entry',
        '',
        'not-an-ip - - [21/Sep/2005:23:06:41 +0100] "GET /x HTTP/1.1" 200 10',
        APACHE_COMMON_LINES[1],
    ]
    log_file = temp_dir / "sample_broken.log"
    log_file.write_text('\n'.join(lines) + '\n')
    return log_file
