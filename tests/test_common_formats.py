"""
Tests for the built-in log formats
"""

import ipaddress
from datetime import datetime, timezone

import pytest

from log_parser import AccessLogParser, available_formats


COMMON_LINE = '192.168.0.10 - frank [10/Oct/2000:13:55:36 -0700] "GET /apache_pb.gif HTTP/1.0" 200 2326'

APACHE_COMBINED_LINES = [
    '127.0.0.1 - - [08/Aug/2024:09:00:00 +0000] "GET /api/test HTTP/1.1" 200 1234 "-" "Mozilla/5.0"',
    '127.0.0.2 - - [08/Aug/2024:09:00:01 +0000] "POST /api/users/123 HTTP/1.1" 404 567 '
    '"http://example.com/start" "curl/8.0 (x86_64)"',
]

IIS_LINES = [
    '#Software: Microsoft Internet Information Services 6.0',
    '#Fields: date time s-ip cs-method cs-uri-stem cs-uri-query s-port cs-username',
    '2008-10-03 01:02:03 10.0.0.1 GET /index.html q=1 80 - 192.168.1.2 Mozilla/4.0+(compatible) 200 0 0 1500',
    '2008-10-03 01:02:04 10.0.0.1 POST /login - 443 bob 192.168.1.3 - 302 0 0 15',
]


def test_available_formats():
    """Test every built-in format is registered"""
    formats = available_formats()
    for name in ('apache_common', 'apache_vhost_common', 'apache_combined',
                 'apache_referer', 'apache_user_agent', 'icecast', 'iis'):
        assert name in formats


class TestApacheFormats:
    """Tests for the Apache formats"""

    def test_common(self):
        """Test the Apache common format"""
        entry = AccessLogParser('apache_common').parse(COMMON_LINE)
        assert entry.remote_host == ipaddress.ip_address('192.168.0.10')
        assert entry.user == 'frank'
        assert entry.time == datetime(2000, 10, 10, 20, 55, 36, tzinfo=timezone.utc)
        assert entry.uri == '/apache_pb.gif'
        assert entry.response_size == 2326

    def test_vhost_common(self):
        """Test the virtual host prefix"""
        entry = AccessLogParser('apache_vhost_common').parse('www.example.com ' + COMMON_LINE)
        assert entry.vhost == 'www.example.com'
        assert entry.status == 200
        assert entry.names[:2] == ('vhost', 'remote_host')

    def test_combined(self):
        """Test the Apache combined format"""
        parser = AccessLogParser('apache_combined')
        first = parser.parse(APACHE_COMBINED_LINES[0])
        second = parser.parse(APACHE_COMBINED_LINES[1])

        assert first.referer is None
        assert first.user_agent == 'Mozilla/5.0'
        assert second.method == 'POST'
        assert second.referer == 'http://example.com/start'
        assert second.user_agent == 'curl/8.0 (x86_64)'
        assert second.remainder is None

    def test_combined_field_order(self):
        """Test combined extends common"""
        common = AccessLogParser('apache_common').names
        combined = AccessLogParser('apache_combined').names
        assert combined[:len(common) - 1] == common[:-1]
        assert combined[-3:] == ('referer', 'user_agent', 'remainder')

    def test_referer(self):
        """Test the referer log format"""
        parser = AccessLogParser('apache_referer')
        entry = parser.parse('http://example.com/links.html -> /index.html')
        assert entry.referer == 'http://example.com/links.html'
        assert entry.url == '/index.html'
        assert parser.parse('- -> /index.html').referer is None

    def test_user_agent(self):
        """Test the agent log format keeps the whole line"""
        parser = AccessLogParser('apache_user_agent')
        entry = parser.parse('Mozilla/4.08 [en] (Win98; I ;Nav)')
        assert entry.user_agent == 'Mozilla/4.08 [en] (Win98; I ;Nav)'
        assert entry.remainder is None
        assert parser.parse('-').user_agent is None


class TestOtherFormats:
    """Tests for the Icecast and IIS formats"""

    def test_icecast(self):
        """Test the Icecast duration field"""
        entry = AccessLogParser('icecast').parse(APACHE_COMBINED_LINES[0] + ' 3600')
        assert entry.duration == 3600
        assert entry.user_agent == 'Mozilla/5.0'

    def test_iis(self):
        """Test an IIS W3C line"""
        entry = AccessLogParser('iis').parse(IIS_LINES[2])

        assert entry.time == datetime(2008, 10, 3, 1, 2, 3, tzinfo=timezone.utc)
        assert entry.server_ip == ipaddress.ip_address('10.0.0.1')
        assert entry.method == 'GET'
        assert entry.url == '/index.html'
        assert entry.query == 'q=1'
        assert entry.port == 80
        assert entry.username is None
        assert entry.client_ip == ipaddress.ip_address('192.168.1.2')
        assert entry.user_agent == 'Mozilla/4.0 (compatible)'
        assert entry.status == 200
        assert entry.substatus == 0
        assert entry.win32_status == 0
        assert entry.duration == pytest.approx(1.5)

    def test_iis_absent_values(self):
        """Test IIS '-' placeholders"""
        entry = AccessLogParser('iis').parse(IIS_LINES[3])
        assert entry.query is None
        assert entry.username == 'bob'
        assert entry.user_agent is None
        assert entry.duration == pytest.approx(0.015)

    def test_iis_comment_lines_skipped(self):
        """Test IIS header lines are skip lines"""
        parser = AccessLogParser('iis')
        assert parser.skip(IIS_LINES[0])
        assert parser.skip(IIS_LINES[1])
