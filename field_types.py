#!/usr/bin/python3
# -*- coding: utf-8 -*-
"""
Field Types Module for Access Log Parser

A schema is made of elements. Each element is one named field of a log line:
a regular expression fragment that the schema compiler wraps in exactly one
capturing group, and a FieldDecoder that turns the captured text into a typed
value when the field is first accessed.

Supported kinds:
    string   .*? (or .* with greedy=True)     -> str
    integer  [+-]?\\d+                          -> int
    float    [+-]?\\d+(?:\\.\\d*)?                -> float
    ip       same as string                     -> IPv4Address / IPv6Address
    date     derived from a strptime format     -> datetime in UTC
"""
import ipaddress
import re
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Union

from core.exceptions import FieldDecodeError

# Value of a decoded field; None marks an absent value
FieldValue = Union[
    str, int, float, datetime,
    ipaddress.IPv4Address, ipaddress.IPv6Address,
    None
]

NCSA_DATE_FORMAT = '%d/%b/%Y:%H:%M:%S %z'
IIS_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

INTEGER_PATTERN = r'[+-]?\d+'
FLOAT_PATTERN = r'[+-]?\d+(?:\.\d*)?'

_DATE_DIRECTIVE_RE = re.compile(r'%.')


class FieldDecoder:
    """
    Converts the captured text of one field into its value.

    Decoders are stateless; ParsedLogLine caches their results.

    Args:
        name: Field name (used in error messages)
        convert: Function from raw text to value (identity when None)
        nil_on: Raw text that means "absent"; conversion is skipped for it
        process: Optional function applied to a converted, non-absent value
    """

    def __init__(
        self,
        name: str,
        convert: Optional[Callable[[str], Any]] = None,
        nil_on: Optional[str] = None,
        process: Optional[Callable[[Any], Any]] = None
    ):
        self.name = name
        self.convert = convert
        self.nil_on = nil_on
        self.process = process

    def __call__(self, raw: str) -> FieldValue:
        if self.nil_on is not None and raw == self.nil_on:
            return None

        try:
            value = self.convert(raw) if self.convert is not None else raw
            if self.process is not None and value is not None:
                value = self.process(value)
        except Exception as e:
            raise FieldDecodeError(self.name, raw, e) from e

        return value

    def __repr__(self):
        return f"FieldDecoder({self.name!r}, nil_on={self.nil_on!r})"


class Element:
    """A single named field: pattern fragment plus decoder."""

    def __init__(self, name: str, pattern: str, decoder: FieldDecoder):
        self.name = name
        self.pattern = pattern
        self.decoder = decoder

    def regexp(self) -> str:
        # the sentinel is an alternative so it matches even where the
        # fragment would not, e.g. '-' for an integer field
        if self.decoder.nil_on is not None:
            return f"({re.escape(self.decoder.nil_on)}|{self.pattern})"
        return f"({self.pattern})"

    def names(self) -> List[str]:
        return [self.name]

    def decoders(self) -> List[FieldDecoder]:
        return [self.decoder]

    def __repr__(self):
        return f"Element({self.name!r}, {self.pattern!r})"


def string_pattern(greedy: bool = False) -> str:
    return '.*' if greedy else '.*?'


def date_pattern(date_format: str) -> str:
    """
    Build the pattern fragment for a strptime format.

    Literal characters are escaped and every %x directive becomes '.+'.
    When the format ends with a directive the last '.+' is made lazy.
    The date itself is never optional.

    >>> date_pattern('%Y-%m-%d')
    '.+\\\\-.+\\\\-.+?'
    """
    literals = _DATE_DIRECTIVE_RE.split(date_format)
    pattern = '.+'.join(re.escape(literal) for literal in literals)
    if len(literals) > 1 and literals[-1] == '':
        pattern += '?'
    return pattern


def parse_date(raw: str, date_format: str) -> datetime:
    """Parse raw with strptime and normalize to UTC (naive times are taken as UTC)."""
    value = datetime.strptime(raw, date_format)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _date_converter(date_format: str) -> Callable[[str], datetime]:
    def convert(raw: str) -> datetime:
        return parse_date(raw, date_format)
    return convert


def custom_element(name, pattern, convert=None, nil_on=None, process=None) -> Element:
    return Element(name, pattern, FieldDecoder(name, convert, nil_on, process))


def string_element(name, greedy=False, nil_on=None, process=None) -> Element:
    return custom_element(name, string_pattern(greedy), None, nil_on, process)


def integer_element(name, nil_on=None, process=None) -> Element:
    return custom_element(name, INTEGER_PATTERN, int, nil_on, process)


def float_element(name, nil_on=None, process=None) -> Element:
    return custom_element(name, FLOAT_PATTERN, float, nil_on, process)


def ip_element(name, greedy=False, nil_on=None, process=None) -> Element:
    return custom_element(name, string_pattern(greedy), ipaddress.ip_address, nil_on, process)


def date_element(name, date_format=NCSA_DATE_FORMAT, nil_on=None, process=None) -> Element:
    return custom_element(
        name, date_pattern(date_format), _date_converter(date_format), nil_on, process
    )
