#!/usr/bin/python3
# -*- coding: utf-8 -*-
"""
Log Parser Module for Access Log Parser

AccessLogParser compiles a schema into one whole-line regular expression plus
a decoder per field. parse() matches a line and returns a ParsedLogLine whose
fields are decoded on first access and cached.

    parser = AccessLogParser('apache_common')
    entry = parser.parse('127.0.0.1 - - [21/Sep/2005:23:06:41 +0100] "GET / HTTP/1.1" 404 -')
    entry.status        # 404
    entry['time']       # datetime(2005, 9, 21, 22, 6, 41, tzinfo=timezone.utc)
    entry.to_dict()

A parser is immutable once built and can be shared between threads.
A ParsedLogLine is not thread-safe.
"""
import re
from collections import Counter
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from core.exceptions import (
    FieldDecodeError,
    FileNotFoundError as CustomFileNotFoundError,
    NoMatchError,
    SchemaBuildError
)
from core.logging_config import get_logger
from element_groups import RootGroup, get_schema, registered_schemas
from entry_iterator import EntryIterator, open_log_file
from field_types import FieldDecoder, FieldValue
import common_formats  # noqa: F401  registers the built-in formats

logger = get_logger(__name__)

UNPARSED = '<unparsed>'


class ParsedLogLine:
    """
    One matched log line.

    Fields are reachable as attributes (entry.status), as items
    (entry['status']) or with get(). A field whose name collides with a
    method of this class (e.g. 'names') is only reachable as an item.

    Decoding happens on first access. Successful values are cached; failures
    raise FieldDecodeError on every access and are never cached.
    """

    __slots__ = ('_names', '_strings', '_decoders', '_cache')

    def __init__(self, names: Sequence[str], decoders: Dict[str, FieldDecoder], strings: Sequence[str]):
        self._names = tuple(names)
        self._strings = dict(zip(names, strings))
        self._decoders = decoders
        self._cache: Dict[str, FieldValue] = {}

    @property
    def names(self) -> Tuple[str, ...]:
        return self._names

    def get(self, name: str) -> FieldValue:
        """
        Decoded value of a field.

        Raises:
            KeyError: If the schema has no such field
            FieldDecodeError: If the captured text cannot be decoded
        """
        if name in self._cache:
            return self._cache[name]

        raw = self._strings[name]
        try:
            value = self._decoders[name](raw)
        except FieldDecodeError:
            raise
        except Exception as e:
            raise FieldDecodeError(name, raw, e) from e

        self._cache[name] = value
        return value

    def raw(self, name: str) -> str:
        """Captured text of a field, before decoding."""
        return self._strings[name]

    def is_decoded(self, name: str) -> bool:
        return name in self._cache

    def parse_all(self) -> 'ParsedLogLine':
        """Decode every field left to right; the first failure propagates."""
        for name in self._names:
            self.get(name)
        return self

    def to_dict(self) -> Dict[str, FieldValue]:
        self.parse_all()
        return {name: self._cache[name] for name in self._names}

    def __getattr__(self, name: str) -> FieldValue:
        if name.startswith('_'):
            raise AttributeError(name)
        try:
            return self[name]
        except KeyError:
            raise AttributeError(f"'{type(self).__name__}' object has no field '{name}'") from None

    def __getitem__(self, name: str) -> FieldValue:
        if name not in self._strings:
            raise KeyError(name)
        return self.get(name)

    def __contains__(self, name) -> bool:
        return name in self._strings

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self):
        fields = []
        for name in sorted(self._names):
            if name in self._cache:
                fields.append(f"{name}: {self._cache[name]!r}")
            else:
                fields.append(f"{name}: {UNPARSED}")
        return f"<{type(self).__name__}: {', '.join(fields)}>"


class AccessLogParser:
    """
    Compiled access log schema.

    Args:
        schema: Builder function taking the root group, or the name of a
            registered schema
        separator: Separator between top-level fields (default: one space)

    Raises:
        SchemaBuildError: If the schema references an unknown schema, nests
            groups incorrectly, declares a field twice or yields an invalid
            pattern
    """

    def __init__(self, schema: Union[str, Callable], separator: str = ' '):
        if isinstance(schema, str):
            self.schema_name: Optional[str] = schema
            builder = get_schema(schema)
        else:
            self.schema_name = None
            builder = schema

        label = self.schema_name or getattr(builder, '__name__', None)

        root = RootGroup(separator)
        builder(root)

        names = root.names()
        decoders = root.decoders()

        duplicates = sorted(name for name, count in Counter(names).items() if count > 1)
        if duplicates:
            raise SchemaBuildError(f"Duplicate field names: {', '.join(duplicates)}", label)

        pattern = root.regexp()
        try:
            regexp = re.compile(pattern)
        except re.error as e:
            raise SchemaBuildError(f"Invalid pattern {pattern!r}: {e}", label) from e

        if regexp.groups != len(names):
            raise SchemaBuildError(
                f"Pattern has {regexp.groups} capturing groups for {len(names)} fields; "
                f"custom element patterns must not contain capturing groups",
                label
            )

        try:
            skip_lines = [re.compile(p) for p in root.skip_lines]
        except re.error as e:
            raise SchemaBuildError(f"Invalid skip_line pattern: {e}", label) from e

        self.separator = separator
        self._pattern = pattern
        self._regexp = regexp
        self._names = tuple(names)
        self._decoders = dict(zip(names, decoders))
        self._skip_lines = tuple(skip_lines)

        logger.debug(f"Compiled parser {label or '<anonymous>'}: {len(names)} fields, pattern {pattern}")

    @classmethod
    def for_format(cls, name: str) -> 'AccessLogParser':
        """Parser for a registered format, e.g. 'apache_combined'."""
        return cls(name)

    @property
    def pattern(self) -> str:
        """Pattern matched against the whole line."""
        return self._pattern

    @property
    def names(self) -> Tuple[str, ...]:
        return self._names

    @property
    def skip_patterns(self) -> Tuple[str, ...]:
        return tuple(r.pattern for r in self._skip_lines)

    def skip(self, line: str) -> bool:
        """True if line matches any skip_line pattern of the schema."""
        return any(r.search(line) for r in self._skip_lines)

    def parse(self, line: str, line_number: Optional[int] = None) -> ParsedLogLine:
        """
        Match a log line and return its lazily decoded fields.

        Raises:
            NoMatchError: If the line does not match the schema
        """
        match = self._regexp.fullmatch(line)
        if match is None:
            raise NoMatchError('parser pattern did not match log line', line, line_number)

        # groups of an optional group that fell back to its catch-all
        # alternative did not participate; they decode from ''
        return ParsedLogLine(self._names, self._decoders, match.groups(default=''))

    def parse_io(self, io, close_io: bool = False) -> EntryIterator:
        """Iterator over the entries of an open text stream."""
        return EntryIterator(self, io, close_io)

    def parse_file(self, file_path: Union[str, Path]) -> EntryIterator:
        """
        Iterator over the entries of a plain or gzip-compressed log file.
        The iterator closes the file once iteration ends.

        Raises:
            FileNotFoundError: If file_path does not exist
        """
        if not Path(file_path).exists():
            raise CustomFileNotFoundError(str(file_path))
        return EntryIterator(self, open_log_file(file_path), close_io=True, source=str(file_path))

    def __repr__(self):
        return f"<{type(self).__name__}: {self._pattern!r} => {' '.join(self._names)}>"


def get_parser(name: str) -> AccessLogParser:
    return AccessLogParser.for_format(name)


def available_formats() -> List[str]:
    return registered_schemas()
