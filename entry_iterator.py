#!/usr/bin/python3
# -*- coding: utf-8 -*-
"""
Entry Iterator Module for Access Log Parser

Feeds the lines of a stream or file to an AccessLogParser. Lines are
stripped; blank lines and lines matching the schema's skip_line patterns are
ignored and not counted.

Iteration modes:
    each()                lenient: non-matching lines are counted and skipped
    each_strict()         the first non-matching line raises NoMatchError
    each_parsed_strict()  strict, and every entry is fully decoded before it
                          is yielded (the first FieldDecodeError propagates)

An iterator can be consumed once. It closes the stream it owns when the
iteration finishes, is abandoned, or fails; a second attempt raises
ResourceClosedError.

    with parser.parse_file('access.log') as entries:
        for entry in entries.each():
            ...
    entries.stats   # Stats(failures=1, successes=2)
"""
import gzip
import weakref
from pathlib import Path
from typing import IO, Iterator, NamedTuple, Union

from core.exceptions import NoMatchError, ResourceClosedError
from core.logging_config import get_logger

logger = get_logger(__name__)

GZIP_MAGIC = b'\x1f\x8b'


class Stats(NamedTuple):
    failures: int
    successes: int


def open_log_file(file_path: Union[str, Path]) -> IO[str]:
    """Open a log file for reading text, transparently decompressing gzip."""
    with open(file_path, 'rb') as f:
        magic = f.read(2)

    if magic == GZIP_MAGIC:
        logger.debug(f"Opening gzip log file: {file_path}")
        return gzip.open(file_path, 'rt', encoding='utf-8', errors='replace')
    return open(file_path, 'r', encoding='utf-8', errors='replace')


class EntryIterator:
    """
    Single-use iterator of ParsedLogLine entries over a text stream.

    Blank lines never reach the parser, so they count as neither a failure
    nor a success, even in lenient mode.

    Args:
        parser: AccessLogParser used for every line
        io: Text stream yielding lines
        close_io: Close io when iteration ends
        source: Name used in log messages (defaults to io.name)
    """

    def __init__(self, parser, io: IO[str], close_io: bool = False, source: str = None):
        self._parser = parser
        self._io = io
        self._close_io = close_io
        self._consumed = False
        self._closed = False
        self._failures = 0
        self._successes = 0
        self.source = source or getattr(io, 'name', '<stream>')

    @property
    def stats(self) -> Stats:
        """Failure and success counts so far."""
        return Stats(self._failures, self._successes)

    @property
    def closed(self) -> bool:
        return self._closed

    def each(self) -> Iterator:
        """Lenient iteration; see stats for the failure count."""
        return self._start(strict=False, decode=False)

    def each_strict(self) -> Iterator:
        """Iteration that raises NoMatchError on the first non-matching line."""
        return self._start(strict=True, decode=False)

    def each_parsed_strict(self) -> Iterator:
        """Strict iteration over fully decoded entries."""
        return self._start(strict=True, decode=True)

    def __iter__(self):
        return self.each()

    def close(self):
        if self._closed:
            return
        self._closed = True
        if self._close_io:
            self._io.close()
            logger.debug(f"Closed {self.source}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False

    def _claim(self):
        if self._consumed or self._closed:
            self.close()
            raise ResourceClosedError(f"{self.source}: line source already iterated and closed")
        self._consumed = True

    def _start(self, strict: bool, decode: bool) -> Iterator:
        self._claim()
        entries = self._entries(strict, decode)
        # a generator dropped before its first next() never reaches its finally
        weakref.finalize(entries, self.close)
        return entries

    def _entries(self, strict: bool, decode: bool):
        try:
            for line_number, line in enumerate(self._io, 1):
                line = line.strip()
                if not line:
                    continue
                if self._parser.skip(line):
                    logger.debug(f"{self.source}:{line_number}: skipped")
                    continue

                try:
                    entry = self._parser.parse(line, line_number)
                except NoMatchError:
                    if strict:
                        raise
                    self._failures += 1
                    logger.debug(f"{self.source}:{line_number}: no match: {line[:100]}")
                    continue

                if decode:
                    entry.parse_all()
                self._successes += 1
                yield entry
        finally:
            self.close()
            logger.info(
                f"Parsed {self.source}: {self._successes} entries, {self._failures} failures"
            )
