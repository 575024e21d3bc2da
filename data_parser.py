#!/usr/bin/python3
# -*- coding: utf-8 -*-
"""
Data Parser Module for Access Log Parser

Parses whole log files (plain or gzip) into pandas DataFrames with one
column per schema field. Large files are split into chunks parsed by a
process pool when the format is a registered schema.

Field decode errors do not drop the line: the failing cell is left empty
and the error is counted.
"""
import pandas as pd
from functools import partial
from multiprocessing import Pool
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from core.exceptions import (
    FieldDecodeError,
    FileNotFoundError as CustomFileNotFoundError,
    NoMatchError,
    ValidationError
)
from core.logging_config import get_logger
from core.utils import MultiprocessingConfig
from element_groups import registered_schemas
from entry_iterator import open_log_file
from log_parser import AccessLogParser, ParsedLogLine

logger = get_logger(__name__)

# Parsers built inside worker processes, by (format name, separator)
_worker_parsers: Dict[Tuple[str, str], AccessLogParser] = {}


def _get_worker_parser(log_format: str, separator: str = ' ') -> AccessLogParser:
    key = (log_format, separator)
    if key not in _worker_parsers:
        _worker_parsers[key] = AccessLogParser(log_format, separator=separator)
    return _worker_parsers[key]


def entry_to_row(entry: ParsedLogLine, columns: Optional[List[str]] = None) -> Tuple[Dict, int]:
    """
    Decode the given columns of an entry, field by field.

    Returns:
        Tuple of (row dict, number of fields that failed to decode)
    """
    row = {}
    decode_errors = 0
    for name in columns or entry.names:
        try:
            row[name] = entry.get(name)
        except FieldDecodeError as e:
            logger.debug(str(e))
            row[name] = None
            decode_errors += 1
    return row, decode_errors


def _parse_lines_chunk(lines_chunk, parser, columns=None, separator=' '):
    """
    Parse a chunk of (line_num, line) tuples.

    Args:
        lines_chunk: List of (line_num, line) tuples
        parser: AccessLogParser, or a registered format name (worker processes)
        columns: Columns to decode (None for all)
        separator: Top-level separator when parser is a format name

    Returns:
        Tuple of (rows, failed_lines, decode_errors)
    """
    if isinstance(parser, str):
        parser = _get_worker_parser(parser, separator)

    rows = []
    failed_lines = []
    decode_errors = 0

    for line_num, line in lines_chunk:
        line = line.strip()
        if not line or parser.skip(line):
            continue
        try:
            entry = parser.parse(line, line_num)
        except NoMatchError:
            failed_lines.append((line_num, line))
            continue
        row, errors = entry_to_row(entry, columns)
        rows.append(row)
        decode_errors += errors

    return rows, failed_lines, decode_errors


def _read_lines_from_file(input_file, max_lines=None):
    """
    Read lines from file (gzip or plain text) with line numbers.

    Args:
        input_file: Path to input file
        max_lines: Maximum number of lines to read (None for all)

    Returns:
        List of (line_num, line) tuples
    """
    lines = []
    with open_log_file(input_file) as f:
        for line_num, line in enumerate(f, 1):
            lines.append((line_num, line))
            if max_lines and line_num >= max_lines:
                break
    return lines


def parse_log_file(
    input_file: Union[str, Path],
    log_format: Union[str, AccessLogParser],
    use_multiprocessing: Optional[bool] = None,
    num_workers: Optional[int] = None,
    chunk_size: Optional[int] = None,
    columns: Optional[List[str]] = None,
    max_lines: Optional[int] = None
) -> pd.DataFrame:
    """
    Parse a log file into a DataFrame.

    Args:
        input_file: Log file path (plain text or gzip)
        log_format: Registered format name or a compiled AccessLogParser
        use_multiprocessing: Override the config.yaml setting
        num_workers: Number of worker processes (None = config or auto-detect)
        chunk_size: Lines per chunk (None = config)
        columns: Fields to decode and keep (None for all fields)
        max_lines: Read at most this many lines

    Returns:
        pandas.DataFrame with one row per matched line

    Raises:
        FileNotFoundError: If input_file does not exist
        ValidationError: If a requested column is not a field of the format
        SchemaBuildError: If log_format is an unknown format name
    """
    if not Path(input_file).exists():
        raise CustomFileNotFoundError(str(input_file))

    parser = AccessLogParser(log_format) if isinstance(log_format, str) else log_format

    if columns:
        unknown = [c for c in columns if c not in parser.names]
        if unknown:
            raise ValidationError(
                'columns',
                f"Unknown fields: {', '.join(unknown)}; available: {', '.join(parser.names)}"
            )
    else:
        columns = list(parser.names)

    lines = _read_lines_from_file(input_file, max_lines)
    logger.info(f"Read {len(lines)} lines from {input_file}")

    use_mp, num_workers, chunk_size = MultiprocessingConfig.get_processing_params(
        len(lines),
        override_enabled=use_multiprocessing,
        override_num_workers=num_workers,
        override_chunk_size=chunk_size
    )

    # workers rebuild the parser from its registered name and separator
    format_name = parser.schema_name
    if use_mp and format_name not in registered_schemas():
        logger.info("Parser is not a registered format, parsing in a single process")
        use_mp = False

    if use_mp and num_workers and num_workers > 1:
        chunks = [lines[i:i + chunk_size] for i in range(0, len(lines), chunk_size)]
        logger.info(f"Parsing {len(chunks)} chunks with {num_workers} workers")
        with Pool(processes=num_workers) as pool:
            results = pool.map(
                partial(
                    _parse_lines_chunk, parser=format_name, columns=columns,
                    separator=parser.separator
                ),
                chunks
            )
    else:
        results = [_parse_lines_chunk(lines, parser, columns)]

    rows = []
    failed_lines = []
    decode_errors = 0
    for chunk_rows, chunk_failed, chunk_errors in results:
        rows.extend(chunk_rows)
        failed_lines.extend(chunk_failed)
        decode_errors += chunk_errors

    if failed_lines:
        logger.warning(f"{len(failed_lines)} lines did not match the log format:")
        for line_num, failed_line in failed_lines[:10]:
            logger.warning(f"Line {line_num}: {failed_line[:100]}")
        if len(failed_lines) > 10:
            logger.warning(f"... and {len(failed_lines) - 10} more failed lines")
    if decode_errors:
        logger.warning(f"{decode_errors} field values could not be decoded and were left empty")

    df = pd.DataFrame(rows, columns=columns)
    logger.info(f"Total parsed entries: {len(df)}")
    return df


def export_dataframe(df: pd.DataFrame, output_path=None, output_format: str = 'csv'):
    """
    Write a parsed DataFrame as CSV or JSON Lines.

    Args:
        df: DataFrame from parse_log_file
        output_path: File path, or None to return the text
        output_format: 'csv' or 'json'

    Returns:
        The text when output_path is None, otherwise None
    """
    if output_format == 'csv':
        return df.to_csv(output_path, index=False)
    if output_format == 'json':
        return df.to_json(
            output_path, orient='records', lines=True,
            date_format='iso', default_handler=str
        )
    raise ValidationError('output_format', f"Unsupported output format: {output_format}")
