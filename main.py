#!/usr/bin/python3
# -*- coding: utf-8 -*-
"""
Main script for Access Log Parser

Parses an access log with a built-in format or an Apache LogFormat string
and prints the entries as JSON Lines, CSV or JSON.

Usage:
    python main.py --list-formats
    python main.py access.log                              # format from config.yaml
    python main.py access.log --format apache_combined
    python main.py access.log --logformat '%h %l %u %t "%r" %>s %b'
    python main.py access.log --strict --params "fields=remote_host,status;limit=20"
    python main.py access.log.gz --output csv --output-file access.csv
"""

import argparse
import json
import sys
from typing import List, Optional

from core.config import ConfigManager
from core.exceptions import LogParserError, ValidationError
from core.logging_config import configure_logging, get_logger
from core.utils import LoggingConfig, ParamParser, ParserConfig
from apache_logformat_converter import build_parser_from_logformat
from data_parser import entry_to_row, export_dataframe, parse_log_file
from log_parser import AccessLogParser, available_formats

logger = get_logger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Parse access logs with declarative log formats',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Params (--params "key=value;key2=value2"):
  fields=a,b,c   only output these fields
  limit=N        stop after N entries (lines output only)
  strict=true    same as --strict
        '''
    )
    parser.add_argument('log_file', nargs='?', help='Access log file (plain or gzip)')
    parser.add_argument('--format', dest='log_format',
                        help='Built-in format name (see --list-formats)')
    parser.add_argument('--logformat', help='Apache LogFormat string')
    parser.add_argument('--strict', action='store_true', default=None,
                        help='Stop at the first line or field that cannot be parsed')
    parser.add_argument('--params', default='', help='Additional key=value;... parameters')
    parser.add_argument('--output', choices=['lines', 'csv', 'json'], default='lines',
                        help='lines = JSON Lines per entry (default), csv/json = table export')
    parser.add_argument('--output-file', help='Write csv/json output here instead of stdout')
    parser.add_argument('--config', help='Path to config.yaml')
    parser.add_argument('--log-level', help='DEBUG, INFO, WARNING, ERROR')
    parser.add_argument('--list-formats', action='store_true', help='List built-in formats')
    return parser


def _json_default(value):
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    return str(value)


def print_entries(parser: AccessLogParser, log_file: str, strict: bool,
                  fields: Optional[List[str]] = None, limit: Optional[int] = None) -> int:
    """
    Print entries as JSON Lines.

    In strict mode the first non-matching line or undecodable field aborts;
    otherwise non-matching lines are counted and undecodable fields are null.

    Returns:
        Number of lines that did not match
    """
    with parser.parse_file(log_file) as entries:
        iterator = entries.each_parsed_strict() if strict else entries.each()
        for count, entry in enumerate(iterator, 1):
            if strict:
                row = {name: entry.get(name) for name in fields or entry.names}
            else:
                row, errors = entry_to_row(entry, fields)
                if errors:
                    logger.warning(f"Entry {count}: {errors} fields could not be decoded")
            print(json.dumps(row, default=_json_default, ensure_ascii=False))
            if limit and count >= limit:
                break

    stats = entries.stats
    logger.info(f"Successes: {stats.successes}, failures: {stats.failures}")
    return stats.failures


def run(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    if args.list_formats:
        for name in available_formats():
            print(name)
        return 0

    if not args.log_file:
        print("Error: Log file path is required.", file=sys.stderr)
        return 1

    config_mgr = ConfigManager()
    config_mgr.load_config(args.config or config_mgr.find_config(args.log_file))

    logging_config = LoggingConfig.get_config()
    if args.log_level:
        logging_config['level'] = args.log_level
    configure_logging(logging_config)

    parser_config = ParserConfig.get_config()
    fields = ParamParser.get_list(args.params, 'fields') or None
    limit = ParamParser.get_int(args.params, 'limit')
    strict = args.strict
    if strict is None:
        strict = ParamParser.get_bool(args.params, 'strict', default=parser_config['strict'])

    if args.logformat:
        parser = build_parser_from_logformat(args.logformat)
    else:
        parser = AccessLogParser(
            args.log_format or parser_config['format'],
            separator=parser_config['separator']
        )

    if fields:
        unknown = [name for name in fields if name not in parser.names]
        if unknown:
            raise ValidationError('fields', f"Unknown fields: {', '.join(unknown)}")

    if args.output == 'lines':
        print_entries(parser, args.log_file, strict, fields, limit)
    else:
        df = parse_log_file(args.log_file, parser, columns=fields)
        text = export_dataframe(df, args.output_file, args.output)
        if text is not None:
            sys.stdout.write(text)
    return 0


def main():
    """Main entry point"""
    try:
        sys.exit(run())
    except LogParserError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
