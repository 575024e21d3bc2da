#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Apache LogFormat to Schema Converter

Turns an Apache LogFormat string into a schema builder function, so an
AccessLogParser can be created straight from the web server configuration.

Reference: https://httpd.apache.org/docs/2.4/en/mod/mod_log_config.html

Usage:
    python apache_logformat_converter.py '%h %l %u %t "%r" %>s %b'
    python apache_logformat_converter.py 'LogFormat "%h %l %u %t \"%r\" %>s %b" common'
    python apache_logformat_converter.py --preset combined --sample access.log
"""

import re
from typing import Callable, Dict, List, Optional, Tuple

from core.exceptions import InvalidFormatError
from core.logging_config import get_logger
from element_groups import register_schema
from log_parser import AccessLogParser

logger = get_logger(__name__)


# Apache LogFormat directive mappings
# Format: directive -> (builder method, field name, options)
APACHE_DIRECTIVE_MAP = {
    # Client/Remote information
    '%h': ('ip', 'remote_host', {}),
    '%a': ('ip', 'remote_ip', {}),
    '%l': ('string', 'logname', {'nil_on': '-'}),
    '%u': ('string', 'user', {'nil_on': '-'}),

    # Time (Apache writes the brackets itself)
    '%t': ('time', 'time', {}),

    # Request
    '%r': ('request_line', 'first_request_line', {}),
    '%m': ('string', 'method', {}),
    '%U': ('string', 'url', {}),
    '%q': ('string', 'query_string', {'nil_on': ''}),
    '%H': ('string', 'protocol', {}),

    # Status code
    '%s': ('integer', 'status', {}),
    '%>s': ('integer', 'status', {}),
    '%<s': ('integer', 'status', {}),

    # Bytes
    '%b': ('integer', 'response_size', {'nil_on': '-'}),
    '%B': ('integer', 'response_size', {}),
    '%I': ('integer', 'bytes_received', {}),
    '%O': ('integer', 'bytes_sent', {}),

    # Timing
    '%D': ('integer', 'response_time_us', {}),
    '%T': ('integer', 'response_time_s', {}),

    # Server information
    '%v': ('string', 'vhost', {}),
    '%V': ('string', 'server_name', {}),
    '%p': ('integer', 'port', {}),
    '%A': ('ip', 'local_ip', {}),
    '%P': ('integer', 'process_id', {}),
}


# Common Apache LogFormat presets
APACHE_LOGFORMAT_PRESETS = {
    'common': '%h %l %u %t "%r" %>s %b',
    'vhost_common': '%v %h %l %u %t "%r" %>s %b',
    'combined': '%h %l %u %t "%r" %>s %b "%{Referer}i" "%{User-agent}i"',
    'combined_with_time': '%h %l %u %t "%r" %>s %b "%{Referer}i" "%{User-agent}i" %D',
    'vhost_combined': '%v:%p %h %l %u %t "%r" %>s %b "%{Referer}i" "%{User-agent}i"',
    'agent': '%{User-agent}i',
}

_LOGFORMAT_LINE_RE = re.compile(r'^\s*LogFormat\s+"((?:[^"\\]|\\.)*)"(?:\s+\S+)?\s*$')
_HEADER_RE = re.compile(r'%\{([^}]+)\}([ioe])')
_DIRECTIVE_RE = re.compile(r'%[<>]?[a-zA-Z]')

# Token kinds
DIRECTIVE = 'directive'
LITERAL = 'literal'


def unwrap_logformat(format_string: str) -> str:
    """
    Accept either a bare format or a whole 'LogFormat "..." nickname' line.
    """
    match = _LOGFORMAT_LINE_RE.match(format_string)
    if match:
        return match.group(1).replace('\\"', '"')
    return format_string


def _header_field(var_name: str, var_type: str) -> Tuple[str, str, Dict]:
    column_name = var_name.lower().replace('-', '_')
    if var_type == 'i':
        if column_name in ('referer', 'referrer'):
            column_name = 'referer'
        return ('string', column_name, {'nil_on': '-'})
    if var_type == 'o':
        return ('string', f'resp_{column_name}', {'nil_on': '-'})
    return ('string', f'env_{column_name}', {'nil_on': '-'})


def tokenize_logformat(format_string: str) -> List[List[Tuple[str, object]]]:
    """
    Split a LogFormat string into space-separated items of tokens.

    Spaces inside double quotes do not split items. Each token is either
    (DIRECTIVE, (method, name, options)) or (LITERAL, text).

    Raises:
        InvalidFormatError: On an unsupported directive
    """
    items = []
    tokens = []
    literal = ''
    in_quotes = False

    def flush_literal():
        nonlocal literal
        if literal:
            tokens.append((LITERAL, literal))
            literal = ''

    i = 0
    while i < len(format_string):
        char = format_string[i]

        if char == '%':
            header = _HEADER_RE.match(format_string, i)
            directive = _DIRECTIVE_RE.match(format_string, i)
            if header:
                flush_literal()
                tokens.append((DIRECTIVE, _header_field(header.group(1), header.group(2))))
                i = header.end()
                continue
            if directive and directive.group(0) in APACHE_DIRECTIVE_MAP:
                flush_literal()
                tokens.append((DIRECTIVE, APACHE_DIRECTIVE_MAP[directive.group(0)]))
                i = directive.end()
                continue
            raise InvalidFormatError(
                f"Unsupported Apache directive at position {i}: {format_string[i:i + 5]}",
                format_type='apache'
            )

        if char == ' ' and not in_quotes:
            flush_literal()
            if tokens:
                items.append(tokens)
            tokens = []
        else:
            if char == '"':
                in_quotes = not in_quotes
            literal += char
        i += 1

    flush_literal()
    if tokens:
        items.append(tokens)
    return items


def _add_directive(group, field, greedy: bool = False):
    method, name, options = field
    if method == 'time':
        group.surrounded_by('[', ']').date_ncsa(name)
    elif method == 'request_line':
        with group.optional(name) as request:
            request.string('method', nil_on='')
            request.string('uri', nil_on='')
            request.string('protocol', nil_on='')
    elif method == 'string':
        group.string(name, greedy=greedy, **options)
    else:
        getattr(group, method)(name, **options)


def _add_item(group, tokens, last: bool):
    """
    Add one space-separated item: [prefix] directive (literal directive)* [suffix].

    A prefix/suffix becomes a surrounded_by group, inner literals a
    separated_with group. Inner literals must all be the same text.
    """
    kinds = [kind for kind, _ in tokens]
    if DIRECTIVE not in kinds:
        raise InvalidFormatError(
            f"Standalone literal {tokens[0][1]!r} is not supported", format_type='apache'
        )

    prefix = tokens[0][1] if kinds[0] == LITERAL else ''
    suffix = tokens[-1][1] if kinds[-1] == LITERAL else ''
    inner = tokens[1 if prefix else 0:len(tokens) - 1 if suffix else len(tokens)]

    directives = [value for kind, value in inner[0::2] if kind == DIRECTIVE]
    literals = [value for kind, value in inner[1::2] if kind == LITERAL]
    if len(directives) + len(literals) != len(inner) or len(literals) != len(directives) - 1:
        raise InvalidFormatError(
            "Adjacent directives need a literal between them", format_type='apache'
        )
    if len(set(literals)) > 1:
        raise InvalidFormatError(
            f"Mixed separators {sorted(set(literals))} inside one item", format_type='apache'
        )

    target = group.surrounded_by(prefix, suffix) if (prefix or suffix) else group
    if literals and literals[0] != target.separator:
        target = target.separated_with(literals[0])

    # an unquoted trailing string has nothing after it to stop a lazy match
    greedy = last and not suffix and len(directives) == 1
    for field in directives:
        _add_directive(target, field, greedy=greedy)


def schema_from_logformat(format_string: str) -> Callable:
    """
    Build a schema builder function from an Apache LogFormat string.

    Args:
        format_string: LogFormat string or preset name

    Returns:
        Function taking a group, usable with AccessLogParser or register_schema

    Raises:
        InvalidFormatError: If the format uses unsupported constructs
    """
    format_string = APACHE_LOGFORMAT_PRESETS.get(format_string, format_string)
    items = tokenize_logformat(unwrap_logformat(format_string))
    if not items:
        raise InvalidFormatError("Empty LogFormat string", format_type='apache')

    def logformat_schema(g):
        for index, tokens in enumerate(items):
            _add_item(g, tokens, last=index == len(items) - 1)

    logformat_schema.__name__ = f"logformat({format_string})"
    return logformat_schema


def build_parser_from_logformat(format_string: str) -> AccessLogParser:
    return AccessLogParser(schema_from_logformat(format_string))


def register_logformat(name: str, format_string: str) -> Callable:
    """Register a LogFormat string as a named schema."""
    return register_schema(name, schema_from_logformat(format_string))


def parse_apache_logformat(format_string: str) -> Tuple[str, List[str]]:
    """
    Compile a LogFormat string and return (regex_pattern, field_names).

    Examples:
        >>> pattern, names = parse_apache_logformat('%h %>s %b')
        >>> names
        ['remote_host', 'status', 'response_size', 'remainder']
    """
    parser = build_parser_from_logformat(format_string)
    return parser.pattern, list(parser.names)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI interface for Apache LogFormat conversion."""
    import argparse
    from core.exceptions import LogParserError

    parser = argparse.ArgumentParser(
        description='Compile an Apache LogFormat into an access log parser',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  python apache_logformat_converter.py '%%h %%l %%u %%t "%%r" %%>s %%b'
  python apache_logformat_converter.py --preset combined --sample access.log

Available presets:
  common, vhost_common, combined, combined_with_time, vhost_combined, agent
        '''
    )
    parser.add_argument('format_string', nargs='?',
                        help='Apache LogFormat string or LogFormat directive line')
    parser.add_argument('--preset', choices=list(APACHE_LOGFORMAT_PRESETS.keys()),
                        help='Use a preset format')
    parser.add_argument('--sample',
                        help='Log file to try the parser on (first 5 lines)')

    args = parser.parse_args(argv)

    if args.preset:
        format_string = APACHE_LOGFORMAT_PRESETS[args.preset]
    elif args.format_string:
        format_string = args.format_string
    else:
        parser.error("Either format_string or --preset must be provided")

    try:
        log_parser = build_parser_from_logformat(format_string)
    except LogParserError as e:
        print(f"Error: {e}")
        return 1

    print("=" * 70)
    print("Apache LogFormat Conversion Result")
    print("=" * 70)
    print(f"\nOriginal Format:\n  {format_string}\n")
    print(f"Regex Pattern:\n  {log_parser.pattern}\n")
    print(f"Fields ({len(log_parser.names)}):\n  {', '.join(log_parser.names)}\n")

    if args.sample:
        try:
            with log_parser.parse_file(args.sample) as entries:
                for count, entry in enumerate(entries.each(), 1):
                    print(repr(entry.parse_all()))
                    if count >= 5:
                        break
                print(f"\nFailures: {entries.stats.failures}")
        except LogParserError as e:
            print(f"Error: {e}")
            return 1

    return 0


if __name__ == '__main__':
    raise SystemExit(main())
