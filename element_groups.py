#!/usr/bin/python3
# -*- coding: utf-8 -*-
"""
Element Groups Module for Access Log Parser

Schemas are declared by builder functions that receive a group and call its
DSL methods. Declaration order is field order:

    @register_schema('apache_common')
    def apache_common(g):
        g.ip('remote_host')
        g.string('logname', nil_on='-')
        g.string('user', nil_on='-')
        with g.surrounded_by('[', ']') as s:
            s.date_ncsa('time')
        ...

Combinators return the nested group. It can be filled inside a `with`
block or by passing a builder function as the last argument.

Group kinds:
    SeparatedGroup  children joined by its own separator
    SurroundedGroup children wrapped in a literal prefix and suffix
    OptionalGroup   children or lazily any text; adds its own span field
    RootGroup       outermost group; skip-line patterns and 'remainder' field
"""
import re
from typing import Callable, Dict, List, Optional

from core.exceptions import SchemaBuildError
from core.logging_config import get_logger
import field_types
from field_types import FieldDecoder, NCSA_DATE_FORMAT, IIS_DATE_FORMAT

logger = get_logger(__name__)

REMAINDER_FIELD = 'remainder'

# Named schemas: name -> builder function
_schemas: Dict[str, Callable] = {}


class ElementGroup:
    """
    Ordered children (elements or nested groups) joined by the separator of
    the nearest enclosing SeparatedGroup.
    """

    def __init__(self, parent: Optional['ElementGroup'] = None):
        self.parent = parent
        self.elements = []

    @property
    def separator(self) -> str:
        if self.parent is None:
            raise SchemaBuildError(f"{type(self).__name__} has no separator in its group hierarchy")
        return self.parent.separator

    def regexp(self) -> str:
        return re.escape(self.separator).join(e.regexp() for e in self.elements)

    def names(self) -> List[str]:
        names = []
        for e in self.elements:
            names.extend(e.names())
        return names

    def decoders(self) -> List[FieldDecoder]:
        decoders = []
        for e in self.elements:
            decoders.extend(e.decoders())
        return decoders

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        return False

    def __repr__(self):
        return f"<{type(self).__name__} {self.names()}>"

    def _push(self, element):
        self.elements.append(element)
        return element

    def _nest(self, group: 'ElementGroup', build: Optional[Callable]) -> 'ElementGroup':
        self._push(group)
        if build is not None:
            build(group)
        return group

    # Fields

    def element(self, name, pattern, convert=None, nil_on=None, process=None):
        """Custom field; pattern must not contain capturing groups."""
        return self._push(field_types.custom_element(name, pattern, convert, nil_on, process))

    def string(self, name, greedy=False, nil_on=None, process=None):
        return self._push(field_types.string_element(name, greedy, nil_on, process))

    def integer(self, name, nil_on=None, process=None):
        return self._push(field_types.integer_element(name, nil_on, process))

    def float(self, name, nil_on=None, process=None):
        return self._push(field_types.float_element(name, nil_on, process))

    def ip(self, name, greedy=False, nil_on=None, process=None):
        return self._push(field_types.ip_element(name, greedy, nil_on, process))

    def date(self, name, format=NCSA_DATE_FORMAT, nil_on=None, process=None):
        return self._push(field_types.date_element(name, format, nil_on, process))

    def date_ncsa(self, name, nil_on=None, process=None):
        return self.date(name, NCSA_DATE_FORMAT, nil_on, process)

    def date_iis(self, name, nil_on=None, process=None):
        return self.date(name, IIS_DATE_FORMAT, nil_on, process)

    # Structure

    def separated_with(self, separator: str, build: Optional[Callable] = None) -> 'SeparatedGroup':
        return self._nest(SeparatedGroup(self, separator), build)

    def surrounded_by(self, left: str, right: str, build: Optional[Callable] = None) -> 'SurroundedGroup':
        return self._nest(SurroundedGroup(self, left, right), build)

    def single_quoted(self, build: Optional[Callable] = None) -> 'SurroundedGroup':
        return self.surrounded_by("'", "'", build)

    def double_quoted(self, build: Optional[Callable] = None) -> 'SurroundedGroup':
        return self.surrounded_by('"', '"', build)

    def optional(self, name: str, build: Optional[Callable] = None, nil_on: Optional[str] = None) -> 'OptionalGroup':
        return self._nest(OptionalGroup(self, name, nil_on), build)

    def use(self, schema_name: str) -> 'ElementGroup':
        """Splice the declarations of a registered schema into this group."""
        get_schema(schema_name)(self)
        return self

    def skip_line(self, pattern: str):
        raise SchemaBuildError(f"skip_line({pattern!r}) is only allowed at the top level of a schema")


class SeparatedGroup(ElementGroup):
    def __init__(self, parent: Optional[ElementGroup], separator: str):
        if not separator:
            raise SchemaBuildError("Separator must be a non-empty string")
        self._separator = separator
        super().__init__(parent)

    @property
    def separator(self) -> str:
        return self._separator


class SurroundedGroup(ElementGroup):
    def __init__(self, parent: ElementGroup, left: str, right: str):
        self.left = left
        self.right = right
        super().__init__(parent)

    def regexp(self) -> str:
        return re.escape(self.left) + super().regexp() + re.escape(self.right)


class OptionalGroup(ElementGroup):
    """
    Matches its children, or failing that any (lazily shortest) text.

    The matched span is exposed as an extra field named after the group,
    placed before the children's fields. Children that did not take part
    in the match decode from the empty string.
    """

    def __init__(self, parent: ElementGroup, name: str, nil_on: Optional[str] = None):
        self.name = name
        self.nil_on = nil_on
        super().__init__(parent)

    def regexp(self) -> str:
        return '(' + super().regexp() + '|.*?)'

    def names(self) -> List[str]:
        return [self.name] + super().names()

    def decoders(self) -> List[FieldDecoder]:
        return [FieldDecoder(self.name, nil_on=self.nil_on)] + super().decoders()


class RootGroup(SeparatedGroup):
    """
    Outermost group of a schema.

    Always ends with the 'remainder' field: anything after the declared
    fields, without the leading separator, or None when nothing follows.
    A lone trailing separator leaves '' (EntryIterator strips lines first).
    """

    def __init__(self, separator: str = ' '):
        self.skip_lines: List[str] = []
        super().__init__(None, separator)

    def regexp(self) -> str:
        return super().regexp() + f"(|{re.escape(self.separator)}.*)"

    def names(self) -> List[str]:
        return super().names() + [REMAINDER_FIELD]

    def decoders(self) -> List[FieldDecoder]:
        strip = len(self.separator)
        return super().decoders() + [
            FieldDecoder(REMAINDER_FIELD, lambda s: s[strip:], nil_on='')
        ]

    def skip_line(self, pattern: str):
        """Lines matching pattern (re.search) are never parsed."""
        self.skip_lines.append(pattern)


def register_schema(name: str, builder: Optional[Callable] = None):
    """
    Register a named schema builder.

    Usable directly, register_schema('name', fn), or as a decorator.
    Re-registering a name replaces the previous builder.
    """
    def decorator(fn):
        if name in _schemas:
            logger.debug(f"Replacing registered schema: {name}")
        _schemas[name] = fn
        logger.debug(f"Registered schema: {name}")
        return fn

    if builder is not None:
        return decorator(builder)
    return decorator


def get_schema(name: str) -> Callable:
    try:
        return _schemas[name]
    except KeyError:
        raise SchemaBuildError(
            f"Unknown schema; registered: {', '.join(sorted(_schemas)) or 'none'}", name
        ) from None


def registered_schemas() -> List[str]:
    return sorted(_schemas)
