"""
Tests for element_groups module: the schema DSL and its pattern composition
"""

import re

import pytest

import common_formats  # noqa: F401
from core.exceptions import SchemaBuildError
from element_groups import (
    ElementGroup,
    OptionalGroup,
    REMAINDER_FIELD,
    RootGroup,
    SeparatedGroup,
    SurroundedGroup,
    get_schema,
    register_schema,
    registered_schemas,
)


def _compile(root):
    regexp = re.compile(root.regexp())
    assert regexp.groups == len(root.names())
    return regexp


class TestRootGroup:
    """Tests for RootGroup class"""

    def test_empty_schema(self):
        """Test an empty schema has only the remainder field"""
        root = RootGroup()
        assert root.names() == [REMAINDER_FIELD]
        assert root.regexp() == r'(|\ .*)'

    def test_fields_joined_by_separator(self):
        """Test top-level fields are joined by the escaped separator"""
        root = RootGroup()
        root.integer('a')
        root.integer('b')
        assert root.regexp() == r'([+-]?\d+)\ ([+-]?\d+)(|\ .*)'
        assert root.names() == ['a', 'b', REMAINDER_FIELD]

    def test_custom_separator(self):
        """Test a non-space top-level separator"""
        root = RootGroup(',')
        root.integer('a')
        root.integer('b')
        regexp = _compile(root)
        assert regexp.fullmatch('1,2').groups() == ('1', '2', '')
        assert regexp.fullmatch('1,2,extra').groups() == ('1', '2', ',extra')

    def test_remainder_decoder(self):
        """Test remainder drops the leading separator and is None when empty"""
        decoder = RootGroup(' -> ').decoders()[-1]
        assert decoder('') is None
        assert decoder(' -> rest') == 'rest'

    def test_skip_line(self):
        """Test skip_line patterns are collected on the root"""
        root = RootGroup()
        root.skip_line(r'^#')
        assert root.skip_lines == [r'^#']

    def test_empty_separator(self):
        """Test an empty separator is rejected"""
        with pytest.raises(SchemaBuildError):
            RootGroup('')


class TestNestedGroups:
    """Tests for nested group kinds"""

    def test_surrounded_by(self):
        """Test a surrounded group wraps its children in literals"""
        root = RootGroup()
        with root.surrounded_by('[', ']') as s:
            s.integer('n')
        assert isinstance(s, SurroundedGroup)
        regexp = _compile(root)
        assert regexp.fullmatch('[42]').group(1) == '42'

    def test_quoted_helpers(self):
        """Test single_quoted and double_quoted"""
        root = RootGroup()
        root.single_quoted().string('a')
        root.double_quoted().string('b')
        regexp = _compile(root)
        assert regexp.fullmatch('\'x y\' "z"').groups()[:2] == ('x y', 'z')

    def test_surrounded_group_inherits_separator(self):
        """Test children of a surrounded group use the enclosing separator"""
        root = RootGroup(';')
        with root.surrounded_by('<', '>') as s:
            s.integer('a')
            s.integer('b')
        assert s.separator == ';'
        assert _compile(root).fullmatch('<1;2>').groups()[:2] == ('1', '2')

    def test_separated_with(self):
        """Test a separated group joins its children with its own separator"""
        root = RootGroup()
        with root.separated_with(' -> ') as s:
            s.string('from', nil_on='-')
            s.string('to')
        assert isinstance(s, SeparatedGroup)
        match = _compile(root).fullmatch('- -> /index.html')
        assert match.groups() == ('-', '/index.html', '')

    def test_build_callback(self):
        """Test combinators accept a builder function"""
        def request(group):
            group.string('method')
            group.string('uri')

        root = RootGroup()
        root.double_quoted(request)
        assert root.names() == ['method', 'uri', REMAINDER_FIELD]

    def test_nested_order(self):
        """Test field order follows declaration order across nesting"""
        root = RootGroup()
        root.string('a')
        with root.surrounded_by('(', ')') as s:
            s.string('b')
            with s.separated_with(',') as inner:
                inner.string('c')
                inner.string('d')
        root.string('e')
        assert root.names() == ['a', 'b', 'c', 'd', 'e', REMAINDER_FIELD]
        _compile(root)

    def test_separator_without_parent(self):
        """Test a detached group has no separator"""
        with pytest.raises(SchemaBuildError):
            ElementGroup().separator

    def test_skip_line_below_root(self):
        """Test skip_line is only allowed on the root"""
        root = RootGroup()
        with pytest.raises(SchemaBuildError):
            root.double_quoted().skip_line('^#')


class TestOptionalGroup:
    """Tests for OptionalGroup class"""

    @staticmethod
    def _request_schema(nil_on=None):
        root = RootGroup()
        with root.double_quoted() as q:
            with q.optional('request', nil_on=nil_on) as r:
                r.string('method', nil_on='')
                r.string('uri', nil_on='')
                r.string('protocol', nil_on='')
        root.integer('status')
        return root

    def test_names_and_decoders(self):
        """Test the group's own field precedes its children"""
        root = self._request_schema()
        assert root.names() == ['request', 'method', 'uri', 'protocol', 'status', REMAINDER_FIELD]
        assert len(root.decoders()) == len(root.names())
        assert isinstance(root.elements[0].elements[0], OptionalGroup)

    def test_children_match(self):
        """Test the whole span and the children when the children match"""
        match = _compile(self._request_schema()).fullmatch('"GET / HTTP/1.1" 200')
        assert match.groups() == ('GET / HTTP/1.1', 'GET', '/', 'HTTP/1.1', '200', '')

    def test_fallback(self):
        """Test the catch-all alternative when the children do not match"""
        match = _compile(self._request_schema()).fullmatch('"GET /" 200')
        assert match.group(1) == 'GET /'
        assert match.groups(default='')[1:4] == ('', '', '')
        assert match.group(5) == '200'

    def test_group_sentinel(self):
        """Test the group's own field honours nil_on"""
        root = self._request_schema(nil_on='-')
        decoder = root.decoders()[0]
        assert decoder('-') is None
        assert decoder('GET /') == 'GET /'


class TestSchemaRegistry:
    """Tests for the named schema registry"""

    def test_register_and_use(self):
        """Test a registered schema can be spliced into another"""
        register_schema('test_pair', lambda g: (g.integer('x'), g.integer('y')))

        root = RootGroup()
        root.string('label')
        root.use('test_pair')
        assert root.names() == ['label', 'x', 'y', REMAINDER_FIELD]
        assert 'test_pair' in registered_schemas()

    def test_register_as_decorator(self):
        """Test register_schema as a decorator returns the function"""
        @register_schema('test_decorated')
        def decorated(g):
            g.string('value')

        assert get_schema('test_decorated') is decorated

    def test_unknown_schema(self):
        """Test an unknown schema name"""
        with pytest.raises(SchemaBuildError) as exc_info:
            get_schema('no_such_schema')
        assert 'apache_common' in str(exc_info.value)
