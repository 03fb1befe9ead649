import pytest

from simple_replicator.errors import ApplyError, EncodingLimitation, QueryError
from simple_replicator.row_codec import (
    build_equality_predicate,
    encode_literal,
    encoding_limitation,
    is_empty,
    render_insert,
    render_select,
)
from simple_replicator.sqlite_api import SQLiteApi


@pytest.mark.unit
def test_encode_literal_quoting():
    assert encode_literal('alice') == '"alice"'
    assert encode_literal('say "hi"') == "'say \"hi\"'"
    assert encode_literal("it's") == '"it\'s"'
    assert encode_literal(42) == '"42"'
    assert encode_literal(None) == '""'
    assert encode_literal(b'raw') == '"raw"'


@pytest.mark.unit
def test_encode_literal_flags_conflicting_quotes():
    value = 'he said "it\'s fine"'

    # rendering is kept for log lines, it is not corrected
    assert encode_literal(value) == f"'{value}'"

    limitation = encoding_limitation(['id', 'body'], [1, value])
    assert isinstance(limitation, EncodingLimitation)
    assert isinstance(limitation, ApplyError)
    assert 'column body' in str(limitation)

    assert encoding_limitation(['id', 'body'], [1, 'say "hi"']) is None
    assert encoding_limitation(['id', 'body'], [None, b"it's"]) is None


@pytest.mark.unit
def test_is_empty():
    assert is_empty(None)
    assert is_empty('')
    assert is_empty(b'')
    assert not is_empty(0)
    assert not is_empty(' ')
    assert not is_empty('0')


@pytest.mark.unit
def test_predicate_omits_empty_values():
    predicate = build_equality_predicate(['id', 'name', 'note'], [1, '', None])

    assert predicate.columns == ('id',)
    assert predicate.params == (1,)
    assert predicate.render() == 'id = "1"'
    assert predicate.to_sql(SQLiteApi('db')) == '"id" = ?'


@pytest.mark.unit
def test_predicate_of_all_empty_row_is_empty():
    predicate = build_equality_predicate(['a', 'b'], ['', None])
    assert predicate.is_empty
    assert predicate.to_sql(SQLiteApi('db')) == ''
    assert render_select('t', predicate) == 'SELECT * FROM t'


@pytest.mark.unit
def test_predicate_requires_matching_arity():
    with pytest.raises(AssertionError):
        build_equality_predicate(['a', 'b'], [1])


@pytest.mark.unit
def test_render_statements():
    assert render_insert('users', ['id', 'name'], [1, 'alice']) == \
        'INSERT INTO users (id,name) VALUES ("1","alice")'

    predicate = build_equality_predicate(['id', 'name'], [1, 'alice'])
    assert render_select('users', predicate) == \
        'SELECT * FROM users WHERE id = "1" and name = "alice"'


@pytest.mark.unit
def test_error_context_in_message():
    error = QueryError('lookup failed', source='a', table='users')
    assert str(error) == 'lookup failed (source=a, table=users)'
    assert error.context()['destination'] is None
    assert str(QueryError('plain')) == 'plain'
