import dataclasses

import pytest

from simple_replicator.errors import CatalogError
from simple_replicator.schema import introspect
from simple_replicator.sqlite_api import SQLiteApi, SQLiteTableStructure


def test_introspect_preserves_catalog_order(sqlite_store):
    store = sqlite_store(
        'a',
        'CREATE TABLE orders (id INTEGER PRIMARY KEY, user_id INTEGER, total REAL DEFAULT 0)',
        'CREATE TABLE users (name TEXT, id INTEGER)',
    )

    schema = introspect(store)

    assert schema.store_name == 'a'
    assert schema.table_names == ['orders', 'users']

    orders = schema.get_table('orders')
    assert isinstance(orders, SQLiteTableStructure)
    assert orders.field_names == ['id', 'user_id', 'total']
    assert [f.position for f in orders.fields] == [0, 1, 2]
    assert orders.get_field('id').primary_key
    assert orders.get_field('id').field_type == 'INTEGER'
    assert orders.get_field('total').default_value == '0'
    assert not orders.get_field('user_id').primary_key
    assert 'CREATE TABLE orders' in orders.sql

    assert schema.get_table('users').field_names == ['name', 'id']


def test_introspect_untyped_columns(sqlite_store):
    store = sqlite_store('a', 'CREATE TABLE t (a, b)')
    table = introspect(store).get_table('t')
    assert [f.field_type for f in table.fields] == ['', '']


def test_introspect_skips_internal_tables(sqlite_store):
    store = sqlite_store(
        'a',
        'CREATE TABLE events (id INTEGER PRIMARY KEY AUTOINCREMENT, payload TEXT)',
        "INSERT INTO events (payload) VALUES ('x')",
    )
    assert introspect(store).table_names == ['events']


def test_introspect_table_filter(sqlite_store):
    store = sqlite_store('a', 'CREATE TABLE keep_me (a)', 'CREATE TABLE drop_me (a)')
    schema = introspect(store, table_filter=lambda name: name.startswith('keep'))
    assert schema.table_names == ['keep_me']


def test_introspect_empty_store(sqlite_store):
    schema = introspect(sqlite_store('a'))
    assert schema.tables == ()


def test_schema_is_immutable(sqlite_store):
    schema = introspect(sqlite_store('a', 'CREATE TABLE t (a)'))
    with pytest.raises(dataclasses.FrozenInstanceError):
        schema.tables = ()
    with pytest.raises(dataclasses.FrozenInstanceError):
        schema.tables[0].fields = ()


def test_unreadable_catalog(tmp_path):
    path = tmp_path / 'broken.db'
    path.write_bytes(b'this is not a sqlite database file, not even close' * 100)

    store = SQLiteApi('broken', str(path)).connect()
    try:
        with pytest.raises(CatalogError) as exc_info:
            introspect(store)
    finally:
        store.close()
    assert exc_info.value.source == 'broken'


def test_unreadable_columns(sqlite_store, monkeypatch):
    store = sqlite_store('a', 'CREATE TABLE t (a)')

    def broken_fields(table):
        raise store.driver_error('columns unavailable')

    monkeypatch.setattr(store, 'get_table_fields', broken_fields)

    with pytest.raises(CatalogError) as exc_info:
        introspect(store)
    assert exc_info.value.table == 't'
