"""Shared test fixtures for simple-replicator tests"""

import pytest

from simple_replicator.sqlite_api import SQLiteApi
from common import create_sqlite_db


@pytest.fixture
def sqlite_store(tmp_path):
    """Factory creating a connected SQLite store from setup statements."""
    opened = []

    def factory(name, *statements):
        path = str(tmp_path / f'{name}.db')
        create_sqlite_db(path, *statements)
        store = SQLiteApi(name, path).connect()
        opened.append(store)
        return store

    yield factory

    for store in opened:
        store.close()
