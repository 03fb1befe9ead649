import sqlite3


USERS_TABLE = 'CREATE TABLE users (id INTEGER, name TEXT)'


def create_sqlite_db(path, *statements):
    connection = sqlite3.connect(path)
    try:
        for statement in statements:
            connection.execute(statement)
        connection.commit()
    finally:
        connection.close()


def read_rows(store, table_name, columns='*', order_by=None):
    query = f'SELECT {columns} FROM "{table_name}"'
    if order_by:
        query += f' ORDER BY {order_by}'
    return store.fetch_all(query)
