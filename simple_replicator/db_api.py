from contextlib import contextmanager
from logging import getLogger

from .table_structure import TableStructure, TableField


logger = getLogger(__name__)


class DbApi:
    """A named store owning one live DB-API connection.

    Subclasses provide the dialect (identifier quoting, placeholders,
    transaction statements) and the two catalog queries used by
    introspection. Everything the replication engine needs goes through the
    methods of this class, so a new backend only has to fill them in.
    """

    driver = ''
    driver_error = Exception
    placeholder = '?'
    identifier_quote = '"'
    fetch_batch_size = 1000

    def __init__(self, name: str):
        self.name = name
        self.connection = None

    def __repr__(self):
        return f'{type(self).__name__}({self.name!r})'

    def connect(self):
        raise NotImplementedError()

    def close(self):
        if self.connection is None:
            return
        self.connection.close()
        self.connection = None
        logger.debug(f'connection to {self.name} closed')

    def __enter__(self):
        if self.connection is None:
            self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def quote_identifier(self, identifier: str) -> str:
        quote = self.identifier_quote
        return quote + identifier.replace(quote, quote + quote) + quote

    def placeholders(self, count: int) -> str:
        return ', '.join([self.placeholder] * count)

    @contextmanager
    def cursor(self):
        cursor = self.connection.cursor()
        try:
            yield cursor
        finally:
            cursor.close()

    def execute(self, query, args=None):
        with self.cursor() as cursor:
            if args:
                cursor.execute(query, args)
            else:
                cursor.execute(query)

    def fetch_all(self, query, args=None):
        with self.cursor() as cursor:
            if args:
                cursor.execute(query, args)
            else:
                cursor.execute(query)
            return cursor.fetchall()

    def fetch_one(self, query, args=None):
        with self.cursor() as cursor:
            if args:
                cursor.execute(query, args)
            else:
                cursor.execute(query)
            row = cursor.fetchone()
            # drain so the connection is usable for the next statement
            cursor.fetchall()
            return row

    def iterate_rows(self, query, args=None):
        """Stream rows in cursor order, fetching them in batches."""
        with self.cursor() as cursor:
            if args:
                cursor.execute(query, args)
            else:
                cursor.execute(query)
            while True:
                rows = cursor.fetchmany(self.fetch_batch_size)
                if not rows:
                    break
                for row in rows:
                    yield tuple(row)

    def begin(self):
        raise NotImplementedError()

    def commit(self):
        raise NotImplementedError()

    def rollback(self):
        raise NotImplementedError()

    def get_tables(self) -> list[TableStructure]:
        """Tables of the store, without their fields."""
        raise NotImplementedError()

    def get_table_fields(self, table: TableStructure) -> list[TableField]:
        """Fields of one table in catalog ordinal order."""
        raise NotImplementedError()

    def render_field_definition(self, table_field: TableField) -> str:
        name = self.quote_identifier(table_field.name)
        if table_field.field_type:
            return f'{name} {table_field.field_type}'
        return name

    def create_table_statement(self, table: TableStructure) -> str:
        fields = ', '.join(self.render_field_definition(f) for f in table.fields)
        return f'CREATE TABLE IF NOT EXISTS {self.quote_identifier(table.table_name)}({fields})'
