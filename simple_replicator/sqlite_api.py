import sqlite3
from dataclasses import dataclass
from logging import getLogger

from .db_api import DbApi
from .table_structure import TableStructure, TableField


logger = getLogger(__name__)


TABLES_QUERY = "SELECT type, name, tbl_name, rootpage, sql FROM sqlite_master WHERE type = 'table' ORDER BY rowid"
FIELDS_QUERY = "SELECT cid, name, type, dflt_value, pk FROM pragma_table_info(?) ORDER BY cid"


@dataclass(frozen=True)
class SQLiteTableStructure(TableStructure):
    type: str = 'table'
    name: str = ''
    root_page: int = 0
    sql: str = ''


def is_internal_table(table_name: str) -> bool:
    return table_name.startswith('sqlite_')


class SQLiteApi(DbApi):
    driver = 'sqlite3'
    driver_error = sqlite3.Error
    placeholder = '?'
    identifier_quote = '"'

    def __init__(self, name: str, path: str = None):
        super().__init__(name)
        self.path = path or name

    def connect(self):
        logger.debug(f'setting up sqlite database connection for {self.name} ({self.path})')
        # autocommit mode, transactions are opened explicitly by begin()
        self.connection = sqlite3.connect(self.path, isolation_level=None)
        logger.info(f'{self.name} database connection established successfully')
        return self

    def begin(self):
        self.connection.execute('BEGIN')

    def commit(self):
        self.connection.execute('COMMIT')

    def rollback(self):
        if self.connection.in_transaction:
            self.connection.execute('ROLLBACK')

    def get_tables(self):
        tables = []
        for row in self.fetch_all(TABLES_QUERY):
            table_type, name, table_name, root_page, sql = row
            if is_internal_table(table_name):
                logger.debug(f'skipping internal table {table_name} of {self.name}')
                continue
            tables.append(SQLiteTableStructure(
                table_name=table_name,
                type=table_type,
                name=name,
                root_page=root_page,
                sql=sql,
            ))
        return tables

    def get_table_fields(self, table):
        fields = []
        for row in self.fetch_all(FIELDS_QUERY, (table.table_name,)):
            cid, name, field_type, default_value, primary_key = row
            fields.append(TableField(
                name=name,
                field_type=field_type or '',
                default_value=default_value,
                primary_key=bool(primary_key),
                position=cid,
            ))
        return fields
