from dataclasses import dataclass
from logging import getLogger

import mysql.connector

from .config import MysqlSettings
from .db_api import DbApi
from .table_structure import TableStructure, TableField


logger = getLogger(__name__)


TABLES_QUERY = '''
SELECT TABLE_TYPE, TABLE_NAME, ENGINE, TABLE_COLLATION
FROM information_schema.TABLES
WHERE TABLE_SCHEMA = %s AND TABLE_TYPE = 'BASE TABLE'
ORDER BY TABLE_NAME
'''

FIELDS_QUERY = '''
SELECT ORDINAL_POSITION, COLUMN_NAME, COLUMN_TYPE, COLUMN_DEFAULT, COLUMN_KEY
FROM information_schema.COLUMNS
WHERE TABLE_SCHEMA = %s AND TABLE_NAME = %s
ORDER BY ORDINAL_POSITION
'''


@dataclass(frozen=True)
class MySQLTableStructure(TableStructure):
    type: str = 'BASE TABLE'
    engine: str = ''
    collation: str = ''


class MySQLApi(DbApi):
    driver = 'mysql'
    driver_error = mysql.connector.Error
    placeholder = '%s'
    identifier_quote = '`'
    default_field_type = 'TEXT'

    def __init__(self, name: str, mysql_settings: MysqlSettings):
        super().__init__(name)
        self.mysql_settings = mysql_settings
        self.database = mysql_settings.database

    def connect(self):
        logger.debug(
            f'setting up mysql database connection for {self.name} '
            f'({self.mysql_settings.host}:{self.mysql_settings.port}/{self.database})'
        )
        self.connection = mysql.connector.connect(**self.mysql_settings.get_connection_config())
        logger.info(f'{self.name} database connection established successfully')
        return self

    def begin(self):
        self.connection.start_transaction()

    def commit(self):
        self.connection.commit()

    def rollback(self):
        if self.connection.in_transaction:
            self.connection.rollback()

    def get_tables(self):
        tables = []
        for row in self.fetch_all(TABLES_QUERY, (self.database,)):
            table_type, table_name, engine, collation = row
            tables.append(MySQLTableStructure(
                table_name=table_name,
                type=table_type,
                engine=engine or '',
                collation=collation or '',
            ))
        return tables

    def get_table_fields(self, table):
        fields = []
        for row in self.fetch_all(FIELDS_QUERY, (self.database, table.table_name)):
            position, name, field_type, default_value, column_key = row
            fields.append(TableField(
                name=name,
                field_type=field_type or '',
                default_value=default_value,
                primary_key=column_key == 'PRI',
                position=position,
            ))
        return fields

    def render_field_definition(self, table_field: TableField) -> str:
        # mysql refuses columns without a type
        field_type = table_field.field_type or self.default_field_type
        return f'{self.quote_identifier(table_field.name)} {field_type}'
