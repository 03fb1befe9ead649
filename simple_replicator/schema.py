import dataclasses
from logging import getLogger

from .db_api import DbApi
from .errors import CatalogError
from .table_structure import Schema


logger = getLogger(__name__)


def introspect(store: DbApi, table_filter=None) -> Schema:
    """Snapshot the tables and columns of a store.

    Tables are listed first, then the columns of each table are resolved with
    a table scoped catalog query. Column order follows the catalog ordinal.
    `table_filter` is an optional predicate on the table name.
    """
    logger.info(f'retrieving tables for {store.name}...')
    try:
        tables = store.get_tables()
    except store.driver_error as e:
        raise CatalogError(f'unable to read table catalog: {e}', source=store.name) from e

    if table_filter is not None:
        tables = [t for t in tables if table_filter(t.table_name)]

    resolved = []
    for table in tables:
        try:
            fields = store.get_table_fields(table)
        except store.driver_error as e:
            raise CatalogError(
                f'unable to read columns: {e}', source=store.name, table=table.table_name,
            ) from e
        if not fields:
            raise CatalogError('table has no columns', source=store.name, table=table.table_name)
        resolved.append(dataclasses.replace(table, fields=tuple(fields)))

    schema = Schema(store_name=store.name, tables=tuple(resolved))
    logger.info(f'retrieved tables for {store.name}: {schema.table_names}')
    for table in schema.tables:
        logger.debug(f'{store.name}.{table.table_name} columns: {table.field_names}')
    return schema
