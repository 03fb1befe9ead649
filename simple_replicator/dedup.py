from logging import getLogger

from .db_api import DbApi
from .errors import QueryError
from .row_codec import build_equality_predicate, render_select, Predicate
from .table_structure import TableStructure


logger = getLogger(__name__)


class DeduplicationMatcher:
    """Decides whether a row already exists in a destination table.

    A row is a duplicate when the destination holds at least one row equal
    to it on every non-empty column. Empty cells are left out of the match,
    so a row made only of empty cells matches any row: it is reported as a
    duplicate as soon as the destination table is not empty.
    """

    def __init__(self, destination: DbApi):
        self.destination = destination

    def lookup_statement(self, table: TableStructure, predicate: Predicate) -> str:
        query = f'SELECT * FROM {self.destination.quote_identifier(table.table_name)}'
        if not predicate.is_empty:
            query += f' WHERE {predicate.to_sql(self.destination)}'
        return query + ' LIMIT 1'

    def exists(self, table: TableStructure, row) -> bool:
        predicate = build_equality_predicate(table.field_names, row)
        query = self.lookup_statement(table, predicate)
        try:
            match = self.destination.fetch_one(query, predicate.params)
        except self.destination.driver_error as e:
            raise QueryError(
                f'unable to look up existing row: {e}',
                destination=self.destination.name,
                table=table.table_name,
                statement=render_select(table.table_name, predicate),
            ) from e
        return match is not None
