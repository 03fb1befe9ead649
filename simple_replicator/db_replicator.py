from collections import defaultdict
from contextlib import closing, contextmanager
from dataclasses import dataclass, field
from logging import getLogger

from .db_api import DbApi
from .dedup import DeduplicationMatcher
from .errors import ApplyError, QueryError
from .ledger import RowLedger, row_hash
from .row_codec import encoding_limitation, render_insert
from .table_structure import Schema, TableStructure


logger = getLogger(__name__)


@dataclass
class TableStatistics:
    source_rows: int = 0
    inserted: int = 0
    skipped: int = 0
    ledger_skipped: int = 0

    def to_dict(self):
        return self.__dict__


@dataclass
class Statistics:
    tables_count: int = 0
    inserted_count: int = 0
    skipped_count: int = 0
    ledger_skipped_count: int = 0
    table_stats: dict[str, TableStatistics] = field(default_factory=lambda: defaultdict(TableStatistics))

    def on_row(self, table_name: str, inserted=False, skipped=False, ledger_skipped=False):
        table_stats = self.table_stats[table_name]
        table_stats.source_rows += 1
        if inserted:
            table_stats.inserted += 1
            self.inserted_count += 1
        if skipped:
            table_stats.skipped += 1
            self.skipped_count += 1
        if ledger_skipped:
            table_stats.ledger_skipped += 1
            self.ledger_skipped_count += 1

    def to_dict(self):
        return {
            'tables_count': self.tables_count,
            'inserted_count': self.inserted_count,
            'skipped_count': self.skipped_count,
            'ledger_skipped_count': self.ledger_skipped_count,
            'tables': {name: stats.to_dict() for name, stats in self.table_stats.items()},
        }


class DbReplicator:
    """Copies the rows a destination store is missing from a source store.

    One call to replicate() handles one (source, destination) pair. Every
    insert of the pair goes through a single destination transaction, so a
    failure anywhere leaves the destination untouched.
    """

    def __init__(self, ledger: RowLedger = None):
        self.ledger = ledger
        self.stats = Statistics()

    def replicate(self, schema: Schema, source: DbApi, destination: DbApi) -> int:
        self.stats = Statistics(tables_count=len(schema.tables))

        for table in schema.tables:
            self.ensure_table(source, destination, table)

        matcher = DeduplicationMatcher(destination)
        with self.ledger_transaction(source, destination):
            with self.destination_transaction(source, destination):
                for table in schema.tables:
                    self.replicate_table(table, source, destination, matcher)

        return self.stats.inserted_count

    def ensure_table(self, source: DbApi, destination: DbApi, table: TableStructure):
        statement = destination.create_table_statement(table)
        try:
            destination.execute(statement)
        except destination.driver_error as e:
            raise ApplyError(
                f'unable to create table: {e}',
                source=source.name,
                destination=destination.name,
                table=table.table_name,
                statement=statement,
            ) from e

    @contextmanager
    def ledger_transaction(self, source: DbApi, destination: DbApi):
        """Ledger writes of the pair, committed after the destination commit.

        The ledger may lag the destination but never runs ahead of it: a
        ledger commit failure leaves rows inserted but unrecorded, which the
        row lookup of the next pass handles.
        """
        if self.ledger is None:
            yield
            return

        ledger_db = self.ledger.db
        try:
            ledger_db.begin()
        except ledger_db.driver_error as e:
            raise ApplyError(
                f'unable to open ledger transaction: {e}', source=source.name, destination=destination.name,
            ) from e

        try:
            yield
        except BaseException:
            self.rollback(ledger_db)
            raise

        try:
            ledger_db.commit()
        except ledger_db.driver_error as e:
            self.rollback(ledger_db)
            raise ApplyError(
                f'unable to commit ledger transaction, destination already committed: {e}',
                source=source.name,
                destination=destination.name,
            ) from e

    @contextmanager
    def destination_transaction(self, source: DbApi, destination: DbApi):
        try:
            destination.begin()
        except destination.driver_error as e:
            raise ApplyError(
                f'unable to open transaction: {e}', source=source.name, destination=destination.name,
            ) from e

        try:
            yield
        except BaseException:
            self.rollback(destination)
            raise

        try:
            destination.commit()
        except destination.driver_error as e:
            self.rollback(destination)
            raise ApplyError(
                f'unable to commit transaction: {e}', source=source.name, destination=destination.name,
            ) from e

    def rollback(self, destination: DbApi):
        try:
            destination.rollback()
        except destination.driver_error as e:
            logger.error(f'rollback on {destination.name} failed: {e}')
        else:
            logger.warning(f'transaction on {destination.name} rolled back')

    def select_statement(self, source: DbApi, table: TableStructure) -> str:
        columns = ', '.join(source.quote_identifier(name) for name in table.field_names)
        return f'SELECT {columns} FROM {source.quote_identifier(table.table_name)}'

    def insert_statement(self, destination: DbApi, table: TableStructure) -> str:
        columns = ', '.join(destination.quote_identifier(name) for name in table.field_names)
        return (
            f'INSERT INTO {destination.quote_identifier(table.table_name)} ({columns}) '
            f'VALUES ({destination.placeholders(len(table.fields))})'
        )

    def replicate_table(self, table: TableStructure, source: DbApi, destination: DbApi, matcher: DeduplicationMatcher):
        query = self.select_statement(source, table)
        insert_query = self.insert_statement(destination, table)
        columns = table.field_names

        try:
            with closing(source.iterate_rows(query)) as rows:
                for row in rows:
                    self.replicate_row(table, columns, row, source, destination, matcher, insert_query)
        except source.driver_error as e:
            raise QueryError(
                f'unable to read source rows: {e}',
                source=source.name,
                destination=destination.name,
                table=table.table_name,
                statement=query,
            ) from e

        table_stats = self.stats.table_stats[table.table_name]
        logger.info(
            f'{source.name} -> {destination.name} table {table.table_name}: '
            f'{table_stats.inserted} inserted, {table_stats.skipped} skipped'
        )

    def replicate_row(self, table, columns, row, source, destination, matcher, insert_query):
        assert len(row) == len(columns), (
            f'row of {table.table_name} has {len(row)} values for {len(columns)} columns'
        )
        statement = render_insert(table.table_name, columns, row)
        limitation = encoding_limitation(columns, row)
        if limitation is not None:
            logger.warning(
                f'{source.name} -> {destination.name} table {table.table_name}: '
                f'{limitation}, logged statements for this row are ambiguous'
            )

        hash_value = None
        if self.ledger is not None:
            hash_value = row_hash(table.table_name, columns, row)
            self.ledger_record(hash_value, source, destination, table, origin=source.name)
            if self.ledger_contains(hash_value, source, destination, table):
                logger.debug(f'skipping insert, already applied [{statement}]')
                self.stats.on_row(table.table_name, ledger_skipped=True)
                return

        if matcher.exists(table, row):
            logger.debug(f'skipping insert [{statement}]')
            self.stats.on_row(table.table_name, skipped=True)
        else:
            logger.debug(f'inserting [{statement}]')
            try:
                destination.execute(insert_query, tuple(row))
            except destination.driver_error as e:
                raise ApplyError(
                    f'unable to insert row: {e}',
                    source=source.name,
                    destination=destination.name,
                    table=table.table_name,
                    statement=statement,
                ) from e
            self.stats.on_row(table.table_name, inserted=True)

        if hash_value is not None:
            self.ledger_record(hash_value, source, destination, table, origin=destination.name)

    def ledger_contains(self, hash_value, source, destination, table) -> bool:
        try:
            return self.ledger.contains(hash_value, destination.name)
        except self.ledger.db.driver_error as e:
            raise QueryError(
                f'unable to read row ledger: {e}',
                source=source.name, destination=destination.name, table=table.table_name,
            ) from e

    def ledger_record(self, hash_value, source, destination, table, origin):
        try:
            self.ledger.record(hash_value, origin)
        except self.ledger.db.driver_error as e:
            raise ApplyError(
                f'unable to update row ledger: {e}',
                source=source.name, destination=destination.name, table=table.table_name,
            ) from e
