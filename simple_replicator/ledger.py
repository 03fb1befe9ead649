import hashlib
import json
from logging import getLogger

from .row_codec import value_to_text
from .sqlite_api import SQLiteApi


logger = getLogger(__name__)


CREATE_LEDGER_QUERY = '''
CREATE TABLE IF NOT EXISTS applied_rows (
    hash TEXT NOT NULL,
    origin TEXT NOT NULL,
    PRIMARY KEY (hash, origin)
)
'''


def row_hash(table_name, columns, row) -> str:
    payload = json.dumps([table_name, list(columns), [value_to_text(v) for v in row]])
    return hashlib.sha1(payload.encode('utf-8')).hexdigest()


class RowLedger:
    """Persisted record of which store already holds which row.

    Keyed by a content hash of (table, columns, values). A hash recorded for a
    store means the row was inserted there or found there by a previous pair,
    so later passes skip it without querying the store. Writes are buffered
    in a ledger transaction opened and committed by the replication engine.
    """

    def __init__(self, path: str):
        self.path = path
        self.db = SQLiteApi('ledger', path)

    def open(self):
        self.db.connect()
        self.db.execute(CREATE_LEDGER_QUERY)
        logger.info(f'row ledger opened at {self.path}')
        return self

    def close(self):
        self.db.close()

    def contains(self, hash_value, origin) -> bool:
        row = self.db.fetch_one(
            'SELECT hash FROM applied_rows WHERE hash = ? AND origin = ?',
            (hash_value, origin),
        )
        return row is not None

    def record(self, hash_value, origin):
        self.db.execute(
            'INSERT OR IGNORE INTO applied_rows (hash, origin) VALUES (?, ?)',
            (hash_value, origin),
        )

    def count(self, origin=None) -> int:
        if origin is None:
            return self.db.fetch_one('SELECT COUNT(*) FROM applied_rows')[0]
        return self.db.fetch_one('SELECT COUNT(*) FROM applied_rows WHERE origin = ?', (origin,))[0]
