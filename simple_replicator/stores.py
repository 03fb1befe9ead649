from logging import getLogger

from .config import Settings, DatabaseSettings
from .db_api import DbApi
from .sqlite_api import SQLiteApi
from .mysql_api import MySQLApi


logger = getLogger(__name__)


def create_store(database: DatabaseSettings) -> DbApi:
    if database.is_sqlite():
        return SQLiteApi(database.name)
    if database.is_mysql():
        return MySQLApi(database.name, database.mysql)
    raise ValueError(f'unsupported driver {database.driver!r} for database {database.name}')


def open_stores(settings: Settings) -> list[DbApi]:
    """Connect every configured store, in configuration order.

    Stores opened before a failing one are closed again before the error
    propagates.
    """
    stores = []
    try:
        for database in settings.databases:
            logger.info(f'connecting to {database.name}...')
            store = create_store(database)
            store.connect()
            stores.append(store)
    except BaseException:
        close_stores(stores)
        raise
    return stores


def close_stores(stores: list[DbApi]):
    for store in stores:
        try:
            store.close()
        except store.driver_error as e:
            logger.warning(f'error closing {store.name}: {e}')
