import time
import threading
from dataclasses import dataclass, field
from logging import getLogger

from uvicorn import Config, Server
from fastapi import APIRouter, FastAPI

from .config import Settings
from .db_api import DbApi
from .db_replicator import DbReplicator
from .errors import ReplicationError
from .ledger import RowLedger
from .schema import introspect
from .stores import open_stores, close_stores
from .utils import GracefulKiller


logger = getLogger(__name__)


@dataclass
class PairStatistics:
    source: str
    destination: str
    tables_count: int = 0
    inserted_count: int = 0
    elapsed: float = 0.0
    error: str = None
    details: dict = field(default_factory=dict)

    @property
    def failed(self):
        return self.error is not None

    def to_dict(self):
        return {
            'source': self.source,
            'destination': self.destination,
            'tables_count': self.tables_count,
            'inserted_count': self.inserted_count,
            'elapsed': self.elapsed,
            'error': self.error,
            'details': self.details,
        }


@dataclass
class PassStatistics:
    started_at: float = 0.0
    elapsed: float = 0.0
    pairs: list[PairStatistics] = field(default_factory=list)

    @property
    def inserted_count(self):
        return sum(p.inserted_count for p in self.pairs)

    @property
    def failed_pairs(self):
        return [p for p in self.pairs if p.failed]

    def to_dict(self):
        return {
            'started_at': self.started_at,
            'elapsed': self.elapsed,
            'inserted_count': self.inserted_count,
            'failed_pairs': len(self.failed_pairs),
            'pairs': [p.to_dict() for p in self.pairs],
        }


class Orchestrator:
    """Runs replication over every ordered pair of distinct stores.

    Each source is introspected once and its schema reused for all of its
    destinations. Pairs run one after another.
    """

    def __init__(self, table_filter=None, ledger: RowLedger = None, continue_on_pair_error: bool = False):
        self.table_filter = table_filter
        self.ledger = ledger
        self.continue_on_pair_error = continue_on_pair_error

    def run(self, stores: list[DbApi]) -> PassStatistics:
        stats = PassStatistics(started_at=time.time())
        for source in stores:
            schema = introspect(source, self.table_filter)
            for destination in stores:
                if destination is source or destination.name == source.name:
                    continue
                stats.pairs.append(self.run_pair(schema, source, destination))
        stats.elapsed = time.time() - stats.started_at
        logger.info(
            f'replication pass finished: {len(stats.pairs)} pairs, '
            f'{stats.inserted_count} rows inserted, {len(stats.failed_pairs)} failed, '
            f'{stats.elapsed:.3f}s'
        )
        return stats

    def run_pair(self, schema, source: DbApi, destination: DbApi) -> PairStatistics:
        logger.info(f'starting replication from {source.name} to {destination.name}')
        pair = PairStatistics(
            source=source.name,
            destination=destination.name,
            tables_count=len(schema.tables),
        )
        replicator = DbReplicator(ledger=self.ledger)
        t1 = time.time()
        try:
            pair.inserted_count = replicator.replicate(schema, source, destination)
        except ReplicationError as e:
            pair.elapsed = time.time() - t1
            pair.error = str(e)
            logger.error(f'replication from {source.name} to {destination.name} failed: {e}')
            if not self.continue_on_pair_error:
                raise
            return pair
        pair.elapsed = time.time() - t1
        pair.details = replicator.stats.to_dict()
        logger.info(
            f'replication from {source.name} to {destination.name} finished: '
            f'tables={pair.tables_count} inserted={pair.inserted_count} elapsed={pair.elapsed:.3f}s'
        )
        return pair


class Runner:

    CHECK_INTERVAL = 0.3

    def __init__(self, config: Settings):
        self.config = config
        self.stores: list[DbApi] = []
        self.ledger = None
        self.http_server = None
        self.router = None
        self.last_pass: PassStatistics = None
        self.passes_count = 0
        self.need_run_pass = False

    def create_orchestrator(self):
        return Orchestrator(
            table_filter=self.config.is_table_matches,
            ledger=self.ledger,
            continue_on_pair_error=self.config.continue_on_pair_error,
        )

    def open(self):
        self.stores = open_stores(self.config)
        if self.config.ledger_path:
            self.ledger = RowLedger(self.config.ledger_path).open()

    def close(self):
        close_stores(self.stores)
        self.stores = []
        if self.ledger is not None:
            self.ledger.close()
            self.ledger = None

    def run_pass(self) -> PassStatistics:
        stats = self.create_orchestrator().run(self.stores)
        self.last_pass = stats
        self.passes_count += 1
        return stats

    def run_once(self) -> PassStatistics:
        self.open()
        try:
            return self.run_pass()
        finally:
            self.close()

    def get_stats(self):
        return {
            'passes_count': self.passes_count,
            'last_pass': self.last_pass.to_dict() if self.last_pass is not None else None,
        }

    def request_pass(self):
        self.need_run_pass = True
        return {'requested': True}

    def create_app(self) -> FastAPI:
        app = FastAPI()
        self.router = APIRouter()
        self.router.add_api_route('/stats', self.get_stats, methods=['GET'])
        self.router.add_api_route('/run_pass', self.request_pass, methods=['GET'])
        app.include_router(self.router)
        return app

    def create_server(self):
        if not self.config.http_host or not self.config.http_port:
            logger.info('http server disabled')
            return None
        config = Config(app=self.create_app(), host=self.config.http_host, port=self.config.http_port)
        return Server(config)

    def run_server(self):
        logger.info('starting http server')
        self.http_server.run()

    def is_pass_due(self, last_pass_time):
        if self.need_run_pass:
            return True
        return time.time() - last_pass_time >= self.config.run_interval

    def run(self):
        killer = GracefulKiller()
        server_thread = None

        try:
            self.open()

            self.http_server = self.create_server()
            if self.http_server is not None:
                server_thread = threading.Thread(target=self.run_server, daemon=True)
                server_thread.start()

            while not killer.kill_now:
                self.need_run_pass = False
                self.run_pass()
                if not self.config.run_interval:
                    break
                last_pass_time = time.time()
                while not killer.kill_now and not self.is_pass_due(last_pass_time):
                    time.sleep(Runner.CHECK_INTERVAL)
        finally:
            logger.info('stopping runner')
            self.close()
            if server_thread is not None:
                self.http_server.should_exit = True
                server_thread.join()

        logger.info('stopped')
