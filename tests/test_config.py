import pytest
import yaml

from simple_replicator.config import Settings


BASE_CONFIG = {
    'log_level': 'debug',
    'driver': 'sqlite3',
    'databases': [
        {'name': 'replica_a.db'},
        {'name': 'replica_b.db'},
        {
            'name': 'replica_c',
            'driver': 'mysql',
            'mysql': {
                'host': 'mysql.local',
                'port': 3307,
                'user': 'replicator',
                'password': 'secret',
                'database': 'replica_c',
            },
        },
    ],
    'tables': ['users', 'orders*'],
    'exclude_tables': 'orders_tmp',
    'continue_on_pair_error': True,
    'ledger_path': 'ledger.db',
    'run_interval': 30,
    'http_host': '127.0.0.1',
    'http_port': 9128,
}


def write_config(tmp_path, data):
    config_file = tmp_path / 'config.yaml'
    config_file.write_text(yaml.safe_dump(data))
    return str(config_file)


def test_load_config(tmp_path):
    settings = Settings()
    settings.load(write_config(tmp_path, BASE_CONFIG))

    assert [d.name for d in settings.databases] == ['replica_a.db', 'replica_b.db', 'replica_c']
    assert settings.databases[0].is_sqlite()
    assert settings.databases[0].driver == 'sqlite3'
    assert settings.databases[2].is_mysql()
    assert settings.databases[2].mysql.host == 'mysql.local'
    assert settings.databases[2].mysql.port == 3307
    assert settings.databases[2].mysql.get_connection_config()['database'] == 'replica_c'
    assert settings.databases[2].mysql.get_connection_config()['consume_results']

    assert settings.log_level == 'debug'
    assert settings.continue_on_pair_error
    assert settings.ledger_path == 'ledger.db'
    assert settings.run_interval == 30
    assert settings.http_port == 9128


def test_defaults(tmp_path):
    settings = Settings()
    settings.load(write_config(tmp_path, {'databases': [{'name': 'a.db'}, {'name': 'b.db'}]}))

    assert settings.log_level == 'info'
    assert settings.tables == '*'
    assert not settings.continue_on_pair_error
    assert settings.ledger_path == ''
    assert settings.run_interval == 0
    assert all(d.is_sqlite() for d in settings.databases)


def test_empty_driver_means_sqlite():
    settings = Settings()
    settings.load_dict({'driver': '', 'databases': [{'name': 'a.db'}]})
    assert settings.databases[0].is_sqlite()


def test_table_matching():
    settings = Settings()
    settings.load_dict(BASE_CONFIG)

    assert settings.is_table_matches('users')
    assert settings.is_table_matches('orders_2024')
    assert not settings.is_table_matches('orders_tmp')
    assert not settings.is_table_matches('sessions')


@pytest.mark.parametrize('override, message', [
    ({'log_level': 'verbose'}, 'wrong log level'),
    ({'databases': [{'name': 'a.db'}, {'name': 'a.db'}]}, 'duplicate database name'),
    ({'databases': [{'name': 'a', 'driver': 'mysql'}]}, 'has no mysql section'),
    ({'databases': [{'name': 'a', 'driver': 'postgres'}]}, 'unsupported driver'),
    ({'databases': [{'name': ''}]}, 'non-empty string'),
    ({'run_interval': -1}, 'run_interval should be non-negative'),
    ({'continue_on_pair_error': 'yes'}, 'continue_on_pair_error should be bool'),
])
def test_invalid_config(override, message):
    data = {'databases': [{'name': 'a.db'}]}
    data.update(override)

    settings = Settings()
    with pytest.raises(ValueError, match=message):
        settings.load_dict(data)


def test_unsupported_option():
    settings = Settings()
    with pytest.raises(Exception, match='Unsupported config options'):
        settings.load_dict({'databases': [], 'loglevel': 'debug'})
