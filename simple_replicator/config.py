"""
Simple Replicator Configuration Management

This module provides configuration classes for the reconciliation process:
the list of stores to reconcile, the driver used to reach each of them and
the knobs of the replication pass.

Classes:
    MysqlSettings: MySQL connection configuration for a single store
    DatabaseSettings: One named store entry (name, driver, driver options)
    Settings: Main configuration class loaded from YAML

Key Features:
    - YAML-based configuration loading
    - Per-store driver override of the global driver
    - Table filtering with fnmatch patterns
    - Type validation and error handling
"""

import fnmatch
from dataclasses import dataclass

import yaml


SQLITE_DRIVERS = ('', 'sqlite', 'sqlite3')
MYSQL_DRIVERS = ('mysql',)


def stype(obj):
    """Get the simple type name of an object.

    Example:
        >>> stype([1, 2, 3])
        'list'
    """
    return type(obj).__name__


@dataclass
class MysqlSettings:
    """MySQL connection configuration for one store.

    Attributes:
        host: MySQL server hostname or IP address
        port: MySQL server port (default: 3306)
        user: MySQL username for authentication
        password: MySQL password for authentication
        database: Database holding the replicated tables
        charset: Character set for connection (optional)
        collation: Collation for connection (optional)
    """
    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = ""
    database: str = ""
    charset: str = None
    collation: str = None

    def validate(self):
        if not isinstance(self.host, str):
            raise ValueError(f"mysql host should be string and not {stype(self.host)}")

        if not isinstance(self.port, int):
            raise ValueError(f"mysql port should be int and not {stype(self.port)}")

        if not isinstance(self.user, str):
            raise ValueError(f"mysql user should be string and not {stype(self.user)}")

        if not isinstance(self.password, str):
            raise ValueError(
                f"mysql password should be string and not {stype(self.password)}"
            )

        if not isinstance(self.database, str) or not self.database:
            raise ValueError("mysql database should be a non-empty string")

        if self.charset is not None and not isinstance(self.charset, str):
            raise ValueError(
                f"mysql charset should be string or None and not {stype(self.charset)}"
            )

        if self.collation is not None and not isinstance(self.collation, str):
            raise ValueError(
                f"mysql collation should be string or None and not {stype(self.collation)}"
            )

    def get_connection_config(self):
        """Build standardized MySQL connection configuration"""
        config = {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "database": self.database,
            "autocommit": True,
            "consume_results": True,
        }

        if self.charset is not None:
            config["charset"] = self.charset

        if self.collation is not None:
            config["collation"] = self.collation

        return config


@dataclass
class DatabaseSettings:
    name: str = ""
    driver: str = ""
    mysql: MysqlSettings = None

    def validate(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError(f"database name should be a non-empty string, got {self.name!r}")

        if not isinstance(self.driver, str):
            raise ValueError(
                f"database {self.name} driver should be string and not {stype(self.driver)}"
            )

        if self.is_sqlite():
            return

        if self.is_mysql():
            if self.mysql is None:
                raise ValueError(f"database {self.name} uses mysql driver but has no mysql section")
            self.mysql.validate()
            return

        raise ValueError(f"database {self.name} has unsupported driver {self.driver!r}")

    def is_sqlite(self):
        return self.driver.strip().lower() in SQLITE_DRIVERS

    def is_mysql(self):
        return self.driver.strip().lower() in MYSQL_DRIVERS


class Settings:
    DEFAULT_LOG_LEVEL = "info"
    DEFAULT_DRIVER = "sqlite3"

    def __init__(self):
        self.databases: list[DatabaseSettings] = []
        self.driver = Settings.DEFAULT_DRIVER
        self.tables = "*"
        self.exclude_tables = ""
        self.settings_file = ""
        self.log_level = Settings.DEFAULT_LOG_LEVEL
        self.continue_on_pair_error = False
        self.ledger_path = ""
        self.run_interval = 0
        self.http_host = ""
        self.http_port = 0

    def load(self, settings_file):
        with open(settings_file, "r") as f:
            data = yaml.safe_load(f.read()) or {}
        self.settings_file = settings_file
        self.load_dict(data)

    def load_dict(self, data: dict):
        data = dict(data)

        self.log_level = data.pop("log_level", Settings.DEFAULT_LOG_LEVEL)
        self.driver = data.pop("driver", Settings.DEFAULT_DRIVER)
        self.tables = data.pop("tables", "*")
        self.exclude_tables = data.pop("exclude_tables", "")
        self.continue_on_pair_error = data.pop("continue_on_pair_error", False)
        self.ledger_path = data.pop("ledger_path", "")
        self.run_interval = data.pop("run_interval", 0)
        self.http_host = data.pop("http_host", "")
        self.http_port = data.pop("http_port", 0)

        databases = data.pop("databases", [])
        if not isinstance(databases, list):
            raise ValueError(f"databases should be a list and not {stype(databases)}")

        self.databases = []
        for database in databases:
            database = dict(database)
            mysql = database.pop("mysql", None)
            database.setdefault("driver", self.driver or "")
            self.databases.append(DatabaseSettings(
                mysql=MysqlSettings(**mysql) if mysql is not None else None,
                **database,
            ))

        assert isinstance(self.tables, str) or isinstance(self.tables, list)

        if data:
            raise Exception(f"Unsupported config options: {list(data.keys())}")
        self.validate()

    @classmethod
    def is_pattern_matches(cls, substr, pattern):
        if not pattern or pattern == "*":
            return True
        if isinstance(pattern, str):
            return fnmatch.fnmatch(substr, pattern)
        if isinstance(pattern, list):
            for allowed_pattern in pattern:
                if fnmatch.fnmatch(substr, allowed_pattern):
                    return True
            return False
        raise ValueError()

    def is_table_matches(self, table_name):
        if self.exclude_tables and self.is_pattern_matches(
            table_name, self.exclude_tables
        ):
            return False
        return self.is_pattern_matches(table_name, self.tables)

    def validate_log_level(self):
        if self.log_level not in ["critical", "error", "warning", "info", "debug"]:
            raise ValueError(f"wrong log level {self.log_level}")

    def validate(self):
        self.validate_log_level()

        if not isinstance(self.driver, str):
            raise ValueError(f"driver should be string and not {stype(self.driver)}")

        names = set()
        for database in self.databases:
            database.validate()
            if database.name in names:
                raise ValueError(f"duplicate database name {database.name}")
            names.add(database.name)

        if not isinstance(self.continue_on_pair_error, bool):
            raise ValueError(
                f"continue_on_pair_error should be bool and not {stype(self.continue_on_pair_error)}"
            )

        if not isinstance(self.ledger_path, str):
            raise ValueError(f"ledger_path should be string and not {stype(self.ledger_path)}")

        if not isinstance(self.run_interval, (int, float)) or isinstance(self.run_interval, bool):
            raise ValueError(f"run_interval should be a number and not {stype(self.run_interval)}")
        if self.run_interval < 0:
            raise ValueError("run_interval should be non-negative")

        if not isinstance(self.http_host, str):
            raise ValueError(f"http_host should be string and not {stype(self.http_host)}")
        if not isinstance(self.http_port, int):
            raise ValueError(f"http_port should be int and not {stype(self.http_port)}")
