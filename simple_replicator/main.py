#!/usr/bin/env python3

import argparse
import logging
import sys

from .config import Settings
from .runner import Runner
from .schema import introspect
from .stores import open_stores, close_stores


def set_logging_config(tags, log_level_str=None):
    """Configure logging to output only to stderr."""
    handlers = [logging.StreamHandler(sys.stderr)]

    log_levels = {
        'critical': logging.CRITICAL,
        'error': logging.ERROR,
        'warning': logging.WARNING,
        'info': logging.INFO,
        'debug': logging.DEBUG,
    }

    log_level = log_levels.get(log_level_str)
    if log_level is None:
        logging.warning(f'Unknown log level {log_level_str}, setting info')
        log_level = logging.INFO

    logging.basicConfig(
        level=log_level,
        format=f'[{tags} %(asctime)s %(levelname)8s] %(message)s',
        handlers=handlers,
        force=True,
    )


def run_once(args, config: Settings):
    set_logging_config('replicator', log_level_str=config.log_level)
    runner = Runner(config)
    stats = runner.run_once()
    if stats.failed_pairs:
        logging.error(f'{len(stats.failed_pairs)} pairs failed')
        return 1
    return 0


def run_all(args, config: Settings):
    set_logging_config('runner', log_level_str=config.log_level)
    runner = Runner(config)
    runner.run()
    return 0


def show_schema(args, config: Settings):
    set_logging_config('schema', log_level_str=config.log_level)
    stores = open_stores(config)
    try:
        for store in stores:
            schema = introspect(store, config.is_table_matches)
            print(f'{store.name} ({store.driver})')
            for table in schema.tables:
                fields = ', '.join(
                    f'{f.name} {f.field_type}'.strip() + (' PK' if f.primary_key else '')
                    for f in table.fields
                )
                print(f'  {table.table_name}({fields})')
    finally:
        close_stores(stores)
    return 0


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "mode", help="run mode",
        type=str,
        choices=["run_once", "run_all", "show_schema"])
    parser.add_argument("--config", help="config file path", default='config.yaml', type=str)
    args = parser.parse_args()

    config = Settings()
    config.load(args.config)

    if args.mode == 'run_once':
        sys.exit(run_once(args, config))
    if args.mode == 'run_all':
        sys.exit(run_all(args, config))
    if args.mode == 'show_schema':
        sys.exit(show_schema(args, config))


if __name__ == '__main__':
    main()
