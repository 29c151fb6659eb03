"""sqlsession command line: run one parameterized statement."""

import argparse
import logging
import math
import sys

from sqlsession import __description__, __version__
from sqlsession.config_loader import load_config
from sqlsession.config_schema import Config, DatabaseConfig, LoggingConfig
from sqlsession.db import Session
from sqlsession.exceptions import ConfigError, SessionError
from sqlsession.logging_setup import setup_logging

logger = logging.getLogger("sqlsession")


def parse_param(text):
    """Turn a command line argument into a bindable value.

    ``null`` becomes None, ``true``/``false`` become booleans, integer and
    finite float literals become numbers, anything else stays text.
    """
    lowered = text.lower()
    if lowered == "null":
        return None
    if lowered in ("true", "false"):
        return lowered == "true"
    try:
        return int(text)
    except ValueError:
        pass
    try:
        value = float(text)
    except ValueError:
        return text
    return value if math.isfinite(value) else text


def build_parser():
    parser = argparse.ArgumentParser(prog="sqlsession", description=__description__)
    parser.add_argument('--version', action='version', version=f"%(prog)s {__version__}")
    parser.add_argument('--config', help="Path to sqlsession.yaml")
    parser.add_argument('--url', help="Database URL; skips the config file")
    parser.add_argument('--user', help="Database user (with --url)")
    parser.add_argument('--password', help="Database password (with --url)")
    parser.add_argument('--log-level', default=None, help="DEBUG, INFO, WARNING or ERROR")

    subparsers = parser.add_subparsers(dest="command", required=True)

    query_parser = subparsers.add_parser("query", help="Run a query and print its rows")
    query_parser.add_argument("sql")
    query_parser.add_argument("params", nargs="*")

    update_parser = subparsers.add_parser("update", help="Run a statement and print affected rows")
    update_parser.add_argument("sql")
    update_parser.add_argument("params", nargs="*")

    return parser


def resolve_config(opts):
    """Config from --url when given, otherwise from the YAML config file."""
    if opts.url:
        return Config(
            database=DatabaseConfig(url=opts.url, user=opts.user, password=opts.password),
            logging=LoggingConfig(),
        )
    return load_config(opts.config)


def run(opts, config: Config):
    """Run the statement named by ``opts``; return the process exit code."""
    params = [parse_param(p) for p in opts.params]

    try:
        with Session.from_config(config.database) as session:
            if opts.command == "query":
                with session.execute_query(opts.sql, *params) as result:
                    print("\t".join(result.columns))
                    for row in result:
                        print("\t".join("NULL" if v is None else str(v) for v in row))
            else:
                count = session.execute_update(opts.sql, *params)
                print(count)
    except SessionError as e:
        logger.error(f"{e.kind.value} error: {e}")
        return 1
    return 0


def main(argv=None):
    opts = build_parser().parse_args(argv)

    try:
        config = resolve_config(opts)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging(
        level=opts.log_level or config.logging.level,
        path=config.logging.path,
    )
    return run(opts, config)


if __name__ == "__main__":
    sys.exit(main())
