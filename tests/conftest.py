"""Shared test fixtures for sqlsession tests."""

import logging

import pytest

from sqlsession.config_schema import Config, DatabaseConfig, LoggingConfig
from sqlsession.db import Session


@pytest.fixture(autouse=True)
def _reset_logger():
    """Drop handlers added by setup_logging between tests."""
    yield
    logging.getLogger("sqlsession").handlers.clear()


@pytest.fixture
def db_url(tmp_path):
    """URL of a fresh SQLite database file."""
    return f"sqlite:///{tmp_path / 'test.db'}"


@pytest.fixture
def session(db_url):
    """Open session on a database with an empty ``t`` table."""
    session = Session(db_url)
    session.execute_update(
        "CREATE TABLE t ("
        "id INTEGER PRIMARY KEY AUTOINCREMENT, "
        "x INTEGER, "
        "label TEXT UNIQUE)"
    )
    yield session
    if session.in_transaction:
        session.rollback()
    session.close()


@pytest.fixture
def database_config(db_url):
    """Database configuration pointing at the test database."""
    return DatabaseConfig(url=db_url)


@pytest.fixture
def config(database_config):
    """Complete configuration."""
    return Config(database=database_config, logging=LoggingConfig(level="DEBUG"))
