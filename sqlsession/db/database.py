"""Engine construction for database sessions."""

import logging
from typing import Optional, Union

from sqlalchemy import Engine
from sqlalchemy import create_engine as sa_create_engine
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.pool import NullPool

from sqlsession.exceptions import ConnectionError

logger = logging.getLogger("sqlsession")

# Backends that open a local file and take no credentials.
CREDENTIALLESS_BACKENDS = ("sqlite",)


def build_url(
    url: Union[str, URL],
    user: Optional[str] = None,
    password: Optional[str] = None,
) -> URL:
    """Parse a connection target and apply the given credentials.

    SQLite takes no credentials; any given for it are ignored.

    Args:
        url: SQLAlchemy database URL (e.g., "sqlite:///path/to/db.sqlite",
            "postgresql+psycopg2://host/dbname")
        user: Database user, passed through unmodified
        password: The user's password, passed through unmodified

    Raises:
        ConnectionError: If the URL cannot be parsed
    """
    try:
        target = make_url(url)
    except ArgumentError as exc:
        raise ConnectionError(f"Malformed connection target: {exc}", orig=exc) from exc

    if target.get_backend_name() in CREDENTIALLESS_BACKENDS:
        if user is not None or password is not None:
            logger.debug(f"Ignoring credentials for {target.get_backend_name()} target")
        return target

    if user is not None:
        target = target.set(username=user)
    if password is not None:
        target = target.set(password=password)
    return target


def create_engine(
    url: Union[str, URL],
    user: Optional[str] = None,
    password: Optional[str] = None,
    **options,
) -> Engine:
    """Create a non-pooling SQLAlchemy engine for the given database URL.

    Every connection checked out of the engine is a fresh DBAPI connection
    that is closed, not returned to a pool, when released.

    Args:
        url: SQLAlchemy database URL
        user: Database user
        password: The user's password
        **options: Extra keyword arguments for sqlalchemy.create_engine

    Returns:
        SQLAlchemy Engine instance

    Raises:
        ConnectionError: If the URL is malformed, names an unknown dialect,
            or the dialect's driver module is not installed
    """
    target = build_url(url, user, password)
    try:
        return sa_create_engine(target, poolclass=NullPool, **options)
    except (ArgumentError, ImportError) as exc:
        raise ConnectionError(
            f"Cannot use connection target {target.render_as_string(hide_password=True)}: {exc}",
            orig=exc,
        ) from exc
