"""sqlsession - a minimal database session.

Opens one connection, executes ``?``-parameterized SQL, manages transaction
boundaries and returns query rows through a Result.
"""

__description__ = "Minimal parameterized SQL session."
__version__ = "0.1.0"

from sqlsession.db import Result, Session, open_session
from sqlsession.exceptions import (
    BindError,
    ConfigError,
    ConnectionError,
    DriverError,
    ErrorKind,
    ExecutionError,
    PreparationError,
    SessionError,
    SqlSessionError,
    TransactionError,
)

__all__ = [
    "Session",
    "Result",
    "open_session",
    "SqlSessionError",
    "SessionError",
    "ErrorKind",
    "ConnectionError",
    "PreparationError",
    "BindError",
    "ExecutionError",
    "TransactionError",
    "DriverError",
    "ConfigError",
]
