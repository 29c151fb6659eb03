"""sqlsession exception hierarchy."""

from __future__ import annotations

from enum import Enum
from typing import Optional, Type

from sqlalchemy.exc import DBAPIError, ProgrammingError, SQLAlchemyError


class ErrorKind(str, Enum):
    """Kind of failure reported by a session operation."""

    CONNECTION = "connection"
    PREPARATION = "preparation"
    BIND = "bind"
    EXECUTION = "execution"
    TRANSACTION = "transaction"
    DRIVER = "driver"


class SqlSessionError(Exception):
    """Base exception for all sqlsession errors."""


class ConfigError(SqlSessionError):
    """Invalid configuration or missing keys."""


class SessionError(SqlSessionError):
    """Base for every failure raised by a database session.

    Attributes:
        kind: The ErrorKind distinguishing this failure.
        orig: The driver exception that caused it, if any.
    """

    kind: ErrorKind = ErrorKind.DRIVER

    def __init__(self, message: str, orig: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.orig = orig

    @property
    def diagnostic(self) -> Optional[str]:
        """The driver's own diagnostic message."""
        if self.orig is None:
            return None
        dbapi_error = getattr(self.orig, "orig", None)
        return str(dbapi_error if dbapi_error is not None else self.orig)


class ConnectionError(SessionError):
    """Connection cannot be established, is lost, or was closed."""

    kind = ErrorKind.CONNECTION


class PreparationError(SessionError):
    """Invalid SQL text or placeholder/parameter count mismatch."""

    kind = ErrorKind.PREPARATION


class BindError(SessionError):
    """A parameter value cannot be bound to its placeholder."""

    kind = ErrorKind.BIND


class ExecutionError(SessionError):
    """The database rejected the statement while running it."""

    kind = ErrorKind.EXECUTION


class TransactionError(SessionError):
    """begin/commit/rollback in an invalid state or rejected by the driver."""

    kind = ErrorKind.TRANSACTION


class DriverError(SessionError):
    """Driver-reported failure not covered by the other kinds."""

    kind = ErrorKind.DRIVER


# Driver messages that mean the statement text itself was rejected.
_PREPARATION_MARKERS = ("syntax error", "incomplete input", "number of bindings")
_BIND_MARKERS = ("binding parameter", "type is not supported")


def translate_driver_error(
    exc: SQLAlchemyError,
    default: Type[SessionError] = DriverError,
) -> SessionError:
    """Map a SQLAlchemy exception onto the session error taxonomy.

    Args:
        exc: Exception raised by SQLAlchemy or the DBAPI driver beneath it.
        default: Class used for errors that did not come from the DBAPI.

    Returns:
        A SessionError subclass instance chained to ``exc`` by the caller.
    """
    if not isinstance(exc, DBAPIError):
        return default(str(exc), orig=exc)

    message = str(exc.orig) if exc.orig is not None else str(exc)
    lowered = message.lower()

    if exc.connection_invalidated:
        return ConnectionError(f"Connection lost: {message}", orig=exc)
    if any(marker in lowered for marker in _BIND_MARKERS):
        return BindError(message, orig=exc)
    if isinstance(exc, ProgrammingError) or any(
        marker in lowered for marker in _PREPARATION_MARKERS
    ):
        return PreparationError(message, orig=exc)
    return ExecutionError(message, orig=exc)
