"""Database session: one connection, parameterized SQL, transactions."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Generator, Iterator, Optional, Union

from sqlalchemy.engine import URL, CursorResult
from sqlalchemy.exc import SQLAlchemyError

from sqlsession.db.database import create_engine
from sqlsession.db.params import PreparedStatement, Scalar, prepare
from sqlsession.db.result import Result
from sqlsession.exceptions import (
    BindError,
    ConnectionError,
    DriverError,
    ExecutionError,
    TransactionError,
    translate_driver_error,
)

if TYPE_CHECKING:
    from sqlsession.config_schema import DatabaseConfig

logger = logging.getLogger("sqlsession")

# Query returning the id generated by the connection's most recent insert.
LAST_INSERT_ID_SQL = {
    "sqlite": "SELECT last_insert_rowid()",
    "mysql": "SELECT LAST_INSERT_ID()",
    "mariadb": "SELECT LAST_INSERT_ID()",
    "postgresql": "SELECT lastval()",
    "mssql": "SELECT SCOPE_IDENTITY()",
}


class Session:
    """A connection to one database.

    The connection is opened on construction and owned by the session for
    its whole lifetime. Statements outside an explicit transaction are
    committed one by one as they run.

    Resolve an active transaction with commit() or rollback() before
    closing the session. close() only warns about an unresolved
    transaction; its changes are discarded along with the connection.

    A Session is not thread safe. Use one session per thread or serialize
    access externally.
    """

    def __init__(
        self,
        url: Union[str, URL],
        user: Optional[str] = None,
        password: Optional[str] = None,
        **engine_options,
    ) -> None:
        """Open a connection to the given database.

        Args:
            url: Connection target, e.g. "sqlite:///app.db" or
                "mysql+pymysql://host/dbname"
            user: The database user on whose behalf the connection is made
            password: The user's password
            **engine_options: Extra keyword arguments for the engine

        Raises:
            ConnectionError: If the connection cannot be established
        """
        self._engine = create_engine(url, user, password, **engine_options)
        try:
            self._connection = self._engine.connect()
        except SQLAlchemyError as exc:
            self._engine.dispose()
            raise ConnectionError(
                f"Cannot connect to {self.url}: {exc}", orig=exc
            ) from exc
        logger.info(f"Connected to {self.url}")

    @classmethod
    def from_config(cls, config: "DatabaseConfig") -> "Session":
        """Open a session from a DatabaseConfig."""
        return cls(config.url, config.user, config.password, echo=config.echo)

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def url(self) -> str:
        """Connection target with the password masked."""
        return self._engine.url.render_as_string(hide_password=True)

    @property
    def dialect(self) -> str:
        return self._engine.dialect.name

    @property
    def closed(self) -> bool:
        return self._connection.closed

    @property
    def in_transaction(self) -> bool:
        """Whether a transaction is active on the connection."""
        return not self.closed and self._connection.in_transaction()

    def close(self) -> None:
        """Release the connection. Calling close() again is a no-op."""
        if self.closed:
            return
        if self._connection.in_transaction():
            logger.warning(
                f"Closing session on {self.url} with an unresolved transaction; "
                "its changes are discarded with the connection"
            )
        try:
            self._connection.close()
        finally:
            self._engine.dispose()
        logger.info(f"Disconnected from {self.url}")

    # =========================================================================
    # Transactions
    # =========================================================================

    def begin(self) -> None:
        """Initiate a transaction.

        Raises:
            TransactionError: If a transaction is already active or the
                driver rejects the request
        """
        self._require_open()
        if self._connection.in_transaction():
            raise TransactionError("A transaction is already active")
        try:
            self._connection.begin()
        except SQLAlchemyError as exc:
            raise translate_driver_error(exc, default=TransactionError) from exc
        logger.debug("Transaction started")

    def commit(self) -> None:
        """Commit the active transaction.

        If the driver fails to commit, the outcome is unknown and the
        transaction must be treated as failed.

        Raises:
            TransactionError: If no transaction is active or the commit fails
        """
        self._require_transaction("commit")
        try:
            self._connection.commit()
        except SQLAlchemyError as exc:
            raise TransactionError(f"Commit failed: {exc}", orig=exc) from exc
        logger.debug("Transaction committed")

    def rollback(self) -> None:
        """Roll back the active transaction.

        Raises:
            TransactionError: If no transaction is active or the rollback fails
        """
        self._require_transaction("roll back")
        try:
            self._connection.rollback()
        except SQLAlchemyError as exc:
            raise TransactionError(f"Rollback failed: {exc}", orig=exc) from exc
        logger.debug("Transaction rolled back")

    @contextmanager
    def transaction(self) -> Generator["Session", None, None]:
        """Run a block inside a transaction.

        The transaction is committed when the block exits normally and
        rolled back when it raises; the exception is re-raised.
        """
        self.begin()
        try:
            yield self
        except Exception:
            if self.in_transaction:
                self.rollback()
            raise
        self.commit()

    # =========================================================================
    # Statements
    # =========================================================================

    def execute_query(self, sql: str, *params: Scalar) -> Result:
        """Execute a query and return the rows it produces.

        Args:
            sql: SQL statement with one '?' placeholder per parameter
            *params: Parameter values, bound by position

        Raises:
            PreparationError: Malformed SQL or placeholder count mismatch
            BindError: A parameter cannot be bound
            ExecutionError: The database rejected the statement, or it
                produced no rows; statements without rows go through
                execute_update
        """
        statement = self._prepare(sql, params)
        if self._connection.in_transaction():
            cursor = self._execute(statement)
            self._require_rows(cursor)
            return Result(cursor)

        with self._implicit_transaction():
            cursor = self._execute(statement)
            self._require_rows(cursor)
            # The implicit transaction ends here, so the rows are copied out first.
            try:
                rows = cursor.freeze()()
            except SQLAlchemyError as exc:
                raise translate_driver_error(exc, default=ExecutionError) from exc
            return Result(rows)

    def execute_update(self, sql: str, *params: Scalar) -> int:
        """Execute a statement and return the number of affected rows.

        Zero is a valid result: the statement matched no rows.

        Args:
            sql: SQL statement with one '?' placeholder per parameter
            *params: Parameter values, bound by position

        Raises:
            PreparationError: Malformed SQL or placeholder count mismatch
            BindError: A parameter cannot be bound
            ExecutionError: The database rejected the statement
        """
        statement = self._prepare(sql, params)
        if self._connection.in_transaction():
            return self._row_count(self._execute(statement))

        with self._implicit_transaction():
            return self._row_count(self._execute(statement))

    def last_insert_id(self) -> int:
        """Return the id generated by this connection's most recent insert.

        What that id is depends on the database: SQLite and MySQL report the
        last auto-increment row id, PostgreSQL the last sequence value used
        in this session.

        Raises:
            DriverError: Unsupported dialect or the driver call fails
        """
        self._require_open()
        try:
            sql = LAST_INSERT_ID_SQL[self.dialect]
        except KeyError:
            raise DriverError(
                f"Last insert id is not supported for dialect {self.dialect}"
            ) from None

        try:
            if self._connection.in_transaction():
                value = self._connection.exec_driver_sql(sql).scalar()
            else:
                with self._connection.begin():
                    value = self._connection.exec_driver_sql(sql).scalar()
        except SQLAlchemyError as exc:
            raise DriverError(f"Cannot read last insert id: {exc}", orig=exc) from exc

        if value is None:
            raise DriverError("Driver returned no last insert id")
        return int(value)

    # =========================================================================
    # Internals
    # =========================================================================

    def _require_open(self) -> None:
        if self.closed:
            raise ConnectionError("Session is closed")

    def _require_transaction(self, action: str) -> None:
        self._require_open()
        if not self._connection.in_transaction():
            raise TransactionError(f"Cannot {action}: no transaction is active")

    def _prepare(self, sql: str, params: tuple) -> PreparedStatement:
        self._require_open()
        return prepare(sql, params, self._engine.dialect.paramstyle)

    def _execute(self, statement: PreparedStatement) -> CursorResult:
        logger.debug(f"Executing: {statement.sql} ({statement.parameter_count} parameters)")
        try:
            return self._connection.exec_driver_sql(statement.sql, statement.parameters)
        except SQLAlchemyError as exc:
            raise translate_driver_error(exc, default=ExecutionError) from exc
        except (OverflowError, ValueError, TypeError) as exc:
            # Raised by the driver itself while converting a parameter value.
            raise BindError(f"Cannot bind parameter: {exc}", orig=exc) from exc

    @contextmanager
    def _implicit_transaction(self) -> Iterator[None]:
        """Wrap one statement in a transaction committed as soon as it ends."""
        try:
            self._connection.begin()
        except SQLAlchemyError as exc:
            raise translate_driver_error(exc, default=ExecutionError) from exc
        try:
            yield
        except Exception:
            try:
                self._connection.rollback()
            except SQLAlchemyError:
                logger.debug("Rollback of failed statement also failed", exc_info=True)
            raise
        try:
            self._connection.commit()
        except SQLAlchemyError as exc:
            raise translate_driver_error(exc, default=ExecutionError) from exc

    @staticmethod
    def _require_rows(cursor: CursorResult) -> None:
        if not cursor.returns_rows:
            cursor.close()
            raise ExecutionError("Statement returns no rows; use execute_update")

    @staticmethod
    def _row_count(cursor: CursorResult) -> int:
        count = cursor.rowcount
        cursor.close()
        return max(count, 0)


@contextmanager
def open_session(
    url: Union[str, URL],
    user: Optional[str] = None,
    password: Optional[str] = None,
    **engine_options,
) -> Generator[Session, None, None]:
    """Yield a session that is closed on every exit path.

    Unlike Session.transaction(), no commit or rollback happens here; an
    unresolved transaction is reported by close().

    Args:
        url: SQLAlchemy database URL
        user: Database user
        password: The user's password

    Yields:
        An open Session
    """
    session = Session(url, user, password, **engine_options)
    try:
        yield session
    finally:
        session.close()
