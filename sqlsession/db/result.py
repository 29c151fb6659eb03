"""Result wrapper around a driver row cursor."""

from __future__ import annotations

from typing import Any, Iterator, List, Optional

from sqlalchemy.engine import Result as EngineResult
from sqlalchemy.engine import Row
from sqlalchemy.exc import SQLAlchemyError

from sqlsession.exceptions import ExecutionError, translate_driver_error


class Result:
    """Rows produced by one query.

    The Result passes straight through to the driver cursor it wraps;
    whether rows stream or are buffered is up to that cursor. A Result is
    owned by the caller and may outlive further statements on its session.
    """

    def __init__(self, rows: EngineResult) -> None:
        self._rows = rows

    @property
    def columns(self) -> List[str]:
        """Column names in select-list order."""
        try:
            return list(self._rows.keys())
        except SQLAlchemyError as exc:
            raise translate_driver_error(exc, default=ExecutionError) from exc

    def __iter__(self) -> Iterator[Row]:
        while True:
            row = self.fetch()
            if row is None:
                return
            yield row

    def __enter__(self) -> "Result":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def fetch(self) -> Optional[Row]:
        """Return the next row, or None once the rows are exhausted."""
        try:
            return self._rows.fetchone()
        except SQLAlchemyError as exc:
            raise translate_driver_error(exc, default=ExecutionError) from exc

    def fetch_all(self) -> List[Row]:
        """Return every remaining row."""
        try:
            return list(self._rows.fetchall())
        except SQLAlchemyError as exc:
            raise translate_driver_error(exc, default=ExecutionError) from exc

    def scalar(self) -> Any:
        """Return the first column of the first row and close the Result."""
        try:
            return self._rows.scalar()
        except SQLAlchemyError as exc:
            raise translate_driver_error(exc, default=ExecutionError) from exc

    def close(self) -> None:
        self._rows.close()
