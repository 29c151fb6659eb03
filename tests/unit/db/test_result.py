"""Tests for sqlsession.db.result module."""

import pytest
from sqlalchemy.exc import OperationalError

from sqlsession.db.result import Result
from sqlsession.exceptions import ExecutionError


@pytest.fixture
def populated(session):
    for value, label in ((1, "one"), (2, "two"), (3, "three")):
        session.execute_update("INSERT INTO t(x, label) VALUES (?, ?)", value, label)
    return session


class TestResult:
    """Tests for the Result wrapper."""

    def test_columns(self, populated):
        result = populated.execute_query("SELECT x, label FROM t")

        assert result.columns == ["x", "label"]

    def test_iterates_rows_in_order(self, populated):
        result = populated.execute_query("SELECT x, label FROM t ORDER BY x")

        assert [tuple(row) for row in result] == [(1, "one"), (2, "two"), (3, "three")]

    def test_fetch_until_exhausted(self, populated):
        result = populated.execute_query("SELECT x FROM t WHERE x < ? ORDER BY x", 3)

        assert result.fetch()[0] == 1
        assert result.fetch()[0] == 2
        assert result.fetch() is None

    def test_fetch_all_returns_remaining(self, populated):
        result = populated.execute_query("SELECT x FROM t ORDER BY x")
        result.fetch()

        assert [row[0] for row in result.fetch_all()] == [2, 3]

    def test_rows_expose_mapping(self, populated):
        row = populated.execute_query("SELECT x, label FROM t WHERE x = ?", 2).fetch()

        assert row._mapping["label"] == "two"

    def test_scalar(self, populated):
        assert populated.execute_query("SELECT MAX(x) FROM t").scalar() == 3

    def test_streams_inside_transaction(self, populated):
        populated.begin()
        with populated.execute_query("SELECT x FROM t ORDER BY x") as result:
            assert result.fetch()[0] == 1
        populated.rollback()

    def test_driver_failure_while_fetching(self, mocker):
        rows = mocker.Mock()
        rows.fetchone.side_effect = OperationalError("fetch", {}, Exception("lost"))

        with pytest.raises(ExecutionError):
            Result(rows).fetch()

    def test_close_closes_cursor(self, mocker):
        rows = mocker.Mock()

        with Result(rows):
            pass

        rows.close.assert_called_once()
