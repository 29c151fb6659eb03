"""Tests for the sqlsession CLI (main.py)."""

import pytest

from main import build_parser, main, parse_param
from sqlsession.config_schema import Config, DatabaseConfig, LoggingConfig
from sqlsession.db import Session


@pytest.fixture
def seeded_url(db_url):
    with Session(db_url) as session:
        session.execute_update("CREATE TABLE t (id INTEGER PRIMARY KEY, x INTEGER, label TEXT)")
        session.execute_update("INSERT INTO t(x, label) VALUES (?, ?)", 42, "answer")
        session.execute_update("INSERT INTO t(x, label) VALUES (?, ?)", 7, None)
    return db_url


class TestParseParam:
    """Tests for parse_param."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("42", 42),
            ("-3", -3),
            ("1.5", 1.5),
            ("NULL", None),
            ("null", None),
            ("true", True),
            ("FALSE", False),
            ("inf", "inf"),
            ("nan", "nan"),
            ("abc", "abc"),
        ],
    )
    def test_parses_literals(self, text, expected):
        assert parse_param(text) == expected


class TestParser:
    """Tests for the argument parser."""

    def test_requires_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_help_exits_cleanly(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["query", "--help"])
        assert exc_info.value.code == 0

    def test_collects_params(self):
        opts = build_parser().parse_args(["update", "DELETE FROM t WHERE x = ?", "5"])

        assert opts.command == "update"
        assert opts.params == ["5"]


class TestMain:
    """End-to-end runs against a SQLite database."""

    def test_query_prints_rows(self, seeded_url, capsys):
        code = main(["--url", seeded_url, "query", "SELECT x, label FROM t ORDER BY x"])

        out = capsys.readouterr().out.splitlines()
        assert code == 0
        assert out == ["x\tlabel", "7\tNULL", "42\tanswer"]

    def test_query_binds_params(self, seeded_url, capsys):
        code = main(["--url", seeded_url, "query", "SELECT label FROM t WHERE x = ?", "42"])

        assert code == 0
        assert capsys.readouterr().out.splitlines() == ["label", "answer"]

    def test_update_prints_row_count(self, seeded_url, capsys):
        code = main(["--url", seeded_url, "update", "UPDATE t SET x = ? WHERE x = ?", "1", "9999"])

        assert code == 0
        assert capsys.readouterr().out.strip() == "0"

    def test_session_error_exits_with_one(self, seeded_url, capsys):
        code = main(["--url", seeded_url, "query", "SELECT x FROM t WHERE x = ?"])

        assert code == 1
        assert capsys.readouterr().out == ""

    def test_uses_config_file(self, mocker, db_url):
        config = Config(database=DatabaseConfig(url=db_url), logging=LoggingConfig())
        load_config = mocker.patch("main.load_config", return_value=config)

        code = main(["--config", "custom.yaml", "query", "SELECT 1"])

        load_config.assert_called_once_with("custom.yaml")
        assert code == 0

    def test_config_error_exits_with_two(self, tmp_path, capsys):
        code = main(["--config", str(tmp_path / "missing.yaml"), "query", "SELECT 1"])

        assert code == 2
        assert "Configuration error" in capsys.readouterr().err
