"""Database package for sqlsession."""

from sqlsession.db.database import build_url, create_engine
from sqlsession.db.params import PreparedStatement, count_placeholders, prepare
from sqlsession.db.result import Result
from sqlsession.db.session import Session, open_session

__all__ = [
    "build_url",
    "create_engine",
    "PreparedStatement",
    "count_placeholders",
    "prepare",
    "Result",
    "Session",
    "open_session",
]
