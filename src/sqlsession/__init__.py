"""
sqlsession - a single-connection SQL execution helper over DB-API 2.0.

Quick start::

    from sqlsession import Session, SingleHandler, SQLiteDataSource

    source = SQLiteDataSource("app.db")
    name = (
        Session(source)
        .sql("SELECT name FROM foo WHERE id = ?")
        .set(42)
        .select(SingleHandler())
    )
"""

__version__ = "0.1.0"

from sqlsession.binder import DEFAULT_BINDER, ArgumentBinder, BindingRule
from sqlsession.datasource import DriverDataSource, SQLiteDataSource, create_data_source
from sqlsession.errors import (
    CommitError,
    ConfigError,
    ConnectionUnavailableError,
    EmptyResultError,
    ExecutionError,
    MissingQueryError,
    SessionClosedError,
    SessionError,
)
from sqlsession.handlers import NotEmptyHandler, SingleHandler, VoidHandler
from sqlsession.session import Session
from sqlsession.statement import ParamType, PreparedStatement
from sqlsession.utc import Utc

__all__ = [
    "__version__",
    # session
    "Session",
    # handlers
    "VoidHandler",
    "NotEmptyHandler",
    "SingleHandler",
    # binding
    "ArgumentBinder",
    "BindingRule",
    "DEFAULT_BINDER",
    "ParamType",
    "PreparedStatement",
    "Utc",
    # data sources
    "SQLiteDataSource",
    "DriverDataSource",
    "create_data_source",
    # errors
    "SessionError",
    "ConfigError",
    "MissingQueryError",
    "ConnectionUnavailableError",
    "CommitError",
    "SessionClosedError",
    "ExecutionError",
    "EmptyResultError",
]
