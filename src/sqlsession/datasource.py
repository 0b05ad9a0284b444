"""Connection sources: hand out new DB-API connections on demand.

A :class:`~sqlsession.session.Session` takes one connection from a data
source at construction and closes it when its transaction ends. Data
sources therefore open a fresh connection per call; nothing is pooled.

Supported URL forms for :func:`create_data_source`
--------------------------------------------------
==================  ==========================================  ============
Form                Example                                     Backend
==================  ==========================================  ============
``memory``          ``memory`` or ``:memory:`` or ``None``       SQLite RAM
``sqlite``          ``sqlite:///path/to/file.db``                SQLite file
``(file path)``     ``./data/my.db`` or ``/tmp/app.db``          SQLite file
==================  ==========================================  ============

Other DB-API drivers plug in through :class:`DriverDataSource`::

    import psycopg
    source = DriverDataSource(psycopg.connect, "dbname=app")
"""

from __future__ import annotations

import sqlite3
from collections.abc import Callable
from pathlib import Path
from typing import Any

from sqlsession.errors import ConnectionUnavailableError, InvalidConfigError
from sqlsession.logging import get_logger
from sqlsession.protocols import Connection

logger = get_logger(__name__)

MEMORY = ":memory:"


class SQLiteDataSource:
    """
    Opens ``sqlite3`` connections.

    Each call returns a new connection with ``sqlite3.Row`` rows and
    foreign keys enabled. An in-memory database lives only as long as the
    single connection that created it.
    """

    def __init__(
        self,
        path: str | Path = MEMORY,
        *,
        timeout: float = 5.0,
        readonly: bool = False,
    ) -> None:
        self._path = str(path)
        self._timeout = timeout
        self._readonly = readonly

    @property
    def path(self) -> str:
        return self._path

    @property
    def readonly(self) -> bool:
        return self._readonly

    @property
    def persistent(self) -> bool:
        return self._path != MEMORY

    def get_connection(self) -> Connection:
        uri = self._path.startswith("file:")
        try:
            conn = sqlite3.connect(
                self._path,
                timeout=self._timeout,
                check_same_thread=False,
                uri=uri,
            )
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            if self._readonly:
                conn.execute("PRAGMA query_only = ON")
        except sqlite3.Error as e:
            raise ConnectionUnavailableError(
                f"Failed to connect to SQLite: {e}",
                cause=e,
            ).with_context(path=self._path) from e
        logger.debug("connection_opened", backend="sqlite", path=self._path)
        return conn

    def __repr__(self) -> str:
        return f"SQLiteDataSource({self._path!r}, readonly={self._readonly})"


class DriverDataSource:
    """Wraps any DB-API ``connect`` callable and its arguments."""

    def __init__(self, connect: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        self._connect = connect
        self._args = args
        self._kwargs = kwargs

    def get_connection(self) -> Connection:
        try:
            return self._connect(*self._args, **self._kwargs)
        except Exception as e:
            raise ConnectionUnavailableError(f"Failed to connect: {e}", cause=e) from e

    def __repr__(self) -> str:
        name = getattr(self._connect, "__qualname__", repr(self._connect))
        return f"DriverDataSource({name})"


def _parse_url(db: str | None) -> tuple[str, str]:
    """Parse a database URL into ``(scheme, target)``."""
    if db is None or db in ("", "memory", MEMORY):
        return "memory", MEMORY

    for prefix in ("sqlite:///", "sqlite://"):
        if db.startswith(prefix):
            path = db[len(prefix):]
            if not path or path == MEMORY:
                return "memory", MEMORY
            return "sqlite", path

    if "://" in db:
        return db.split("://", 1)[0], db

    # Bare file path: SQLite file
    return "file", db


def create_data_source(
    db: str | None = None,
    *,
    timeout: float = 5.0,
    readonly: bool = False,
) -> SQLiteDataSource:
    """Build a data source from a URL, path, or keyword.

    Raises:
        InvalidConfigError: for URL schemes without a built-in backend;
            use :class:`DriverDataSource` for those.
    """
    scheme, target = _parse_url(db)

    if scheme == "memory":
        return SQLiteDataSource(MEMORY, timeout=timeout, readonly=readonly)

    if scheme in ("sqlite", "file"):
        Path(target).parent.mkdir(parents=True, exist_ok=True)
        return SQLiteDataSource(target, timeout=timeout, readonly=readonly)

    raise InvalidConfigError(
        "database",
        db,
        f"Unsupported database URL scheme {scheme!r}; use DriverDataSource for other drivers",
    )


__all__ = [
    "SQLiteDataSource",
    "DriverDataSource",
    "create_data_source",
]
