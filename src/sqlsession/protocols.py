"""
Structural protocols for sqlsession.

The session never imports a database driver. It depends on the shape of a
DB-API 2.0 (PEP 249) connection and cursor, and on two small contracts of
its own: the row cursor handed to processing functions and the data source
that hands out connections.

Architecture:
    ::

        protocols.py
        ├── Cursor       - DB-API cursor (execute, fetch*, lastrowid, close)
        ├── Connection   - DB-API connection (cursor, commit, rollback, close)
        ├── RowCursor    - what a Handler reads from
        ├── Handler      - processing function: RowCursor -> T
        └── DataSource   - get_connection() -> Connection

Guardrails:
    ❌ DON'T: Add implementation logic to protocol classes
    ✅ DO: Keep protocols pure contracts; implementations live in
       statement.py, handlers.py and datasource.py

Tags:
    protocol, dbapi, pep-249, connection, cursor, sqlsession
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any, Protocol, TypeVar, runtime_checkable

T_co = TypeVar("T_co", covariant=True)


@runtime_checkable
class Cursor(Protocol):
    """Minimal DB-API cursor used by :class:`~sqlsession.statement.PreparedStatement`."""

    @property
    def description(self) -> Sequence[Sequence[Any]] | None: ...

    @property
    def rowcount(self) -> int: ...

    def execute(self, sql: str, params: Sequence[Any] = ()) -> Any: ...

    def fetchone(self) -> Any: ...

    def fetchmany(self, size: int = ...) -> list[Any]: ...

    def fetchall(self) -> list[Any]: ...

    def close(self) -> None: ...


@runtime_checkable
class Connection(Protocol):
    """
    Minimal SYNCHRONOUS DB-API connection.

    ``sqlite3.Connection``, ``psycopg.Connection`` and friends satisfy it
    structurally. Transaction-mode switching (``autocommit`` /
    ``isolation_level``) is optional and probed at runtime.
    """

    def cursor(self) -> Cursor: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def close(self) -> None: ...


@runtime_checkable
class RowCursor(Protocol):
    """Streaming rows handed to a processing function."""

    @property
    def description(self) -> Sequence[Sequence[Any]] | None: ...

    def fetchone(self) -> Any: ...

    def fetchmany(self, size: int | None = ...) -> list[Any]: ...

    def fetchall(self) -> list[Any]: ...

    def __iter__(self) -> Iterator[Any]: ...

    def close(self) -> None: ...


class Handler(Protocol[T_co]):
    """
    Processing function: consumes a row cursor and returns a result.

    Any callable with this shape works, plain functions and lambdas
    included. It may raise; the session wraps the failure in
    :class:`~sqlsession.errors.ExecutionError`.
    """

    def __call__(self, rows: RowCursor) -> T_co: ...


@runtime_checkable
class DataSource(Protocol):
    """Something that can open a new connection."""

    def get_connection(self) -> Connection: ...


__all__ = [
    "Cursor",
    "Connection",
    "RowCursor",
    "Handler",
    "DataSource",
]
