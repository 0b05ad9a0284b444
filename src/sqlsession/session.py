"""
Session - a single-connection SQL builder and executor.

A :class:`Session` holds one DB-API connection, the current query text,
the pending positional arguments and an autocommit flag. Every
``select()`` / ``update()`` / ``insert()`` call is one full statement
round-trip: prepare, bind, execute, hand the rows to a processing
function, release, then settle the transaction.

Manifesto:
    Driver code for a single statement always looks the same: open a
    cursor, pass parameters, read rows, close the cursor, commit or roll
    back, close the connection. The session owns that boilerplate and
    stays a one-to-one passthrough to the DB-API: no query building, no
    ORM, no pooling.

Architecture:
    ::

        Session.select/update/insert
              │
              ▼
        _run(mode, handler, fetch)
          1. no query?              → MissingQueryError (fatal)
          2. connection → manual commit
          3. PreparedStatement(conn.cursor(), query)
          4. binder.parametrize(stmt, args)
          5. rows = fetch(stmt)
          6. result = handler(rows)
          7. release rows, then statement (quietly, always)
          8. failure → rollback+close (manual mode) → ExecutionError
          9. autocommit → commit()+close; pending args cleared
         10. return result

Examples:
    Single statement (autocommit, the default)::

        name = (
            Session(source)
            .sql("SELECT name FROM foo WHERE id = ?")
            .set(42)
            .select(lambda rows: rows.fetchone()[0])
        )

    Several statements in one transaction::

        (
            Session(source)
            .autocommit(False)
            .sql("DELETE FROM foo WHERE id = ?")
            .set(1)
            .update()
            .set(2)
            .update()
            .commit()
        )

Guardrails:
    ❌ DON'T: Rely on autocommit to roll back a failed statement
    ✅ DO: Use ``autocommit(False)`` whenever failure must roll back.
       Under autocommit a failed statement is still followed by
       ``commit()``, so partial work in that transaction is kept.

    ❌ DON'T: Reuse a session after its connection is closed
    ✅ DO: Create a new session per transaction

Tags:
    session, dbapi, transaction, autocommit, binding, sqlsession
"""

from __future__ import annotations

import threading
import time
import weakref
from collections.abc import Callable
from typing import Any, TypeVar

from sqlsession.binder import DEFAULT_BINDER, ArgumentBinder
from sqlsession.errors import (
    CommitError,
    ConnectionUnavailableError,
    ExecutionError,
    MissingQueryError,
    SessionClosedError,
)
from sqlsession.handlers import VoidHandler
from sqlsession.logging import get_logger
from sqlsession.protocols import Connection, DataSource, Handler, RowCursor
from sqlsession.resources import close_quietly, closing_quietly, rollback_and_close_quietly
from sqlsession.statement import PreparedStatement

logger = get_logger(__name__)

T = TypeVar("T")

Fetcher = Callable[[PreparedStatement], RowCursor | None]
ConnectionSource = DataSource | Connection | Callable[[], Connection]

_locks_guard = threading.Lock()
_connection_locks: weakref.WeakKeyDictionary[Any, threading.Lock] = weakref.WeakKeyDictionary()


def _fetch_rows(stmt: PreparedStatement) -> RowCursor:
    return stmt.execute_query()


def _fetch_nothing(stmt: PreparedStatement) -> None:
    stmt.execute_update()
    return None


def _fetch_generated_keys(stmt: PreparedStatement) -> RowCursor:
    stmt.execute()
    return stmt.generated_keys()


def open_connection(source: ConnectionSource) -> Connection:
    """
    Obtain a connection from ``source``.

    ``source`` may be a data source (``get_connection()``), an open DB-API
    connection (``cursor()``), or a zero-argument callable returning one.
    """
    try:
        if hasattr(source, "get_connection"):
            return source.get_connection()
        if hasattr(source, "cursor"):
            return source
        if callable(source):
            conn = source()
        else:
            conn = None
    except ConnectionUnavailableError:
        raise
    except Exception as e:
        raise ConnectionUnavailableError(f"Cannot obtain a connection: {e}", cause=e) from e

    if conn is None or not hasattr(conn, "cursor"):
        raise ConnectionUnavailableError(f"Cannot obtain a connection from {source!r}")
    return conn


def connection_lock(conn: Connection) -> threading.Lock:
    """
    The lock shared by every session built on ``conn``.

    Locks live as long as their connection. A connection that cannot be
    weakly referenced gets a fresh lock per call, so only the session
    holding it is serialized.
    """
    with _locks_guard:
        try:
            lock = _connection_locks.get(conn)
            if lock is None:
                lock = _connection_locks[conn] = threading.Lock()
        except TypeError:
            return threading.Lock()
        return lock


def begin_manual_commit(conn: Any) -> None:
    """Make the session, not the driver, own the commit boundary."""
    if getattr(conn, "autocommit", None) is True:
        conn.autocommit = False
    elif hasattr(conn, "isolation_level") and conn.isolation_level is None:
        # sqlite3 opened with isolation_level=None runs in driver autocommit
        conn.isolation_level = "DEFERRED"


class Session:
    """
    Builder/executor bound to one connection.

    ``sql()``, ``set()`` and ``autocommit()`` return the session for
    chaining. The session is thread-safe with respect to its builder
    state: one lock per connection, shared by every session built on it,
    guards the query, the autocommit flag and the snapshot each execution
    takes.
    """

    def __init__(self, source: ConnectionSource, *, binder: ArgumentBinder | None = None) -> None:
        self._conn = open_connection(source)
        self._binder = binder or DEFAULT_BINDER
        self._lock = connection_lock(self._conn)
        self._query: str | None = None
        self._args: list[Any] = []
        self._auto = True
        self._closed = False

    # -- state -----------------------------------------------------------

    @property
    def connection(self) -> Connection:
        return self._conn

    @property
    def query(self) -> str | None:
        return self._query

    @property
    def arguments(self) -> tuple[Any, ...]:
        """Snapshot of the pending arguments, in bind order."""
        return tuple(self._args)

    @property
    def is_autocommit(self) -> bool:
        return self._auto

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError()

    def _close(self) -> None:
        self._closed = True
        close_quietly(self._conn)

    # -- builder ---------------------------------------------------------

    def sql(self, sql: str) -> Session:
        """Use this SQL text (``?`` placeholders) for the next execution."""
        with self._lock:
            self._ensure_open()
            self._query = sql
        logger.debug("sql_set", query=sql)
        return self

    def autocommit(self, autocommit: bool) -> Session:
        """
        Choose the commit policy.

        ``True`` (the default) commits and closes the connection after
        every execution. ``False`` keeps the connection open until
        ``commit()``, or until a failed execution rolls back and closes it.
        """
        with self._lock:
            self._ensure_open()
            self._auto = autocommit
        logger.debug("autocommit_set", autocommit=autocommit)
        return self

    def set(self, value: Any) -> Session:
        """Append an argument for the next placeholder. Not validated here."""
        self._ensure_open()
        self._args.append(value)
        return self

    # -- transaction -----------------------------------------------------

    def commit(self) -> None:
        """Commit the transaction, then close the connection."""
        self._ensure_open()
        try:
            self._conn.commit()
        except Exception as e:
            raise CommitError(f"Commit failed: {e}", cause=e) from e
        finally:
            self._close()
        logger.debug("transaction_committed")

    # -- execution -------------------------------------------------------

    def select(self, handler: Handler[T]) -> T:
        """Run the query and return whatever ``handler`` makes of its rows."""
        return self._run("select", handler, _fetch_rows)

    def update(self) -> Session:
        """Run a data-modification statement."""
        self._run("update", VoidHandler(), _fetch_nothing)
        return self

    def insert(self, handler: Handler[T]) -> T:
        """Run the statement and hand its generated keys to ``handler``."""
        return self._run("insert", handler, _fetch_generated_keys)

    def _run(self, mode: str, handler: Handler[T], fetch: Fetcher) -> T:
        with self._lock:
            self._ensure_open()
            query = self._query
            args = tuple(self._args)
            auto = self._auto
        if query is None:
            self._args.clear()
            raise MissingQueryError().with_context(mode=mode)

        started = time.perf_counter()
        try:
            try:
                begin_manual_commit(self._conn)
                with closing_quietly(PreparedStatement(self._conn.cursor(), query)) as stmt:
                    self._binder.parametrize(stmt, args)
                    with closing_quietly(fetch(stmt)) as rows:
                        result = handler(rows)
            except Exception as e:
                logger.debug("statement_failed", mode=mode, query=query, error=str(e))
                if not auto:
                    self._closed = True
                    rollback_and_close_quietly(self._conn)
                raise ExecutionError(f"{mode} failed: {e}", cause=e).with_context(
                    query=query, mode=mode
                ) from e
        finally:
            try:
                if auto:
                    self.commit()
            finally:
                self._args.clear()

        logger.debug(
            "statement_executed",
            mode=mode,
            query=query,
            params=len(args),
            duration_ms=round((time.perf_counter() - started) * 1000, 3),
        )
        return result

    def __repr__(self) -> str:
        return (
            f"Session(query={self._query!r}, args={len(self._args)}, "
            f"autocommit={self._auto}, closed={self._closed})"
        )


__all__ = [
    "Session",
    "ConnectionSource",
    "open_connection",
    "connection_lock",
    "begin_manual_commit",
]
