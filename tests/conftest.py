"""
Shared pytest fixtures for sqlsession tests.

This module provides:
- ``FakeConnection`` / ``FakeCursor``: a recording DB-API double that
  logs every cursor, execute, commit, rollback and close, and can be told
  to fail at any of those points
- File-backed SQLite databases with a ``foo`` table for integration tests
- structlog reset between tests
"""

from __future__ import annotations

import sqlite3
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import structlog

from sqlsession.datasource import SQLiteDataSource


class FakeDbError(Exception):
    """Stands in for a driver's DB-API error."""


class FakeCursor:
    def __init__(self, conn: FakeConnection) -> None:
        self.conn = conn
        self.description: tuple | None = None
        self.rowcount = -1
        self.arraysize = 1
        self.lastrowid: int | None = None
        self.closed = False
        self._rows: list[Any] = []

    def execute(self, sql: str, params: Any = ()) -> FakeCursor:
        if self.conn.fail_on is not None and self.conn.fail_on in sql:
            raise FakeDbError(f"cannot execute: {sql}")
        self.conn.executed.append((sql, tuple(params)))
        self.conn.log.append("execute")
        rows = self.conn.results.get(sql)
        if rows is None:
            self.description = None
            self._rows = []
            self.rowcount = 1
        else:
            self.description = tuple((name, None, None, None, None, None, None) for name in self.conn.columns)
            self._rows = list(rows)
            self.rowcount = -1
        self.lastrowid = self.conn.lastrowid
        return self

    def fetchone(self) -> Any:
        return self._rows.pop(0) if self._rows else None

    def fetchmany(self, size: int = 1) -> list[Any]:
        chunk = self._rows[:size]
        del self._rows[:size]
        return chunk

    def fetchall(self) -> list[Any]:
        rest, self._rows = self._rows, []
        return rest

    def close(self) -> None:
        self.conn.log.append("cursor_close")
        if self.conn.fail_cursor_close:
            raise FakeDbError("cursor close failed")
        self.closed = True


class FakeConnection:
    """Recording DB-API connection; starts in driver autocommit like most drivers."""

    def __init__(self) -> None:
        self.autocommit = True
        self.executed: list[tuple[str, tuple]] = []
        self.log: list[str] = []
        self.cursors: list[FakeCursor] = []
        self.results: dict[str, list[Any]] = {}
        self.columns: tuple[str, ...] = ("c1",)
        self.lastrowid: int | None = None
        self.commits = 0
        self.rollbacks = 0
        self.closes = 0
        self.fail_on: str | None = None
        self.fail_commit = False
        self.fail_rollback = False
        self.fail_close = False
        self.fail_cursor_close = False

    @property
    def closed(self) -> bool:
        return self.closes > 0

    def cursor(self) -> FakeCursor:
        cur = FakeCursor(self)
        self.cursors.append(cur)
        self.log.append("cursor")
        return cur

    def commit(self) -> None:
        self.log.append("commit")
        if self.fail_commit:
            raise FakeDbError("commit failed")
        self.commits += 1

    def rollback(self) -> None:
        self.log.append("rollback")
        if self.fail_rollback:
            raise FakeDbError("rollback failed")
        self.rollbacks += 1

    def close(self) -> None:
        self.log.append("close")
        self.closes += 1
        if self.fail_close:
            raise FakeDbError("close failed")


@pytest.fixture
def fake_conn() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """SQLite file with ``foo(id INTEGER PRIMARY KEY, name TEXT)``."""
    path = tmp_path / "app.db"
    conn = sqlite3.connect(path)
    conn.execute("CREATE TABLE foo (id INTEGER PRIMARY KEY, name TEXT)")
    conn.commit()
    conn.close()
    return path


@pytest.fixture
def source(db_path: Path) -> SQLiteDataSource:
    return SQLiteDataSource(db_path)


@pytest.fixture
def query_db(db_path: Path) -> Callable[..., list[tuple]]:
    """Run a query on a separate connection and return plain tuples."""

    def _query(sql: str, params: tuple = ()) -> list[tuple]:
        conn = sqlite3.connect(db_path)
        try:
            return [tuple(row) for row in conn.execute(sql, params).fetchall()]
        finally:
            conn.close()

    return _query


@pytest.fixture
def seed_db(db_path: Path) -> Callable[..., None]:
    """Insert ``(id, name)`` rows on a separate connection."""

    def _seed(*rows: tuple[int, str]) -> None:
        conn = sqlite3.connect(db_path)
        try:
            conn.executemany("INSERT INTO foo (id, name) VALUES (?, ?)", rows)
            conn.commit()
        finally:
            conn.close()

    return _seed


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()
