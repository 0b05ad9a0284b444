"""Prepared statements and row cursors over a DB-API cursor.

A DB-API driver takes parameters as one positional sequence passed to
``cursor.execute``. :class:`PreparedStatement` puts a typed setter API in
front of that (``set_long``, ``set_date``, ...), records the kind every
position was bound as, and assembles the sequence when the statement runs.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any

from sqlsession.errors import ResultClosedError
from sqlsession.protocols import Cursor, RowCursor

GENERATED_KEY_DESCRIPTION = (("GENERATED_KEY", None, None, None, None, None, None),)


class ParamType(str, Enum):
    """Native parameter kinds a statement position can be bound as."""

    STRING = "string"
    LONG = "long"
    BOOLEAN = "boolean"
    DATE = "date"
    INTEGER = "integer"
    TIMESTAMP = "timestamp"


@dataclass(frozen=True)
class BoundParameter:
    """One bound placeholder: 1-based position, native kind and driver value."""

    position: int
    type: ParamType
    value: Any


class CursorRows:
    """Row cursor backed by a live DB-API cursor."""

    def __init__(self, cursor: Cursor) -> None:
        self._cursor = cursor
        self._closed = False

    @property
    def description(self) -> Sequence[Sequence[Any]] | None:
        return self._cursor.description

    @property
    def closed(self) -> bool:
        return self._closed

    def _check(self) -> None:
        if self._closed:
            raise ResultClosedError()

    def fetchone(self) -> Any:
        self._check()
        return self._cursor.fetchone()

    def fetchmany(self, size: int | None = None) -> list[Any]:
        """Up to ``size`` rows; the cursor's ``arraysize`` when omitted."""
        self._check()
        if size is None:
            size = getattr(self._cursor, "arraysize", 1)
        return list(self._cursor.fetchmany(size))

    def fetchall(self) -> list[Any]:
        self._check()
        return list(self._cursor.fetchall())

    def __iter__(self) -> Iterator[Any]:
        while True:
            row = self.fetchone()
            if row is None:
                return
            yield row

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._cursor.close()

    def __repr__(self) -> str:
        return f"CursorRows({self._cursor!r}, closed={self._closed})"


class StaticRows:
    """Row cursor over rows already held in memory (e.g. generated keys)."""

    def __init__(
        self,
        rows: Sequence[Any] = (),
        description: Sequence[Sequence[Any]] | None = None,
    ) -> None:
        self._rows = list(rows)
        self._index = 0
        self.arraysize = 1
        self._description = description
        self._closed = False

    @property
    def description(self) -> Sequence[Sequence[Any]] | None:
        return self._description

    @property
    def closed(self) -> bool:
        return self._closed

    def _check(self) -> None:
        if self._closed:
            raise ResultClosedError()

    def fetchone(self) -> Any:
        self._check()
        if self._index >= len(self._rows):
            return None
        row = self._rows[self._index]
        self._index += 1
        return row

    def fetchmany(self, size: int | None = None) -> list[Any]:
        self._check()
        if size is None:
            size = self.arraysize
        chunk = self._rows[self._index:self._index + size]
        self._index += len(chunk)
        return chunk

    def fetchall(self) -> list[Any]:
        self._check()
        rest = self._rows[self._index:]
        self._index = len(self._rows)
        return rest

    def __iter__(self) -> Iterator[Any]:
        while True:
            row = self.fetchone()
            if row is None:
                return
            yield row

    def close(self) -> None:
        self._closed = True

    def __repr__(self) -> str:
        return f"StaticRows({len(self._rows)} rows, closed={self._closed})"


class PreparedStatement:
    """
    A SQL text plus typed positional parameters, executed on one cursor.

    Positions are 1-based. Re-binding a position replaces its value. All
    positions from 1 to the highest one bound must be set before the
    statement runs.
    """

    def __init__(self, cursor: Cursor, sql: str) -> None:
        self._cursor = cursor
        self._sql = sql
        self._params: dict[int, BoundParameter] = {}
        self._closed = False

    @property
    def sql(self) -> str:
        return self._sql

    @property
    def cursor(self) -> Cursor:
        return self._cursor

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def bound(self) -> tuple[BoundParameter, ...]:
        """Bound parameters in position order."""
        return tuple(self._params[pos] for pos in sorted(self._params))

    @property
    def parameters(self) -> tuple[Any, ...]:
        """Driver values in position order, ready for ``cursor.execute``."""
        values = []
        for pos in range(1, len(self._params) + 1):
            if pos not in self._params:
                raise ValueError(f"parameter {pos} is not bound in: {self._sql}")
            values.append(self._params[pos].value)
        return tuple(values)

    # -- typed setters -------------------------------------------------

    def _bind(self, position: int, kind: ParamType, value: Any) -> None:
        if position < 1:
            raise IndexError(f"parameter positions start at 1, got {position}")
        self._params[position] = BoundParameter(position, kind, value)

    def set_string(self, position: int, value: str | None) -> None:
        self._bind(position, ParamType.STRING, value)

    def set_long(self, position: int, value: int) -> None:
        self._bind(position, ParamType.LONG, int(value))

    def set_boolean(self, position: int, value: bool) -> None:
        self._bind(position, ParamType.BOOLEAN, bool(value))

    def set_date(self, position: int, value: date) -> None:
        self._bind(position, ParamType.DATE, value)

    def set_int(self, position: int, value: int) -> None:
        self._bind(position, ParamType.INTEGER, int(value))

    def set_timestamp(self, position: int, value: datetime) -> None:
        self._bind(position, ParamType.TIMESTAMP, value)

    # -- execution -----------------------------------------------------

    def execute(self) -> bool:
        """Run the statement; ``True`` when it produced a result set."""
        self._cursor.execute(self._sql, self.parameters)
        return self._cursor.description is not None

    def execute_update(self) -> int:
        """Run a data-modification statement and return the affected row count."""
        self._cursor.execute(self._sql, self.parameters)
        return self._cursor.rowcount

    def execute_query(self) -> CursorRows:
        self._cursor.execute(self._sql, self.parameters)
        return CursorRows(self._cursor)

    def generated_keys(self) -> RowCursor:
        """
        Keys produced by the last ``execute()``.

        A statement that returned rows itself (``INSERT ... RETURNING id``)
        yields those rows; otherwise the driver's ``lastrowid`` is offered
        as a single-row, single-column cursor.
        """
        if self._cursor.description is not None:
            return CursorRows(self._cursor)
        key = getattr(self._cursor, "lastrowid", None)
        rows = [] if key is None else [(key,)]
        return StaticRows(rows, GENERATED_KEY_DESCRIPTION)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._cursor.close()

    def __repr__(self) -> str:
        return f"PreparedStatement({self._sql!r}, params={len(self._params)})"


__all__ = [
    "ParamType",
    "BoundParameter",
    "PreparedStatement",
    "CursorRows",
    "StaticRows",
    "GENERATED_KEY_DESCRIPTION",
]
