"""Pre-built processing functions for :class:`~sqlsession.session.Session`.

Any callable taking a row cursor works as a handler; these cover the
common cases::

    Session(source).sql("DELETE FROM foo").insert(VoidHandler())
    Session(source).sql("SELECT 1 FROM foo WHERE id = ?").set(1).select(NotEmptyHandler())
    Session(source).sql("SELECT name FROM foo WHERE id = ?").set(1).select(SingleHandler())
"""

from __future__ import annotations

from typing import Any

from sqlsession.errors import EmptyResultError
from sqlsession.protocols import RowCursor


class VoidHandler:
    """Ignores the rows and returns ``None``."""

    def __call__(self, rows: RowCursor | None) -> None:
        return None

    def __repr__(self) -> str:
        return "VoidHandler()"


class NotEmptyHandler:
    """Returns ``True`` when at least one row exists; raises otherwise."""

    def __call__(self, rows: RowCursor) -> bool:
        if rows.fetchone() is None:
            raise EmptyResultError("no records found, while at least one expected")
        return True

    def __repr__(self) -> str:
        return "NotEmptyHandler()"


class SingleHandler:
    """
    Returns the first column of the first row.

    With no rows it raises :class:`~sqlsession.errors.EmptyResultError`,
    or returns ``None`` when created with ``silently=True``.
    """

    def __init__(self, silently: bool = False) -> None:
        self._silently = silently

    def __call__(self, rows: RowCursor) -> Any:
        row = rows.fetchone()
        if row is None:
            if self._silently:
                return None
            raise EmptyResultError("no records found, while one expected")
        return row[0]

    def __repr__(self) -> str:
        return f"SingleHandler(silently={self._silently})"


__all__ = [
    "VoidHandler",
    "NotEmptyHandler",
    "SingleHandler",
]
