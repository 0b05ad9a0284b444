"""
UTC timestamp wrapper (stdlib-only).

A plain ``datetime`` bound as a statement argument falls back to its text
form. Wrapping it in :class:`Utc` makes the binder set it as a TIMESTAMP
parameter, normalised to UTC, so the stored instant does not depend on the
local timezone of the process that wrote it.

Examples:
    >>> from datetime import datetime, timezone
    >>> Utc(datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)).isoformat()
    '2024-01-02T03:04:05+00:00'

Tags:
    timestamps, utc, datetime, binding, sqlsession
"""

from __future__ import annotations

from datetime import UTC, datetime
from functools import total_ordering
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sqlsession.statement import PreparedStatement


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Normalise a datetime to UTC. Naive values are taken as already UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@total_ordering
class Utc:
    """An instant in UTC that binds itself as a timestamp parameter."""

    __slots__ = ("_value",)

    def __init__(self, value: datetime | None = None) -> None:
        self._value = as_utc(value) if value is not None else utc_now()

    @classmethod
    def now(cls) -> Utc:
        return cls()

    @classmethod
    def parse(cls, text: str) -> Utc:
        """Parse an ISO 8601 string (``Z`` suffix accepted)."""
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        return cls(datetime.fromisoformat(text))

    @property
    def datetime(self) -> datetime:
        return self._value

    def isoformat(self) -> str:
        return self._value.isoformat()

    def set_timestamp(self, statement: PreparedStatement, position: int) -> None:
        """Bind this instant to ``statement`` at 1-based ``position``."""
        statement.set_timestamp(position, self._value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Utc):
            return NotImplemented
        return self._value == other._value

    def __lt__(self, other: Utc) -> bool:
        if not isinstance(other, Utc):
            return NotImplemented
        return self._value < other._value

    def __hash__(self) -> int:
        return hash(self._value)

    def __str__(self) -> str:
        return self.isoformat()

    def __repr__(self) -> str:
        return f"Utc({self.isoformat()!r})"


__all__ = [
    "Utc",
    "as_utc",
    "utc_now",
]
