"""Best-effort release of cursors, statements and connections.

Release failures are logged at debug level and swallowed so that they
never mask the result or the error of the operation that owned the
resource.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from sqlsession.logging import get_logger

logger = get_logger(__name__)

R = TypeVar("R")


def close_quietly(resource: Any) -> None:
    """Close ``resource`` if it is not ``None``, suppressing any error."""
    if resource is None:
        return
    try:
        resource.close()
    except Exception as e:
        logger.debug("release_failed", resource=type(resource).__name__, error=str(e))


def rollback_and_close_quietly(conn: Any) -> None:
    """Roll back ``conn`` and close it; both steps are attempted, errors suppressed."""
    if conn is None:
        return
    try:
        conn.rollback()
        logger.debug("transaction_rolled_back")
    except Exception as e:
        logger.debug("release_failed", resource="rollback", error=str(e))
    finally:
        close_quietly(conn)


@contextmanager
def closing_quietly(resource: R) -> Iterator[R]:
    """Yield ``resource`` and close it quietly on every exit path."""
    try:
        yield resource
    finally:
        close_quietly(resource)


__all__ = [
    "close_quietly",
    "rollback_and_close_quietly",
    "closing_quietly",
]
