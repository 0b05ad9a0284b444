"""
CLI: ``sqlsession``, run one statement against a configured database.

Each command opens one session (autocommit), runs the statement with the
given ``--arg`` values bound in order, and prints the result::

    sqlsession select "SELECT name FROM foo WHERE id = ?" -a int:42 -d app.db
    sqlsession insert "INSERT INTO foo (name) VALUES (?)" -a Alice -d app.db
    sqlsession update "DELETE FROM foo WHERE id = ?" -a int:1 -d app.db

Arguments are bound as text unless prefixed with a kind: ``null:``,
``int:``, ``bool:``, ``date:``, ``utc:`` or ``str:``.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import date
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.table import Table

from sqlsession import __version__
from sqlsession.errors import SessionError
from sqlsession.logging import configure_logging
from sqlsession.protocols import RowCursor
from sqlsession.session import Session
from sqlsession.settings import SessionSettings
from sqlsession.utc import Utc

app = typer.Typer(
    name="sqlsession",
    help="sqlsession: run parameterized SQL statements over one connection.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)


# ── Argument parsing ─────────────────────────────────────────────────────


def _parse_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {raw!r}")


_KINDS: dict[str, Callable[[str], Any]] = {
    "null": lambda raw: None,
    "int": int,
    "bool": _parse_bool,
    "date": date.fromisoformat,
    "utc": Utc.parse,
    "str": str,
}


def parse_argument(text: str) -> Any:
    """Turn ``kind:value`` into a typed value; anything else stays text."""
    kind, sep, raw = text.partition(":")
    if not sep or kind not in _KINDS:
        return text
    return _KINDS[kind](raw)


def _parse_all(values: list[str] | None) -> list[Any]:
    parsed = []
    for value in values or []:
        try:
            parsed.append(parse_argument(value))
        except ValueError as e:
            raise typer.BadParameter(f"{value!r}: {e}", param_hint="--arg") from e
    return parsed


# ── Session helpers ──────────────────────────────────────────────────────


def _open_session(database: str | None, sql: str, args: list[Any]) -> Session:
    settings = SessionSettings() if database is None else SessionSettings(database=database)
    session = Session(settings.data_source()).sql(sql)
    for arg in args:
        session.set(arg)
    return session


def _collect(rows: RowCursor) -> tuple[list[str], list[tuple[Any, ...]]]:
    columns = [desc[0] for desc in rows.description or ()]
    return columns, [tuple(row) for row in rows.fetchall()]


def _render(columns: list[str], rows: list[tuple[Any, ...]], *, as_json: bool, title: str) -> None:
    if as_json:
        payload = [dict(zip(columns, row, strict=False)) for row in rows]
        typer.echo(json.dumps(payload, indent=2, default=str))
        return

    table = Table(title=title)
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*("NULL" if v is None else str(v) for v in row))
    console.print(table)


def _fail(error: SessionError) -> NoReturn:
    err_console.print(f"[bold red]Error[/bold red] ({error.__class__.__name__}): {error.message}")
    if error.cause is not None:
        err_console.print(f"  caused by: {error.cause}")
    raise typer.Exit(code=1)


# ── Commands ─────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"sqlsession {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """sqlsession CLI: select, insert and update with bound arguments."""
    settings = SessionSettings()
    configure_logging(level=settings.log_level, json_format=settings.json_logs)


@app.command()
def select(
    sql: str = typer.Argument(..., help="SQL text with ? placeholders"),
    arg: list[str] | None = typer.Option(None, "--arg", "-a", help="Argument, bound in order"),
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL or path"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Run a query and print its rows."""
    args = _parse_all(arg)
    try:
        columns, rows = _open_session(database, sql, args).select(_collect)
    except SessionError as e:
        _fail(e)
    _render(columns, rows, as_json=json_out, title="Rows")


@app.command()
def insert(
    sql: str = typer.Argument(..., help="SQL text with ? placeholders"),
    arg: list[str] | None = typer.Option(None, "--arg", "-a", help="Argument, bound in order"),
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL or path"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Run an insert and print the generated keys."""
    args = _parse_all(arg)
    try:
        columns, rows = _open_session(database, sql, args).insert(_collect)
    except SessionError as e:
        _fail(e)
    _render(columns, rows, as_json=json_out, title="Generated keys")


@app.command()
def update(
    sql: str = typer.Argument(..., help="SQL text with ? placeholders"),
    arg: list[str] | None = typer.Option(None, "--arg", "-a", help="Argument, bound in order"),
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL or path"),
) -> None:
    """Run a data-modification statement and commit it."""
    args = _parse_all(arg)
    try:
        _open_session(database, sql, args).update()
    except SessionError as e:
        _fail(e)
    console.print("[green]OK[/green]")


def run() -> None:
    """Console-script entry point."""
    app()


__all__ = [
    "app",
    "parse_argument",
    "run",
]
