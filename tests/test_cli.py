"""Tests for the sqlsession CLI (typer + rich)."""

from __future__ import annotations

import json
from datetime import date

import pytest
import typer
from typer.testing import CliRunner

from sqlsession import __version__
from sqlsession.cli import _parse_all, app, parse_argument
from sqlsession.utc import Utc

runner = CliRunner()


@pytest.fixture(autouse=True)
def _quiet_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("SQLSESSION_DATABASE", raising=False)
    monkeypatch.setenv("SQLSESSION_LOG_LEVEL", "ERROR")


class TestParseArgument:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Alice", "Alice"),
            ("int:42", 42),
            ("bool:yes", True),
            ("bool:0", False),
            ("null:", None),
            ("date:2024-03-01", date(2024, 3, 1)),
            ("str:int:42", "int:42"),
            ("http://example.com", "http://example.com"),
        ],
    )
    def test_kinds(self, text, expected):
        assert parse_argument(text) == expected

    def test_utc(self):
        assert parse_argument("utc:2024-01-02T03:04:05Z") == Utc.parse("2024-01-02T03:04:05+00:00")

    def test_bad_value_is_bad_parameter(self):
        with pytest.raises(typer.BadParameter):
            _parse_all(["int:many"])


class TestVersion:
    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestCommands:
    def test_insert_prints_generated_key(self, db_path):
        result = runner.invoke(
            app,
            ["insert", "INSERT INTO foo (name) VALUES (?)", "-a", "Alice", "-d", str(db_path), "--json"],
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == [{"GENERATED_KEY": 1}]

    def test_select_json(self, db_path, seed_db):
        seed_db((1, "Alice"), (2, "Bob"))
        result = runner.invoke(
            app,
            ["select", "SELECT id, name FROM foo WHERE id > ? ORDER BY id", "-a", "int:0", "-d", str(db_path), "--json"],
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == [{"id": 1, "name": "Alice"}, {"id": 2, "name": "Bob"}]

    def test_select_table(self, db_path, seed_db):
        seed_db((1, "Alice"))
        result = runner.invoke(app, ["select", "SELECT name FROM foo", "-d", str(db_path)])
        assert result.exit_code == 0, result.output
        assert "Alice" in result.stdout

    def test_update_commits(self, db_path, seed_db, query_db):
        seed_db((1, "Alice"))
        result = runner.invoke(
            app,
            ["update", "UPDATE foo SET name = ? WHERE id = ?", "-a", "Bob", "-a", "int:1", "-d", str(db_path)],
        )
        assert result.exit_code == 0, result.output
        assert "OK" in result.stdout
        assert query_db("SELECT name FROM foo") == [("Bob",)]

    def test_database_from_environment(self, db_path, seed_db, monkeypatch):
        seed_db((7, "Env"))
        monkeypatch.setenv("SQLSESSION_DATABASE", str(db_path))
        result = runner.invoke(app, ["select", "SELECT id FROM foo", "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == [{"id": 7}]

    def test_statement_error_exits_one(self, db_path):
        result = runner.invoke(app, ["select", "SELECT * FROM missing", "-d", str(db_path)])
        assert result.exit_code == 1
        assert "ExecutionError" in result.output

    def test_bad_argument_exits_two(self, db_path):
        result = runner.invoke(app, ["update", "DELETE FROM foo WHERE id = ?", "-a", "int:x", "-d", str(db_path)])
        assert result.exit_code == 2
