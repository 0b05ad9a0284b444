"""Tests for ``sqlsession.binder``: argument kind dispatch."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from conftest import FakeConnection
from sqlsession.binder import (
    DEFAULT_BINDER,
    INT32_MAX,
    INT32_MIN,
    INT64_MAX,
    ArgumentBinder,
    BindingRule,
    is_int32,
    is_int64,
    parametrize,
)
from sqlsession.statement import ParamType, PreparedStatement
from sqlsession.utc import Utc


@pytest.fixture
def stmt() -> PreparedStatement:
    return PreparedStatement(FakeConnection().cursor(), "SELECT ?")


def kinds(statement: PreparedStatement) -> list[ParamType]:
    return [p.type for p in statement.bound]


class TestDispatch:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, ParamType.STRING),
            (2**40, ParamType.LONG),
            (True, ParamType.BOOLEAN),
            (False, ParamType.BOOLEAN),
            (date(2024, 1, 2), ParamType.DATE),
            (42, ParamType.INTEGER),
            (Utc(datetime(2024, 1, 2, tzinfo=UTC)), ParamType.TIMESTAMP),
            ("Alice", ParamType.STRING),
            (1.5, ParamType.STRING),
        ],
    )
    def test_kind_for_value(self, stmt, value, expected):
        DEFAULT_BINDER.bind(stmt, 1, value)
        assert stmt.bound[0].type == expected

    def test_none_binds_as_null_text(self, stmt):
        DEFAULT_BINDER.bind(stmt, 1, None)
        assert stmt.bound[0].value is None
        assert stmt.bound[0].type == ParamType.STRING

    def test_bool_is_not_an_integer(self, stmt):
        DEFAULT_BINDER.bind(stmt, 1, True)
        assert stmt.bound[0].value is True

    def test_datetime_is_not_a_calendar_date(self, stmt):
        value = datetime(2024, 1, 2, 3, 4, 5)
        DEFAULT_BINDER.bind(stmt, 1, value)
        assert stmt.bound[0].type == ParamType.STRING
        assert stmt.bound[0].value == str(value)

    def test_utc_binds_aware_timestamp(self, stmt):
        local = datetime(2024, 1, 2, 5, 0, tzinfo=timezone(timedelta(hours=2)))
        DEFAULT_BINDER.bind(stmt, 1, Utc(local))
        assert stmt.bound[0].value == datetime(2024, 1, 2, 3, 0, tzinfo=UTC)

    def test_fallback_uses_str(self, stmt):
        DEFAULT_BINDER.bind(stmt, 1, Decimal("10.50"))
        assert stmt.bound[0].value == "10.50"

    def test_integer_beyond_64_bits_falls_back_to_text(self, stmt):
        DEFAULT_BINDER.bind(stmt, 1, 2**70)
        assert stmt.bound[0].type == ParamType.STRING
        assert stmt.bound[0].value == str(2**70)


class TestIntegerRanges:
    @pytest.mark.parametrize("value", [0, -1, INT32_MIN, INT32_MAX])
    def test_int32_range(self, value):
        assert is_int32(value)
        assert not is_int64(value)

    @pytest.mark.parametrize("value", [INT32_MAX + 1, INT32_MIN - 1, INT64_MAX])
    def test_int64_range(self, value):
        assert is_int64(value)
        assert not is_int32(value)

    def test_bools_are_neither(self):
        assert not is_int32(True)
        assert not is_int64(True)


class TestParametrize:
    def test_positions_follow_argument_order(self, stmt):
        parametrize(stmt, ["a", 1, None])
        assert [p.position for p in stmt.bound] == [1, 2, 3]
        assert stmt.parameters == ("a", 1, None)

    def test_mixed_kinds_in_one_statement(self, stmt):
        anything = object()
        parametrize(stmt, [None, 2**40, True, date(2024, 1, 2), 7, anything])
        assert kinds(stmt) == [
            ParamType.STRING,
            ParamType.LONG,
            ParamType.BOOLEAN,
            ParamType.DATE,
            ParamType.INTEGER,
            ParamType.STRING,
        ]
        assert stmt.parameters[-1] == str(anything)

    def test_empty_arguments(self, stmt):
        parametrize(stmt, [])
        assert stmt.parameters == ()


class TestCustomRules:
    def test_rule_order_ends_with_fallback(self):
        assert [r.kind for r in DEFAULT_BINDER.rules] == [
            "null",
            "long",
            "boolean",
            "date",
            "integer",
            "utc",
            "text",
        ]

    def test_with_rule_inserts_before_fallback(self, stmt):
        decimal_rule = BindingRule(
            "decimal",
            lambda v: isinstance(v, Decimal),
            lambda s, p, v: s.set_string(p, format(v, "f")),
        )
        binder = DEFAULT_BINDER.with_rule(decimal_rule)

        assert [r.kind for r in binder.rules][-2:] == ["decimal", "text"]
        assert binder.rule_for(Decimal("1E+2")) is decimal_rule
        binder.bind(stmt, 1, Decimal("1E+2"))
        assert stmt.parameters == ("100",)

    def test_with_rule_does_not_change_original(self):
        DEFAULT_BINDER.with_rule(BindingRule("never", lambda v: False, lambda s, p, v: None))
        assert "never" not in [r.kind for r in DEFAULT_BINDER.rules]

    def test_earlier_rule_wins(self, stmt):
        binder = ArgumentBinder(
            [
                BindingRule("first", lambda v: True, lambda s, p, v: s.set_string(p, "first")),
                BindingRule("second", lambda v: True, lambda s, p, v: s.set_string(p, "second")),
            ]
        )
        binder.bind(stmt, 1, 123)
        assert stmt.parameters == ("first",)
