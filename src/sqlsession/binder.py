"""
Argument binder: maps pending arguments to typed statement setters.

Each pending argument is matched against an ordered table of rules; the
first rule whose predicate accepts the value binds it at the argument's
1-based position. The table ends with a textual fallback that accepts
anything and binds ``str(value)``.

Dispatch order (first match wins):
    ::

        None                     -> set_string(pos, None)
        int outside 32-bit range -> set_long      (64-bit integers)
        bool                     -> set_boolean
        date (not datetime)      -> set_date
        int in 32-bit range      -> set_int
        Utc                      -> value.set_timestamp(stmt, pos)
        anything else            -> set_string(pos, str(value))

``bool`` is a subclass of ``int`` and ``datetime`` a subclass of ``date``,
so the integer and date predicates exclude them explicitly.

Examples:
    >>> from decimal import Decimal
    >>> from sqlsession.binder import DEFAULT_BINDER, BindingRule
    >>> binder = DEFAULT_BINDER.with_rule(
    ...     BindingRule("decimal", lambda v: isinstance(v, Decimal),
    ...                 lambda stmt, pos, v: stmt.set_string(pos, format(v, "f")))
    ... )

Tags:
    binding, dispatch, parameters, sqlsession
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from sqlsession.statement import PreparedStatement
from sqlsession.utc import Utc

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def is_int32(value: Any) -> bool:
    return _is_int(value) and INT32_MIN <= value <= INT32_MAX


def is_int64(value: Any) -> bool:
    return _is_int(value) and INT64_MIN <= value <= INT64_MAX and not is_int32(value)


def is_calendar_date(value: Any) -> bool:
    return isinstance(value, date) and not isinstance(value, datetime)


@dataclass(frozen=True)
class BindingRule:
    """A named predicate plus the setter call used when it matches."""

    kind: str
    matches: Callable[[Any], bool]
    bind: Callable[[PreparedStatement, int, Any], None]


NULL_RULE = BindingRule("null", lambda v: v is None, lambda s, p, v: s.set_string(p, None))
LONG_RULE = BindingRule("long", is_int64, lambda s, p, v: s.set_long(p, v))
BOOLEAN_RULE = BindingRule("boolean", lambda v: isinstance(v, bool), lambda s, p, v: s.set_boolean(p, v))
DATE_RULE = BindingRule("date", is_calendar_date, lambda s, p, v: s.set_date(p, v))
INT_RULE = BindingRule("integer", is_int32, lambda s, p, v: s.set_int(p, v))
UTC_RULE = BindingRule("utc", lambda v: isinstance(v, Utc), lambda s, p, v: v.set_timestamp(s, p))
TEXT_RULE = BindingRule("text", lambda v: True, lambda s, p, v: s.set_string(p, str(v)))


class ArgumentBinder:
    """Ordered, immutable rule table with a textual fallback."""

    def __init__(
        self,
        rules: Iterable[BindingRule],
        fallback: BindingRule = TEXT_RULE,
    ) -> None:
        self._rules = tuple(rules)
        self._fallback = fallback

    @property
    def rules(self) -> tuple[BindingRule, ...]:
        """All rules in dispatch order, fallback last."""
        return self._rules + (self._fallback,)

    def with_rule(self, rule: BindingRule) -> ArgumentBinder:
        """Return a new binder with ``rule`` checked just before the fallback."""
        return ArgumentBinder(self._rules + (rule,), self._fallback)

    def rule_for(self, value: Any) -> BindingRule:
        for rule in self._rules:
            if rule.matches(value):
                return rule
        return self._fallback

    def bind(self, statement: PreparedStatement, position: int, value: Any) -> BindingRule:
        rule = self.rule_for(value)
        rule.bind(statement, position, value)
        return rule

    def parametrize(self, statement: PreparedStatement, args: Sequence[Any]) -> None:
        """Bind ``args`` to ``statement`` in order, starting at position 1."""
        for pos, arg in enumerate(args, start=1):
            self.bind(statement, pos, arg)

    def __repr__(self) -> str:
        return f"ArgumentBinder([{', '.join(rule.kind for rule in self.rules)}])"


DEFAULT_BINDER = ArgumentBinder(
    [NULL_RULE, LONG_RULE, BOOLEAN_RULE, DATE_RULE, INT_RULE, UTC_RULE],
)


def parametrize(statement: PreparedStatement, args: Sequence[Any]) -> None:
    """Bind ``args`` with the default rule table."""
    DEFAULT_BINDER.parametrize(statement, args)


__all__ = [
    "ArgumentBinder",
    "BindingRule",
    "DEFAULT_BINDER",
    "parametrize",
    "is_int32",
    "is_int64",
    "is_calendar_date",
]
