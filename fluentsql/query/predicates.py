"""Fluent predicate tree builder.

:class:`WhereMethods` holds the ``where`` / ``or_where`` family shared by
:class:`PredicateBuilder` (used for nested callback groups and HAVING) and
the SELECT / UPDATE / DELETE builders.  Every method canonicalizes its
input to the closed operator set before appending a node:

* ``where(col, None)`` becomes ``IS NULL`` and ``where(col, "!=", None)``
  becomes ``IS NOT NULL``;
* ``where_between`` lowers to a RAW ``"col" BETWEEN ? AND ?`` fragment;
* ``where(fn)`` runs ``fn`` against a fresh :class:`PredicateBuilder` and
  appends the result as one parenthesized group.
"""
from __future__ import annotations

from collections.abc import Callable
from typing import Any

from fluentsql.compile.placeholders import marker_count
from fluentsql.errors import ValidationError
from fluentsql.schema.identifiers import IdentifierEscaper, check_fragment
from fluentsql.schema.predicates import (
    Condition,
    ConditionGroup,
    Conjunction,
    Operator,
)
from fluentsql.schema.values import is_sql_value


class _Missing:
    def __repr__(self) -> str:
        return "<missing>"


MISSING: Any = _Missing()

_NULL_OPERATORS = {"IS NULL", "IS NOT NULL"}


def make_condition(
    escaper: IdentifierEscaper,
    column: str,
    operator: Operator,
    value: Any,
    conjunction: Conjunction,
) -> Condition:
    """Build a validated, canonical :class:`Condition`.

    Raises:
        ValidationError: On a bad column, operator or value.
    """
    if operator is Operator.RAW:
        raise ValidationError(
            "RAW conditions must be added with where_raw().", code="INVALID_OPERATOR"
        )
    escaper.escape(column)

    if value is None and operator is Operator.EQ:
        operator = Operator.IS_NULL
    elif value is None and operator is Operator.NE:
        operator = Operator.IS_NOT_NULL

    if not operator.takes_value:
        return Condition(column=column, operator=operator, conjunction=conjunction)

    if operator.takes_list:
        if isinstance(value, (set, frozenset)):
            try:
                value = sorted(value)
            except TypeError as exc:
                raise ValidationError(
                    f"{operator.value} values in a set must be mutually comparable; "
                    "pass a list to fix the order.",
                    code="INVALID_VALUE",
                    details={"column": column, "operator": operator.value},
                ) from exc
        if not isinstance(value, (list, tuple)):
            raise ValidationError(
                f"{operator.value} requires a list of values, got {type(value).__name__}.",
                code="INVALID_VALUE",
                details={"column": column, "operator": operator.value},
            )
        value = list(value)
    elif value is None:
        raise ValidationError(
            f"Operator {operator.value} cannot compare against NULL.",
            code="INVALID_VALUE",
            details={"column": column, "operator": operator.value},
        )

    if not is_sql_value(value):
        raise ValidationError(
            f"Unsupported value for column '{column}': {type(value).__name__}.",
            code="INVALID_VALUE",
            details={"column": column, "operator": operator.value},
        )
    return Condition(column=column, operator=operator, value=value, conjunction=conjunction)


def make_raw_condition(sql: str, params: Any, conjunction: Conjunction, clause: str) -> Condition:
    """Build a RAW condition whose ``?`` markers match ``params``."""
    check_fragment(sql, clause)
    values = list(params or [])
    found = marker_count(sql)
    if found != len(values):
        raise ValidationError(
            f"Raw fragment has {found} '?' marker(s) but {len(values)} value(s) were given.",
            code="PARAM_COUNT_MISMATCH",
            details={"fragment": sql, "markers": found, "values": len(values)},
        )
    for value in values:
        if not is_sql_value(value):
            raise ValidationError(
                f"Unsupported raw parameter: {type(value).__name__}.", code="INVALID_VALUE"
            )
    return Condition(column=sql, operator=Operator.RAW, value=values, conjunction=conjunction)


class WhereMethods:
    """The ``where`` family.  Subclasses provide the escaper and ``_append``."""

    _escaper: IdentifierEscaper

    def _append(self, node: Condition | ConditionGroup) -> None:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Base forms
    # ------------------------------------------------------------------

    def where(self, column: Any, operator: Any = MISSING, value: Any = MISSING):
        """Add an AND condition.

        ``where(col, value)`` compares with ``=``; ``where(col, op, value)``
        uses ``op``; ``where(fn)`` adds a nested group.
        """
        return self._where(Conjunction.AND, column, operator, value)

    def or_where(self, column: Any, operator: Any = MISSING, value: Any = MISSING):
        """Add an OR condition; same call forms as :meth:`where`."""
        return self._where(Conjunction.OR, column, operator, value)

    def where_raw(self, sql: str, params: list[Any] | None = None):
        """Add a trusted SQL fragment with ``?`` markers for ``params``."""
        self._append(make_raw_condition(sql, params, Conjunction.AND, "WHERE"))
        return self

    def or_where_raw(self, sql: str, params: list[Any] | None = None):
        self._append(make_raw_condition(sql, params, Conjunction.OR, "WHERE"))
        return self

    # ------------------------------------------------------------------
    # Sugar
    # ------------------------------------------------------------------

    def where_in(self, column: str, values: Any):
        return self._add(Conjunction.AND, column, Operator.IN, values)

    def or_where_in(self, column: str, values: Any):
        return self._add(Conjunction.OR, column, Operator.IN, values)

    def where_not_in(self, column: str, values: Any):
        return self._add(Conjunction.AND, column, Operator.NOT_IN, values)

    def or_where_not_in(self, column: str, values: Any):
        return self._add(Conjunction.OR, column, Operator.NOT_IN, values)

    def where_null(self, column: str):
        return self._add(Conjunction.AND, column, Operator.IS_NULL, None)

    def or_where_null(self, column: str):
        return self._add(Conjunction.OR, column, Operator.IS_NULL, None)

    def where_not_null(self, column: str):
        return self._add(Conjunction.AND, column, Operator.IS_NOT_NULL, None)

    def or_where_not_null(self, column: str):
        return self._add(Conjunction.OR, column, Operator.IS_NOT_NULL, None)

    def where_like(self, column: str, pattern: str):
        return self._add(Conjunction.AND, column, Operator.LIKE, pattern)

    def or_where_like(self, column: str, pattern: str):
        return self._add(Conjunction.OR, column, Operator.LIKE, pattern)

    def where_ilike(self, column: str, pattern: str):
        return self._add(Conjunction.AND, column, Operator.ILIKE, pattern)

    def or_where_ilike(self, column: str, pattern: str):
        return self._add(Conjunction.OR, column, Operator.ILIKE, pattern)

    def where_not_like(self, column: str, pattern: str):
        return self._add(Conjunction.AND, column, Operator.NOT_LIKE, pattern)

    def or_where_not_like(self, column: str, pattern: str):
        return self._add(Conjunction.OR, column, Operator.NOT_LIKE, pattern)

    def where_not_ilike(self, column: str, pattern: str):
        return self._add(Conjunction.AND, column, Operator.NOT_ILIKE, pattern)

    def or_where_not_ilike(self, column: str, pattern: str):
        return self._add(Conjunction.OR, column, Operator.NOT_ILIKE, pattern)

    def where_between(self, column: str, low: Any, high: Any):
        return self._between(Conjunction.AND, column, low, high, "BETWEEN")

    def or_where_between(self, column: str, low: Any, high: Any):
        return self._between(Conjunction.OR, column, low, high, "BETWEEN")

    def where_not_between(self, column: str, low: Any, high: Any):
        return self._between(Conjunction.AND, column, low, high, "NOT BETWEEN")

    def or_where_not_between(self, column: str, low: Any, high: Any):
        return self._between(Conjunction.OR, column, low, high, "NOT BETWEEN")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _where(self, conjunction: Conjunction, column: Any, operator: Any, value: Any):
        if callable(column):
            return self._nested(conjunction, column)
        if operator is MISSING:
            raise ValidationError(
                "where() needs a value or an operator and a value.", code="MISSING_VALUE"
            )
        if value is MISSING:
            if isinstance(operator, str) and " ".join(operator.upper().split()) in _NULL_OPERATORS:
                return self._add(conjunction, column, Operator.parse(operator), None)
            return self._add(conjunction, column, Operator.EQ, operator)
        return self._add(conjunction, column, Operator.parse(operator), value)

    def _add(self, conjunction: Conjunction, column: str, operator: Operator, value: Any):
        self._append(make_condition(self._escaper, column, operator, value, conjunction))
        return self

    def _between(self, conjunction: Conjunction, column: str, low: Any, high: Any, keyword: str):
        quoted = self._escaper.escape(column)
        fragment = f"{quoted} {keyword} ? AND ?"
        self._append(make_raw_condition(fragment, [low, high], conjunction, "WHERE"))
        return self

    def _nested(self, conjunction: Conjunction, callback: Callable[[PredicateBuilder], Any]):
        sub = PredicateBuilder(self._escaper)
        callback(sub)
        if not sub.group.is_empty():
            self._append(ConditionGroup(nodes=list(sub.group.nodes), conjunction=conjunction))
        return self


class PredicateBuilder(WhereMethods):
    """Accumulates conditions into a :class:`ConditionGroup`.

    Args:
        escaper: Identifier validator used for column names.
        group: Existing group to extend; a new one is created by default.
    """

    def __init__(
        self,
        escaper: IdentifierEscaper | None = None,
        group: ConditionGroup | None = None,
    ) -> None:
        self._escaper = escaper or IdentifierEscaper()
        self._group = group if group is not None else ConditionGroup()

    @property
    def group(self) -> ConditionGroup:
        return self._group

    def _append(self, node: Condition | ConditionGroup) -> None:
        self._group.nodes.append(node)
