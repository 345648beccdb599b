"""Predicate tree compiler (WHERE / HAVING).

``PredicateCompiler`` turns a :class:`~fluentsql.schema.predicates.ConditionGroup`
into clause text with canonical ``$N`` placeholders plus the matching
parameter list.  The caller passes the number of placeholders already
emitted by earlier clauses; nested groups recurse with
``offset + params emitted so far`` so numbering stays contiguous at any
depth.

Combination rule at each level: AND nodes are joined first, then OR nodes
are appended (``a AND b OR c OR d``).  Nested groups are parenthesized.
"""
from __future__ import annotations

from typing import Any, Callable

from fluentsql.compile.context import CompilationContext
from fluentsql.compile.placeholders import placeholder, renumber_markers
from fluentsql.errors import CompilationError
from fluentsql.schema.predicates import (
    Condition,
    ConditionGroup,
    Conjunction,
    Operator,
)

CompiledFragment = tuple[str, list[Any]]

_ALWAYS_FALSE = "1 = 0"
_ALWAYS_TRUE = "1 = 1"


class PredicateCompiler:
    """Compiles predicate trees to parameterized SQL fragments.

    Args:
        ctx: Dialect and identifier escaper.
    """

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx
        self._handlers: dict[Operator, Callable[[Condition, int], CompiledFragment]] = {
            Operator.IS_NULL: self._build_null,
            Operator.IS_NOT_NULL: self._build_null,
            Operator.IN: self._build_membership,
            Operator.NOT_IN: self._build_membership,
            Operator.RAW: self._build_raw,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def compile(self, group: ConditionGroup, offset: int = 0) -> CompiledFragment:
        """Compile ``group`` with placeholders starting at ``$offset+1``.

        Returns:
            ``(sql, params)``; ``sql`` is empty when the tree has no
            conditions, so the caller can omit the clause keyword.
        """
        ordered = [n for n in group.nodes if n.conjunction is Conjunction.AND]
        ordered += [n for n in group.nodes if n.conjunction is Conjunction.OR]

        and_parts: list[str] = []
        or_parts: list[str] = []
        params: list[Any] = []
        for node in ordered:
            sql, node_params = self._build_node(node, offset + len(params))
            if not sql:
                continue
            target = and_parts if node.conjunction is Conjunction.AND else or_parts
            target.append(sql)
            params.extend(node_params)

        sql = " AND ".join(and_parts)
        if or_parts:
            sql = " OR ".join(([sql] if sql else []) + or_parts)
        return sql, params

    # ------------------------------------------------------------------
    # Node compilers
    # ------------------------------------------------------------------

    def _build_node(self, node: Condition | ConditionGroup, offset: int) -> CompiledFragment:
        if isinstance(node, ConditionGroup):
            inner, params = self.compile(node, offset)
            return (f"({inner})" if inner else ""), params
        if isinstance(node, Condition):
            handler = self._handlers.get(node.operator, self._build_comparison)
            return handler(node, offset)
        raise CompilationError(
            f"Unknown predicate node: {type(node).__name__}", clause="WHERE"
        )

    def _column(self, condition: Condition) -> str:
        return self._ctx.quote(condition.column)

    def _build_comparison(self, condition: Condition, offset: int) -> CompiledFragment:
        column = self._column(condition)
        ph = placeholder(offset + 1)
        if condition.operator.is_pattern:
            return self._ctx.dialect.render_pattern(column, condition.operator, ph), [condition.value]
        return f"{column} {condition.operator.value} {ph}", [condition.value]

    def _build_null(self, condition: Condition, offset: int) -> CompiledFragment:
        return f"{self._column(condition)} {condition.operator.value}", []

    def _build_membership(self, condition: Condition, offset: int) -> CompiledFragment:
        values = condition.value
        if not isinstance(values, (list, tuple)):
            raise CompilationError(
                f"{condition.operator.value} requires a list of values.", clause="WHERE"
            )
        if not values:
            empty = _ALWAYS_FALSE if condition.operator is Operator.IN else _ALWAYS_TRUE
            return empty, []
        phs = ", ".join(placeholder(offset + i) for i in range(1, len(values) + 1))
        return f"{self._column(condition)} {condition.operator.value} ({phs})", list(values)

    def _build_raw(self, condition: Condition, offset: int) -> CompiledFragment:
        values = list(condition.value or [])
        return renumber_markers(condition.column, offset, len(values)), values
