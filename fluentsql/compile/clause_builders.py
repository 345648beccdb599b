"""Clause-level SQL builders.

Each class handles exactly one clause and only emits escaped identifiers
or caller-authored fragments that were checked when they were added.
None of them binds parameters; predicate clauses live in
:mod:`fluentsql.compile.predicate_compiler`.

Classes
-------
SelectClauseBuilder      ``SELECT [DISTINCT] <items>``
FromClauseBuilder        ``<table> [AS <alias>]``
JoinClauseBuilder        ``<kind> JOIN … ON …``
GroupByClauseBuilder     ``GROUP BY …``
OrderByClauseBuilder     ``ORDER BY … ASC|DESC``
ReturningClauseBuilder   ``RETURNING * | <columns>``
"""
from __future__ import annotations

from fluentsql.compile.context import CompilationContext
from fluentsql.schema.statement import JoinSpec, OrderSpec, SelectColumn, Statement


class SelectClauseBuilder:
    """Builds the ``SELECT [DISTINCT] …`` clause."""

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def build(self, stmt: Statement) -> str:
        prefix = "SELECT DISTINCT" if stmt.distinct else "SELECT"
        if not stmt.columns:
            return f"{prefix} *"
        items = [self._build_item(item) for item in stmt.columns]
        return f"{prefix} {', '.join(items)}"

    def _build_item(self, item: SelectColumn) -> str:
        if item.raw or item.expr == "*":
            expr_sql = item.expr
        else:
            expr_sql = self._ctx.quote(item.expr)
        if item.alias:
            return f"{expr_sql} AS {self._ctx.quote(item.alias)}"
        return expr_sql


class FromClauseBuilder:
    """Builds the target-table fragment shared by every statement kind."""

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def build(self, table: str, alias: str | None = None) -> str:
        table_sql = self._ctx.quote(table)
        if alias:
            table_sql = f"{table_sql} AS {self._ctx.quote(alias)}"
        return table_sql


class JoinClauseBuilder:
    """Builds a single ``JOIN … ON …`` fragment."""

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def build(self, join: JoinSpec) -> str:
        table_sql = FromClauseBuilder(self._ctx).build(join.table, join.alias)
        return f"{join.kind} JOIN {table_sql} ON {join.on}"


class GroupByClauseBuilder:
    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def build(self, columns: list[str]) -> str:
        return "GROUP BY " + ", ".join(self._ctx.quote(c) for c in columns)


class OrderByClauseBuilder:
    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def build(self, items: list[OrderSpec]) -> str:
        parts = [f"{self._ctx.quote(o.column)} {o.direction}" for o in items]
        return "ORDER BY " + ", ".join(parts)


class ReturningClauseBuilder:
    """Builds ``RETURNING``; a ``*`` anywhere in the list returns all columns."""

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def build(self, columns: list[str]) -> str:
        if "*" in columns:
            return "RETURNING *"
        return "RETURNING " + ", ".join(self._ctx.quote(c) for c in columns)
