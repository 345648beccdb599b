"""Fluent statement builders.

One builder class per statement kind.  Each owns a mutable
:class:`~fluentsql.schema.statement.Statement`; chained calls mutate it and
return ``self``.  ``raw()`` compiles the current state without side
effects and may be called any number of times.  The async terminals hand
the compiled statement to the bound executor (a ``Database`` or a
``Transaction``); after that the builder is sealed and further mutation
raises :class:`~fluentsql.errors.ConfigurationError`.

Builders are single-owner values: do not share one across tasks while it
is being built.
"""
from __future__ import annotations

import functools
from collections.abc import Callable, Mapping
from typing import Any, Protocol, TypeVar

from fluentsql.compile.base import CompiledSQL
from fluentsql.compile.builder import StatementCompiler
from fluentsql.compile.context import CompilationContext
from fluentsql.errors import ConfigurationError, ValidationError
from fluentsql.query.predicates import (
    MISSING,
    PredicateBuilder,
    WhereMethods,
    make_raw_condition,
)
from fluentsql.schema.identifiers import check_fragment
from fluentsql.schema.predicates import Condition, ConditionGroup, Conjunction
from fluentsql.schema.statement import (
    JoinSpec,
    OrderSpec,
    SelectColumn,
    Statement,
    StatementKind,
    assign,
    build_model,
)
from fluentsql.schema.values import Row, validate_row, validate_rows

_F = TypeVar("_F", bound=Callable[..., Any])


class Executor(Protocol):
    """Anything that can run a compiled statement and return rows."""

    async def run(self, compiled: CompiledSQL) -> list[dict[str, Any]]: ...


def chainable(method: _F) -> _F:
    """Reject calls on a sealed builder and return ``self``."""

    @functools.wraps(method)
    def wrapper(self: QueryBase, *args: Any, **kwargs: Any) -> Any:
        self._ensure_open()
        method(self, *args, **kwargs)
        return self

    return wrapper  # type: ignore[return-value]


# ---------------------------------------------------------------------------
# Shared base
# ---------------------------------------------------------------------------


class QueryBase:
    """State and terminals common to every statement kind.

    Args:
        ctx: Dialect and identifier escaper.
        executor: Where async terminals send the compiled statement.
        kind: Statement kind to build.
    """

    kind: StatementKind = StatementKind.SELECT

    def __init__(self, ctx: CompilationContext, executor: Executor | None = None) -> None:
        self._ctx = ctx
        self._escaper = ctx.escaper
        self._executor = executor
        self._compiler = StatementCompiler(ctx)
        self._statement = Statement(kind=self.kind)
        self._sealed = False

    @property
    def statement(self) -> Statement:
        return self._statement

    # ------------------------------------------------------------------
    # Compilation
    # ------------------------------------------------------------------

    def raw(self) -> CompiledSQL:
        """Compile the current state to ``CompiledSQL(sql, params)``."""
        return self._compiler.compile(self._statement)

    def compile(self) -> CompiledSQL:
        return self.raw()

    def to_query(self) -> str:
        """SQL with values inlined as literals.  For logs and debugging only."""
        return self._compiler.inline(self._statement)

    def __str__(self) -> str:
        return self.raw().sql

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute(self) -> list[dict[str, Any]]:
        """Run the statement and return its rows (RETURNING rows for writes)."""
        return await self._run(self.raw())

    async def _run(self, compiled: CompiledSQL) -> list[dict[str, Any]]:
        if self._executor is None:
            raise ConfigurationError(
                "No database bound to this query. Create it from a Database or Transaction.",
                missing=["executor"],
            )
        self._sealed = True
        return await self._executor.run(compiled)

    def _ensure_open(self) -> None:
        if self._sealed:
            raise ConfigurationError(
                f"This {self.kind.value} query was already executed; start a new one."
            )

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _set_table(self, table: str, alias: str | None = None) -> None:
        self._escaper.escape(table)
        if alias is not None:
            self._escaper.escape(alias)
        assign(self._statement, "table", table)
        assign(self._statement, "alias", alias)


class _Filterable(WhereMethods):
    """Routes the ``where`` family into ``Statement.where``."""

    _statement: Statement

    def _append(self, node: Condition | ConditionGroup) -> None:
        self._ensure_open()  # type: ignore[attr-defined]
        self._statement.where.nodes.append(node)


class _Returning:
    _statement: Statement
    _escaper: Any

    @chainable
    def returning(self, *columns: str) -> None:
        """Request ``RETURNING``; no arguments or ``"*"`` returns every column."""
        names = list(columns) or ["*"]
        for name in names:
            if name != "*":
                self._escaper.escape(name)
        assign(self._statement, "returning", names)


# ---------------------------------------------------------------------------
# SELECT
# ---------------------------------------------------------------------------


class SelectQuery(_Filterable, QueryBase):
    """``SELECT`` builder with ``get`` / ``first`` / ``count`` terminals."""

    kind = StatementKind.SELECT

    @chainable
    def from_(self, table: str, alias: str | None = None) -> None:
        self._set_table(table, alias)

    @chainable
    def table(self, table: str, alias: str | None = None) -> None:
        self._set_table(table, alias)

    @chainable
    def select(self, *columns: str | Mapping[str, str] | list) -> None:
        """Add columns.

        Strings are column names (``"users.id"``, ``"*"``, ``"users.*"``);
        a mapping ``{"alias": "column"}`` adds aliased columns.
        """
        for item in _flatten(columns):
            if isinstance(item, Mapping):
                for alias, column in item.items():
                    self._add_column(column, alias)
            elif isinstance(item, str):
                self._add_column(item, None)
            else:
                raise ValidationError(
                    f"Unsupported select item: {item!r}.", code="INVALID_COLUMN"
                )

    @chainable
    def select_raw(self, expression: str, alias: str | None = None) -> None:
        """Add a trusted SQL expression such as ``COUNT(*)``."""
        check_fragment(expression, "SELECT")
        if alias is not None:
            self._escaper.escape(alias)
        column = build_model(SelectColumn, expr=expression, alias=alias, raw=True)
        self._statement.columns.append(column)

    @chainable
    def distinct(self, enabled: bool = True) -> None:
        assign(self._statement, "distinct", enabled)

    @chainable
    def join(self, table: str, on: str, alias: str | None = None, kind: str = "INNER") -> None:
        """Add a join; ``on`` is caller-authored SQL, emitted verbatim."""
        self._escaper.escape(table)
        if alias is not None:
            self._escaper.escape(alias)
        check_fragment(on, "JOIN")
        spec = build_model(JoinSpec, kind=kind.upper(), table=table, alias=alias, on=on)
        self._statement.joins.append(spec)

    def inner_join(self, table: str, on: str, alias: str | None = None) -> SelectQuery:
        return self.join(table, on, alias, "INNER")

    def left_join(self, table: str, on: str, alias: str | None = None) -> SelectQuery:
        return self.join(table, on, alias, "LEFT")

    def right_join(self, table: str, on: str, alias: str | None = None) -> SelectQuery:
        return self.join(table, on, alias, "RIGHT")

    def full_join(self, table: str, on: str, alias: str | None = None) -> SelectQuery:
        return self.join(table, on, alias, "FULL")

    @chainable
    def group_by(self, *columns: str) -> None:
        names = list(_flatten(columns))
        for name in names:
            self._escaper.escape(name)
        self._statement.group_by.extend(names)

    @chainable
    def having(self, column: Any, operator: Any = MISSING, value: Any = MISSING) -> None:
        """Add an AND HAVING condition; same call forms as ``where``."""
        PredicateBuilder(self._escaper, self._statement.having).where(column, operator, value)

    @chainable
    def or_having(self, column: Any, operator: Any = MISSING, value: Any = MISSING) -> None:
        PredicateBuilder(self._escaper, self._statement.having).or_where(column, operator, value)

    @chainable
    def having_raw(self, sql: str, params: list[Any] | None = None) -> None:
        """Add a trusted HAVING fragment such as ``COUNT(*) > ?``."""
        self._statement.having.nodes.append(
            make_raw_condition(sql, params, Conjunction.AND, "HAVING")
        )

    @chainable
    def order_by(self, column: str, direction: str = "ASC") -> None:
        self._escaper.escape(column)
        self._statement.order_by.append(
            build_model(OrderSpec, column=column, direction=direction)
        )

    @chainable
    def limit(self, count: int) -> None:
        assign(self._statement, "limit", count)

    @chainable
    def offset(self, count: int) -> None:
        assign(self._statement, "offset", count)

    # ------------------------------------------------------------------
    # Terminals
    # ------------------------------------------------------------------

    async def get(self) -> list[dict[str, Any]]:
        """Run the query and return every row."""
        return await self.execute()

    async def first(self) -> dict[str, Any] | None:
        """Run the query with ``LIMIT 1``; return the row or ``None``."""
        limited = self._statement.model_copy(update={"limit": 1})
        rows = await self._run(self._compiler.compile(limited))
        return rows[0] if rows else None

    async def exists(self) -> bool:
        """Return whether the query matches at least one row."""
        return await self.first() is not None

    async def count(self, column: str = "*") -> int:
        """Run ``SELECT COUNT(column)`` over the current filters."""
        rows = await self._run(self._compiler.compile_count(self._statement, column))
        if not rows:
            return 0
        return int(rows[0]["count"])

    def _add_column(self, column: str, alias: str | None) -> None:
        if column != "*":
            self._escaper.escape(column)
        if alias is not None:
            self._escaper.escape(alias)
        self._statement.columns.append(build_model(SelectColumn, expr=column, alias=alias))


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


class InsertQuery(_Returning, QueryBase):
    """``INSERT`` builder; one or many rows sharing the same columns."""

    kind = StatementKind.INSERT

    @chainable
    def into(self, table: str) -> None:
        self._set_table(table)

    @chainable
    def values(self, rows: Row | list[Row]) -> None:
        """Append rows; every row must have the same columns as the first."""
        validated = validate_rows(rows)
        combined = self._statement.rows + validated
        assign(self._statement, "rows", validate_rows(combined))
        for column in combined[0] if combined else ():
            self._escaper.escape(column)


class UpdateQuery(_Filterable, _Returning, QueryBase):
    """``UPDATE`` builder."""

    kind = StatementKind.UPDATE

    @chainable
    def table(self, table: str) -> None:
        self._set_table(table)

    @chainable
    def set(self, data: Row) -> None:
        """Merge ``data`` into the SET map; later calls override earlier keys."""
        row = validate_row(data)
        for column in row:
            self._escaper.escape(column)
        assign(self._statement, "set_values", {**self._statement.set_values, **row})


class DeleteQuery(_Filterable, _Returning, QueryBase):
    """``DELETE`` builder."""

    kind = StatementKind.DELETE

    @chainable
    def from_(self, table: str) -> None:
        self._set_table(table)

    @chainable
    def table(self, table: str) -> None:
        self._set_table(table)


class UpsertQuery(_Returning, QueryBase):
    """``INSERT … ON CONFLICT`` builder for a single row."""

    kind = StatementKind.UPSERT

    @chainable
    def into(self, table: str) -> None:
        self._set_table(table)

    @chainable
    def table(self, table: str) -> None:
        self._set_table(table)

    @chainable
    def values(self, data: Row) -> None:
        row = validate_row(data)
        for column in row:
            self._escaper.escape(column)
        assign(self._statement, "rows", [row])

    @chainable
    def on_conflict(self, *columns: str) -> None:
        """Set the conflict target columns."""
        names = list(_flatten(columns))
        for name in names:
            self._escaper.escape(name)
        assign(self._statement, "conflict_columns", names)

    @chainable
    def merge(self, *columns: str) -> None:
        """Limit ``DO UPDATE SET`` to ``columns``; no arguments updates all."""
        names = list(_flatten(columns))
        for name in names:
            self._escaper.escape(name)
        assign(self._statement, "merge_columns", names or None)
        assign(self._statement, "conflict_action", "update")

    @chainable
    def do_nothing(self) -> None:
        assign(self._statement, "conflict_action", "nothing")


def _flatten(items: Any) -> list[Any]:
    flat: list[Any] = []
    for item in items:
        if isinstance(item, (list, tuple)):
            flat.extend(_flatten(item))
        else:
            flat.append(item)
    return flat
