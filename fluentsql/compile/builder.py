"""Statement assembly: Statement → parameterized SQL.

``StatementCompiler`` is the top-level orchestrator.  It checks the
preconditions of each statement kind, wires the clause builders and the
predicate compiler together, and hands the canonical ``$N`` text to the
injected :class:`~fluentsql.compile.base.Dialect` for final rendering.

Sub-builder hierarchy
---------------------
StatementCompiler
  ├── PredicateCompiler       (predicate_compiler.py)
  ├── SelectClauseBuilder     (clause_builders.py)
  ├── FromClauseBuilder       (clause_builders.py)
  ├── JoinClauseBuilder       (clause_builders.py)
  ├── GroupByClauseBuilder    (clause_builders.py)
  ├── OrderByClauseBuilder    (clause_builders.py)
  └── ReturningClauseBuilder  (clause_builders.py)

Placeholder numbering
---------------------
SELECT threads an explicit offset into HAVING (``offset = len(where
params)``).  UPDATE and UPSERT compile their trailing clause from ``$1``
and shift it past the leading clause with
:func:`~fluentsql.compile.placeholders.shift_placeholders`; the parameter
list is always ``[...leading, ...trailing]``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import structlog

from fluentsql.compile.base import CompiledSQL
from fluentsql.compile.clause_builders import (
    FromClauseBuilder,
    GroupByClauseBuilder,
    JoinClauseBuilder,
    OrderByClauseBuilder,
    ReturningClauseBuilder,
    SelectClauseBuilder,
)
from fluentsql.compile.context import CompilationContext
from fluentsql.compile.placeholders import placeholder, shift_placeholders
from fluentsql.compile.predicate_compiler import CompiledFragment, PredicateCompiler
from fluentsql.errors import ConfigurationError, ValidationError
from fluentsql.schema.statement import SelectColumn, Statement, StatementKind

logger = structlog.get_logger(__name__)


class StatementCompiler:
    """Compiles a :class:`Statement` to parameterized SQL.

    Args:
        ctx: Dialect and identifier escaper.
    """

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx
        self._predicates = PredicateCompiler(ctx)
        self._assemblers: dict[StatementKind, Callable[[Statement], CompiledFragment]] = {
            StatementKind.SELECT: self._build_select,
            StatementKind.INSERT: self._build_insert,
            StatementKind.UPDATE: self._build_update,
            StatementKind.DELETE: self._build_delete,
            StatementKind.UPSERT: self._build_upsert,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def compile(self, stmt: Statement) -> CompiledSQL:
        """Compile ``stmt`` to the dialect's placeholder style.

        Raises:
            ConfigurationError: If a clause the statement kind requires is
                missing.
            ValidationError: If an identifier or fragment is rejected.
        """
        sql, params = self.compile_canonical(stmt)
        dialect = self._ctx.dialect
        logger.debug(
            "statement.compiled",
            kind=stmt.kind.value,
            dialect=dialect.dialect_name,
            param_count=len(params),
        )
        return CompiledSQL(
            sql=dialect.render_placeholders(sql),
            params=params,
            dialect=dialect.dialect_name,
        )

    def compile_canonical(self, stmt: Statement) -> CompiledFragment:
        """Compile ``stmt`` keeping canonical ``$N`` placeholders."""
        return self._assemblers[stmt.kind](stmt)

    def compile_count(self, stmt: Statement, column: str = "*") -> CompiledSQL:
        """Compile ``stmt`` as ``SELECT COUNT(column) AS "count"``.

        Ordering and paging are dropped; filters and joins stay.  A DISTINCT
        or grouped statement is compiled unchanged and counted as a
        subquery, so the result is the number of rows it would return.
        """
        target = "*" if column == "*" else self._ctx.quote(column)
        if stmt.distinct or stmt.group_by:
            inner_sql, params = self.compile_canonical(stmt)
            sql = f'SELECT COUNT({target}) AS "count" FROM ({inner_sql}) AS "sub"'
            dialect = self._ctx.dialect
            return CompiledSQL(
                sql=dialect.render_placeholders(sql),
                params=params,
                dialect=dialect.dialect_name,
            )
        counted = stmt.model_copy(
            update={
                "columns": [SelectColumn(expr=f"COUNT({target})", alias="count", raw=True)],
                "order_by": [],
                "limit": None,
                "offset": None,
            }
        )
        return self.compile(counted)

    def inline(self, stmt: Statement) -> str:
        """Render ``stmt`` with values inlined as literals, for display only."""
        sql, params = self.compile_canonical(stmt)
        return self._ctx.dialect.inline(sql, params)

    # ------------------------------------------------------------------
    # Assemblers
    # ------------------------------------------------------------------

    def _build_select(self, stmt: Statement) -> CompiledFragment:
        table = self._require_table(stmt, "from_")
        parts = [
            SelectClauseBuilder(self._ctx).build(stmt),
            f"FROM {FromClauseBuilder(self._ctx).build(table, stmt.alias)}",
        ]
        join_builder = JoinClauseBuilder(self._ctx)
        parts.extend(join_builder.build(j) for j in stmt.joins)

        where_sql, params = self._predicates.compile(stmt.where)
        if where_sql:
            parts.append(f"WHERE {where_sql}")
        if stmt.group_by:
            parts.append(GroupByClauseBuilder(self._ctx).build(stmt.group_by))

        having_sql, having_params = self._predicates.compile(stmt.having, offset=len(params))
        if having_sql:
            parts.append(f"HAVING {having_sql}")
            params = params + having_params

        if stmt.order_by:
            parts.append(OrderByClauseBuilder(self._ctx).build(stmt.order_by))
        if stmt.limit is not None:
            parts.append(f"LIMIT {stmt.limit}")
        if stmt.offset is not None:
            parts.append(f"OFFSET {stmt.offset}")
        return " ".join(parts), params

    def _build_insert(self, stmt: Statement) -> CompiledFragment:
        table = self._require_table(stmt, "into")
        if not stmt.rows:
            raise ConfigurationError(
                "No data provided for insert. Use .values() method.", missing=["values"]
            )
        columns = list(stmt.rows[0])
        params: list[Any] = []
        groups: list[str] = []
        for row in stmt.rows:
            phs: list[str] = []
            for column in columns:
                params.append(row[column])
                phs.append(placeholder(len(params)))
            groups.append(f"({', '.join(phs)})")

        sql = (
            f"INSERT INTO {self._ctx.quote(table)} ({self._column_list(columns)}) "
            f"VALUES {', '.join(groups)}"
        )
        return self._with_returning(sql, stmt), params

    def _build_update(self, stmt: Statement) -> CompiledFragment:
        table = self._require_table(stmt, "table")
        if not stmt.set_values:
            raise ConfigurationError(
                "No data provided for update. Use .set() method.", missing=["set"]
            )
        set_sql, params = self._assignments(list(stmt.set_values), stmt.set_values)
        sql = f"UPDATE {self._ctx.quote(table)} SET {set_sql}"

        where_sql, where_params = self._predicates.compile(stmt.where)
        if where_sql:
            sql = f"{sql} WHERE {shift_placeholders(where_sql, len(params))}"
            params = params + where_params
        return self._with_returning(sql, stmt), params

    def _build_delete(self, stmt: Statement) -> CompiledFragment:
        table = self._require_table(stmt, "from_")
        sql = f"DELETE FROM {self._ctx.quote(table)}"
        where_sql, params = self._predicates.compile(stmt.where)
        if where_sql:
            sql = f"{sql} WHERE {where_sql}"
        return self._with_returning(sql, stmt), params

    def _build_upsert(self, stmt: Statement) -> CompiledFragment:
        table = self._require_table(stmt, "into")
        if not stmt.rows:
            raise ConfigurationError(
                "No data provided for upsert. Use .values() method.", missing=["values"]
            )
        if not stmt.conflict_columns:
            raise ConfigurationError(
                "Conflict columns are required for upsert. Use .on_conflict() method.",
                missing=["on_conflict"],
            )
        row = stmt.rows[0]
        columns = list(row)
        params = [row[c] for c in columns]
        values_sql = ", ".join(placeholder(i) for i in range(1, len(params) + 1))
        conflict_sql = self._column_list(stmt.conflict_columns)
        sql = (
            f"INSERT INTO {self._ctx.quote(table)} ({self._column_list(columns)}) "
            f"VALUES ({values_sql}) ON CONFLICT ({conflict_sql})"
        )

        if stmt.conflict_action == "nothing":
            return self._with_returning(f"{sql} DO NOTHING", stmt), params

        update_columns = stmt.merge_columns if stmt.merge_columns is not None else columns
        unknown = [c for c in update_columns if c not in row]
        if unknown or not update_columns:
            raise ValidationError(
                f"Merge columns must be a non-empty subset of the upsert data: {unknown}.",
                code="INVALID_MERGE_COLUMNS",
                details={"unknown": unknown, "columns": columns},
            )
        set_sql, set_params = self._assignments(update_columns, row)
        sql = f"{sql} DO UPDATE SET {shift_placeholders(set_sql, len(params))}"
        return self._with_returning(sql, stmt), params + set_params

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require_table(stmt: Statement, method: str) -> str:
        if not stmt.table:
            raise ConfigurationError(
                f"Table name is required. Use .{method}() method.", missing=[method]
            )
        return stmt.table

    def _column_list(self, columns: list[str]) -> str:
        return ", ".join(self._ctx.quote(c) for c in columns)

    def _assignments(self, columns: list[str], values: dict[str, Any]) -> CompiledFragment:
        """``"a" = $1, "b" = $2`` numbered from ``$1``."""
        parts = [
            f"{self._ctx.quote(column)} = {placeholder(i)}"
            for i, column in enumerate(columns, start=1)
        ]
        return ", ".join(parts), [values[c] for c in columns]

    def _with_returning(self, sql: str, stmt: Statement) -> str:
        if not stmt.returning:
            return sql
        return f"{sql} {ReturningClauseBuilder(self._ctx).build(stmt.returning)}"
