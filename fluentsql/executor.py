"""Statement factory and execution shared by Database and Transaction.

:class:`StatementExecutor` starts builders bound to itself and runs their
compiled output through ``_send``.  Driver failures are wrapped in
:class:`~fluentsql.errors.ExecutionError` with the driver exception as the
cause; fluentsql's own errors pass through unchanged.  Nothing is retried.
"""
from __future__ import annotations

from typing import Any

import structlog

from fluentsql.compile.base import CompiledSQL
from fluentsql.compile.context import CompilationContext
from fluentsql.compile.placeholders import marker_count, renumber_markers
from fluentsql.errors import ExecutionError, FluentSQLError
from fluentsql.query.builders import (
    DeleteQuery,
    InsertQuery,
    SelectQuery,
    UpdateQuery,
    UpsertQuery,
)
from fluentsql.schema.values import Row

logger = structlog.get_logger(__name__)


class StatementExecutor:
    """Base for objects that start and run statements.

    Subclasses set ``_ctx`` and ``_log_parameters`` and implement
    ``_send``.
    """

    _ctx: CompilationContext
    _log_parameters: bool = False

    @property
    def context(self) -> CompilationContext:
        return self._ctx

    async def _send(self, sql: str, params: list[Any]) -> list[dict[str, Any]]:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Statement factories
    # ------------------------------------------------------------------

    def select(self, *columns: Any) -> SelectQuery:
        query = SelectQuery(self._ctx, self)
        return query.select(*columns) if columns else query

    def table(self, table: str, alias: str | None = None) -> SelectQuery:
        return SelectQuery(self._ctx, self).from_(table, alias)

    def from_(self, table: str, alias: str | None = None) -> SelectQuery:
        return self.table(table, alias)

    def insert(self, rows: Row | list[Row] | None = None) -> InsertQuery:
        query = InsertQuery(self._ctx, self)
        return query.values(rows) if rows is not None else query

    def update(self, table: str | None = None) -> UpdateQuery:
        query = UpdateQuery(self._ctx, self)
        return query.table(table) if table is not None else query

    def delete(self, table: str | None = None) -> DeleteQuery:
        query = DeleteQuery(self._ctx, self)
        return query.from_(table) if table is not None else query

    def upsert(self, data: Row | None = None) -> UpsertQuery:
        query = UpsertQuery(self._ctx, self)
        return query.values(data) if data is not None else query

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def raw(self, sql: str, params: list[Any] | None = None) -> list[dict[str, Any]]:
        """Run caller-authored SQL.

        ``?`` markers work on every dialect.  On a dialect with numbered
        placeholders (``param_style == "numeric"``), text with no ``?``
        markers is sent unchanged, so ``$1`` style SQL works there too.
        """
        values = list(params or [])
        dialect = self._ctx.dialect
        if dialect.param_style == "numeric" and marker_count(sql) == 0:
            compiled = CompiledSQL(sql=sql, params=values, dialect=dialect.dialect_name)
            return await self.run(compiled)
        canonical = renumber_markers(sql, 0, len(values))
        return await self.run(self._compiled(canonical, values))

    async def run(self, compiled: CompiledSQL) -> list[dict[str, Any]]:
        """Send a compiled statement to the driver."""
        log = logger.bind(dialect=compiled.dialect, sql=compiled.sql)
        if self._log_parameters:
            log = log.bind(params=compiled.params)
        log.debug("statement.executing", param_count=len(compiled.params))
        try:
            rows = await self._send(compiled.sql, compiled.params)
        except FluentSQLError:
            raise
        except Exception as exc:
            log.warning("statement.failed", error=str(exc), error_type=type(exc).__name__)
            raise ExecutionError(
                f"Statement failed: {exc}", sql=compiled.sql, params=compiled.params
            ) from exc
        log.debug("statement.executed", row_count=len(rows))
        return rows

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    async def has_table(self, table: str, schema: str | None = None) -> bool:
        """Return whether ``table`` exists."""
        self._ctx.escaper.escape(table)
        sql, params = self._ctx.dialect.has_table_sql(table, schema)
        rows = await self.run(self._compiled(sql, params))
        return bool(rows)

    async def drop_table(self, table: str, cascade: bool = False) -> None:
        """Drop ``table`` if it exists."""
        sql = self._ctx.dialect.drop_table_sql(self._ctx.quote(table), cascade)
        await self.run(self._compiled(sql, []))

    async def truncate(self, table: str, cascade: bool = False) -> None:
        """Remove every row from ``table``."""
        sql = self._ctx.dialect.truncate_sql(self._ctx.quote(table), cascade)
        await self.run(self._compiled(sql, []))

    def _compiled(self, canonical_sql: str, params: list[Any]) -> CompiledSQL:
        dialect = self._ctx.dialect
        return CompiledSQL(
            sql=dialect.render_placeholders(canonical_sql),
            params=params,
            dialect=dialect.dialect_name,
        )
