"""PostgreSQL dialect."""

from __future__ import annotations

from typing import Any

from fluentsql.compile.base import Dialect
from fluentsql.schema.predicates import Operator


class PostgresDialect(Dialect):
    """PostgreSQL-flavoured statements.

    Parameter style: ``$1, $2, ...`` – what ``asyncpg`` expects, so the
    canonical form is passed through unchanged.
    """

    default_schema = "public"

    @property
    def dialect_name(self) -> str:
        return "postgres"

    @property
    def param_style(self) -> str:
        return "numeric"

    def render_placeholders(self, sql: str) -> str:
        return sql

    def render_pattern(self, column_sql: str, op: Operator, placeholder: str) -> str:
        return f"{column_sql} {op.value} {placeholder}"  # ILIKE is native

    def has_table_sql(self, table: str, schema: str | None = None) -> tuple[str, list[Any]]:
        sql = (
            "SELECT 1 FROM information_schema.tables "
            "WHERE table_schema = $1 AND table_name = $2"
        )
        return sql, [schema or self.default_schema, table]

    def drop_table_sql(self, quoted_table: str, cascade: bool = False) -> str:
        suffix = " CASCADE" if cascade else ""
        return f"DROP TABLE IF EXISTS {quoted_table}{suffix}"

    def truncate_sql(self, quoted_table: str, cascade: bool = False) -> str:
        suffix = " CASCADE" if cascade else ""
        return f"TRUNCATE TABLE {quoted_table}{suffix}"
