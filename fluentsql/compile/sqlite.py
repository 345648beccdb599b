"""SQLite dialect."""
from __future__ import annotations

from typing import Any

from fluentsql.compile.base import Dialect
from fluentsql.compile.placeholders import to_positional
from fluentsql.schema.predicates import Operator


class SQLiteDialect(Dialect):
    """SQLite-flavoured statements.

    Parameter style: ``?`` – compatible with Python's built-in ``sqlite3``
    positional execution (``cursor.execute(sql, params)``).

    Note: SQLite has no ``ILIKE``; it is emulated with ``LOWER()`` on both
    operands.  There is no ``TRUNCATE`` either, and ``CASCADE`` is ignored.
    """

    @property
    def dialect_name(self) -> str:
        return "sqlite"

    @property
    def param_style(self) -> str:
        return "qmark"

    def render_placeholders(self, sql: str) -> str:
        return to_positional(sql)

    def render_pattern(self, column_sql: str, op: Operator, placeholder: str) -> str:
        if op is Operator.ILIKE:
            return f"LOWER({column_sql}) LIKE LOWER({placeholder})"
        if op is Operator.NOT_ILIKE:
            return f"LOWER({column_sql}) NOT LIKE LOWER({placeholder})"
        return f"{column_sql} {op.value} {placeholder}"

    def has_table_sql(self, table: str, schema: str | None = None) -> tuple[str, list[Any]]:
        return "SELECT name FROM sqlite_master WHERE type = 'table' AND name = $1", [table]

    def drop_table_sql(self, quoted_table: str, cascade: bool = False) -> str:
        return f"DROP TABLE IF EXISTS {quoted_table}"

    def truncate_sql(self, quoted_table: str, cascade: bool = False) -> str:
        return f"DELETE FROM {quoted_table}"
