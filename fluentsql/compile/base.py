"""Compiler abstractions: CompiledSQL and the Dialect ABC.

The Template Method pattern (GoF) is used:
- ``StatementCompiler`` defines the algorithm skeleton for every statement
  kind and always emits canonical ``$N`` placeholders.
- ``Dialect`` subclasses override the backend-specific steps (final
  placeholder style, ILIKE emulation, transaction and introspection
  statement text, literal quoting).
"""
from __future__ import annotations

import datetime as dt
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from fluentsql.compile.placeholders import NUMBERED
from fluentsql.schema.predicates import Operator


@dataclass
class CompiledSQL:
    """The output of a successful compilation.

    Attributes:
        sql: The statement text in the dialect's placeholder style.
        params: Positional values, one per placeholder in emission order.
        dialect: The target dialect (``'postgres'`` or ``'sqlite'``).
    """

    sql: str
    params: list[Any] = field(default_factory=list)
    dialect: str = ""

    def __iter__(self) -> Iterator[Any]:
        # Allows ``sql, params = query.raw()``.
        yield self.sql
        yield self.params

    def as_dict(self) -> dict[str, Any]:
        return {"sql": self.sql, "params": list(self.params)}


class Dialect(ABC):
    """Abstract base for backend dialects.

    Subclasses implement the dialect-specific methods; the
    ``StatementCompiler`` and ``Database`` use this interface via the
    Strategy / Template Method patterns.  Adding a backend means
    implementing this class and registering it with ``DialectFactory``.
    """

    begin_sql = "BEGIN"
    commit_sql = "COMMIT"
    rollback_sql = "ROLLBACK"

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the canonical dialect name (``'postgres'`` or ``'sqlite'``)."""

    @property
    @abstractmethod
    def param_style(self) -> str:
        """Return the DB-API paramstyle name (``'numeric'`` or ``'qmark'``)."""

    @abstractmethod
    def render_placeholders(self, sql: str) -> str:
        """Convert canonical ``$N`` placeholders to the dialect's style.

        Args:
            sql: Fully assembled statement with contiguous ``$1..$N``.

        Returns:
            Statement text ready for the driver.
        """

    @abstractmethod
    def render_pattern(self, column_sql: str, op: Operator, placeholder: str) -> str:
        """Return a LIKE-family comparison.

        Backends without ``ILIKE`` emulate it with ``LOWER()`` on both sides.

        Args:
            column_sql: Escaped column reference.
            op: One of LIKE, ILIKE, NOT LIKE, NOT ILIKE.
            placeholder: The bound-value placeholder.

        Returns:
            SQL comparison fragment.
        """

    @abstractmethod
    def has_table_sql(self, table: str, schema: str | None = None) -> tuple[str, list[Any]]:
        """Return ``(sql, params)`` for a table-existence check.

        The statement yields at least one row when the table exists.
        """

    @abstractmethod
    def drop_table_sql(self, quoted_table: str, cascade: bool = False) -> str:
        """Return ``DROP TABLE`` text for an already-quoted table name."""

    @abstractmethod
    def truncate_sql(self, quoted_table: str, cascade: bool = False) -> str:
        """Return text removing every row from an already-quoted table."""

    def quote_literal(self, value: Any) -> str:
        """Render ``value`` as an inline SQL literal (debug output only)."""
        if value is None:
            return "NULL"
        if isinstance(value, bool):
            return "TRUE" if value else "FALSE"
        if isinstance(value, (int, float, Decimal)):
            return str(value)
        if isinstance(value, (dt.date, dt.time)):
            return f"'{value.isoformat()}'"
        if isinstance(value, bytes):
            return f"X'{value.hex()}'"
        if isinstance(value, (list, tuple)):
            return "(" + ", ".join(self.quote_literal(v) for v in value) + ")"
        text = str(value).replace("'", "''")
        return f"'{text}'"

    def inline(self, sql: str, params: list[Any]) -> str:
        """Substitute canonical ``$N`` placeholders with literals."""
        return NUMBERED.sub(lambda m: self.quote_literal(params[int(m.group(1)) - 1]), sql)
