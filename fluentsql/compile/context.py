"""Compilation context value object.

Packages the ``(dialect, escaper)`` pair that every builder and clause
compiler needs into one object, passed in explicitly instead of looked up
from module-level state.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from fluentsql.compile.base import Dialect
from fluentsql.schema.identifiers import IdentifierEscaper


@dataclass(frozen=True)
class CompilationContext:
    """Immutable context shared by the builders of one database.

    Attributes:
        dialect: Backend dialect.
        escaper: Identifier validator/quoter.
    """

    dialect: Dialect
    escaper: IdentifierEscaper = field(default_factory=IdentifierEscaper)

    def quote(self, identifier: str) -> str:
        return self.escaper.escape(identifier)
