"""fluentsql compilation layer: Statement → parameterized SQL."""
from fluentsql.compile.base import CompiledSQL, Dialect
from fluentsql.compile.builder import StatementCompiler
from fluentsql.compile.context import CompilationContext
from fluentsql.compile.postgres import PostgresDialect
from fluentsql.compile.predicate_compiler import PredicateCompiler
from fluentsql.compile.registry import DialectFactory
from fluentsql.compile.sqlite import SQLiteDialect

__all__ = [
    "CompiledSQL",
    "Dialect",
    "StatementCompiler",
    "CompilationContext",
    "PostgresDialect",
    "PredicateCompiler",
    "DialectFactory",
    "SQLiteDialect",
]
