"""fluentsql – fluent, parameterized SQL construction for PostgreSQL and SQLite.

Build statements with chained calls; get back SQL text plus an ordered
parameter list that always line up.

Public API
----------
``Database``
    Entry point carrying the dialect and driver.  Starts SELECT / INSERT /
    UPDATE / DELETE / UPSERT builders, runs raw SQL, introspects tables and
    scopes transactions.

``Settings`` / ``get_settings``
    Environment-driven configuration (``FLUENTSQL_*``).

``CompilationContext`` + builders
    Compile without a connection::

        ctx = CompilationContext(PostgresDialect())
        SelectQuery(ctx).from_("users").where_in("id", [1, 2]).raw()

Extensibility
-------------
New dialects can be registered via::

    from fluentsql.compile.registry import DialectFactory

    @DialectFactory.register("mysql")
    class MySQLDialect(Dialect):
        ...

and paired with a driver through ``DriverFactory.register_builder``.
``Database.connect`` picks both up for ``Settings(dialect="mysql")``.
"""

from __future__ import annotations

from fluentsql.compile.base import CompiledSQL, Dialect
from fluentsql.compile.builder import StatementCompiler
from fluentsql.compile.context import CompilationContext
from fluentsql.compile.postgres import PostgresDialect
from fluentsql.compile.registry import DialectFactory
from fluentsql.compile.sqlite import SQLiteDialect
from fluentsql.config import Settings, get_settings
from fluentsql.database import Database
from fluentsql.driver.base import Connection, Driver
from fluentsql.driver.postgres import PostgresDriver
from fluentsql.driver.registry import DriverFactory
from fluentsql.driver.sqlite import SQLiteDriver
from fluentsql.errors import (
    CompilationError,
    ConfigurationError,
    ExecutionError,
    FluentSQLError,
    InvalidIdentifierError,
    InvalidOperatorError,
    InvalidValueError,
    TransactionStateError,
    ValidationError,
)
from fluentsql.query.builders import (
    DeleteQuery,
    InsertQuery,
    SelectQuery,
    UpdateQuery,
    UpsertQuery,
)
from fluentsql.query.predicates import PredicateBuilder
from fluentsql.schema.identifiers import (
    IdentifierEscaper,
    escape_identifier,
    unescape_identifier,
)
from fluentsql.schema.predicates import Condition, ConditionGroup, Conjunction, Operator
from fluentsql.schema.statement import Statement, StatementKind
from fluentsql.transaction import Transaction, TransactionState

# ---------------------------------------------------------------------------
# Register built-in dialects and drivers
# ---------------------------------------------------------------------------

DialectFactory.register_class("postgres", PostgresDialect)
DialectFactory.register_class("sqlite", SQLiteDialect)

DriverFactory.register_builder(
    "postgres",
    lambda s: PostgresDriver(s.dsn, min_size=s.pool_min_size, max_size=s.pool_max_size),
)
DriverFactory.register_builder("sqlite", lambda s: SQLiteDriver(s.sqlite_path))

__all__ = [
    # Entry points
    "Database",
    "Transaction",
    "TransactionState",
    "Settings",
    "get_settings",
    # Builders
    "SelectQuery",
    "InsertQuery",
    "UpdateQuery",
    "DeleteQuery",
    "UpsertQuery",
    "PredicateBuilder",
    # Statement model
    "Statement",
    "StatementKind",
    "Condition",
    "ConditionGroup",
    "Conjunction",
    "Operator",
    # Identifiers
    "IdentifierEscaper",
    "escape_identifier",
    "unescape_identifier",
    # Compilation
    "CompiledSQL",
    "CompilationContext",
    "Dialect",
    "DialectFactory",
    "PostgresDialect",
    "SQLiteDialect",
    "StatementCompiler",
    # Drivers
    "Connection",
    "Driver",
    "DriverFactory",
    "PostgresDriver",
    "SQLiteDriver",
    # Errors
    "FluentSQLError",
    "ValidationError",
    "InvalidIdentifierError",
    "InvalidOperatorError",
    "InvalidValueError",
    "ConfigurationError",
    "CompilationError",
    "ExecutionError",
    "TransactionStateError",
]
