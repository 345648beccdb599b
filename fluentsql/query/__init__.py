"""Fluent builders for every statement kind."""
from fluentsql.query.builders import (
    DeleteQuery,
    Executor,
    InsertQuery,
    QueryBase,
    SelectQuery,
    UpdateQuery,
    UpsertQuery,
)
from fluentsql.query.predicates import PredicateBuilder, WhereMethods

__all__ = [
    "DeleteQuery",
    "Executor",
    "InsertQuery",
    "QueryBase",
    "SelectQuery",
    "UpdateQuery",
    "UpsertQuery",
    "PredicateBuilder",
    "WhereMethods",
]
