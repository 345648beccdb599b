"""Pydantic models describing a statement under construction.

A :class:`Statement` is plain data: the fluent builders mutate it and the
compiler reads it.  Field validation runs on assignment so bad LIMIT /
OFFSET values or join kinds are rejected at the call that sets them.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from fluentsql.errors import ValidationError
from fluentsql.schema.predicates import ConditionGroup

_M = TypeVar("_M", bound=BaseModel)


class StatementKind(str, Enum):
    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    UPSERT = "UPSERT"


class SelectColumn(BaseModel):
    """One entry of the SELECT list.

    Attributes:
        expr: Column name, or trusted SQL when ``raw`` is set.
        alias: Optional output alias.
        raw: If True, ``expr`` is emitted verbatim.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    expr: str
    alias: str | None = None
    raw: bool = False


class JoinSpec(BaseModel):
    """A single JOIN entry.

    Attributes:
        kind: SQL join type.
        table: Joined table name.
        alias: Optional alias for the joined table.
        on: Caller-authored join predicate, emitted verbatim.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["INNER", "LEFT", "RIGHT", "FULL"] = "INNER"
    table: str
    alias: str | None = None
    on: str


class OrderSpec(BaseModel):
    """A single ORDER BY item."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    column: str
    direction: Literal["ASC", "DESC"] = "ASC"

    @field_validator("direction", mode="before")
    @classmethod
    def _upper(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


class Statement(BaseModel):
    """Accumulated state of one statement.

    Attributes:
        kind: Statement kind; decides which assembler compiles it.
        table: Target table.
        alias: Optional alias for the target table (SELECT only).
        columns: SELECT list; empty means ``*``.
        distinct: Emit ``SELECT DISTINCT``.
        rows: INSERT rows, or the single UPSERT row.
        set_values: UPDATE assignments in insertion order.
        conflict_columns: UPSERT ``ON CONFLICT`` target columns.
        merge_columns: UPSERT columns to overwrite; ``None`` means all.
        conflict_action: ``update`` or ``nothing``.
        where: WHERE predicate tree.
        having: HAVING predicate tree.
        joins: JOIN entries in call order.
        group_by: GROUP BY columns.
        order_by: ORDER BY items.
        limit: Maximum rows.
        offset: Rows to skip.
        returning: RETURNING columns; ``["*"]`` for all.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    kind: StatementKind = StatementKind.SELECT
    table: str | None = None
    alias: str | None = None
    columns: list[SelectColumn] = Field(default_factory=list)
    distinct: bool = False
    rows: list[dict[str, Any]] = Field(default_factory=list)
    set_values: dict[str, Any] = Field(default_factory=dict)
    conflict_columns: list[str] = Field(default_factory=list)
    merge_columns: list[str] | None = None
    conflict_action: Literal["update", "nothing"] = "update"
    where: ConditionGroup = Field(default_factory=ConditionGroup)
    having: ConditionGroup = Field(default_factory=ConditionGroup)
    joins: list[JoinSpec] = Field(default_factory=list)
    group_by: list[str] = Field(default_factory=list)
    order_by: list[OrderSpec] = Field(default_factory=list)
    limit: int | None = Field(default=None, ge=0, strict=True)
    offset: int | None = Field(default=None, ge=0, strict=True)
    returning: list[str] = Field(default_factory=list)


def build_model(model: type[_M], **fields: Any) -> _M:
    """Instantiate ``model``, re-raising pydantic errors as ValidationError."""
    try:
        return model(**fields)
    except PydanticValidationError as exc:
        raise ValidationError(
            f"Invalid {model.__name__}: {_first_message(exc)}",
            code="INVALID_CLAUSE",
            details={"model": model.__name__, "errors": exc.errors(include_url=False)},
        ) from exc


def assign(statement: Statement, field: str, value: Any) -> None:
    """Set a validated field on ``statement``."""
    try:
        setattr(statement, field, value)
    except PydanticValidationError as exc:
        raise ValidationError(
            f"Invalid {field}: {_first_message(exc)}",
            code="INVALID_CLAUSE",
            details={"field": field, "value": value},
        ) from exc


def _first_message(exc: PydanticValidationError) -> str:
    errors = exc.errors(include_url=False)
    return errors[0]["msg"] if errors else str(exc)
