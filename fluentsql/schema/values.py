"""Row value domain for INSERT / UPDATE / UPSERT data."""
from __future__ import annotations

import datetime as dt
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Union
from uuid import UUID

from fluentsql.errors import InvalidValueError, ValidationError

Scalar = Union[str, int, float, Decimal, bool, None, bytes, UUID, dt.date, dt.time, dt.datetime]
SQLValue = Union[Scalar, list, tuple]

Row = dict[str, Any]

_SCALAR_TYPES = (str, int, float, Decimal, bool, bytes, UUID, dt.date, dt.time)


def is_sql_value(value: Any) -> bool:
    """True when ``value`` can be bound as a statement parameter."""
    if value is None or isinstance(value, _SCALAR_TYPES):
        return True
    if isinstance(value, (list, tuple)):
        return all(is_sql_value(v) for v in value)
    return False


def validate_row(row: Any) -> Row:
    """Check a single row mapping and return it as a plain dict.

    Raises:
        ValidationError: If ``row`` is not a non-empty mapping of string
            keys to supported values.
    """
    if not isinstance(row, Mapping):
        raise ValidationError(
            f"Row data must be a mapping, got {type(row).__name__}.",
            code="INVALID_ROW",
        )
    if not row:
        raise ValidationError("Row data must not be empty.", code="EMPTY_ROW")
    for column, value in row.items():
        if not isinstance(column, str):
            raise ValidationError(
                f"Column names must be strings, got {column!r}.",
                code="INVALID_ROW",
            )
        if not is_sql_value(value):
            raise InvalidValueError(column, value)
    return dict(row)


def validate_rows(rows: Any) -> list[Row]:
    """Validate one row or a sequence of rows sharing the same columns."""
    if isinstance(rows, Mapping):
        rows = [rows]
    if not isinstance(rows, (list, tuple)):
        raise ValidationError(
            f"Rows must be a mapping or a list of mappings, got {type(rows).__name__}.",
            code="INVALID_ROW",
        )
    validated = [validate_row(r) for r in rows]
    if validated:
        columns = list(validated[0])
        for index, row in enumerate(validated[1:], start=1):
            if set(row) != set(columns):
                raise ValidationError(
                    f"Row {index} has columns {sorted(row)}; expected {sorted(columns)}.",
                    code="MISMATCHED_ROWS",
                    details={"row": index, "expected": columns},
                )
    return validated
