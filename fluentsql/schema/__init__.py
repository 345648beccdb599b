"""fluentsql schema layer: identifiers, value domain and statement models."""
from fluentsql.schema.identifiers import (
    IdentifierEscaper,
    check_fragment,
    escape_identifier,
    unescape_identifier,
)
from fluentsql.schema.predicates import (
    Condition,
    ConditionGroup,
    Conjunction,
    Operator,
)
from fluentsql.schema.statement import (
    JoinSpec,
    OrderSpec,
    SelectColumn,
    Statement,
    StatementKind,
)
from fluentsql.schema.values import Row, validate_row, validate_rows

__all__ = [
    "IdentifierEscaper",
    "check_fragment",
    "escape_identifier",
    "unescape_identifier",
    "Condition",
    "ConditionGroup",
    "Conjunction",
    "Operator",
    "JoinSpec",
    "OrderSpec",
    "SelectColumn",
    "Statement",
    "StatementKind",
    "Row",
    "validate_row",
    "validate_rows",
]
