"""Predicate tree models shared by WHERE and HAVING.

A :class:`ConditionGroup` is an ordered list of :class:`Condition` leaves
and nested groups.  Each node carries the conjunction that joins it to its
siblings.  The same tree type is consumed by every statement kind.
"""
from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from fluentsql.errors import InvalidOperatorError

# ---------------------------------------------------------------------------
# Operator enums
# ---------------------------------------------------------------------------


class Operator(str, Enum):
    """The closed set of predicate operators."""

    EQ = "="
    NE = "!="
    GT = ">"
    LT = "<"
    GTE = ">="
    LTE = "<="
    LIKE = "LIKE"
    ILIKE = "ILIKE"
    NOT_LIKE = "NOT LIKE"
    NOT_ILIKE = "NOT ILIKE"
    IN = "IN"
    NOT_IN = "NOT IN"
    IS_NULL = "IS NULL"
    IS_NOT_NULL = "IS NOT NULL"
    RAW = "RAW"

    @classmethod
    def parse(cls, op: str | Operator) -> Operator:
        """Resolve a user-supplied operator string.

        Matching ignores case and repeated whitespace; ``<>`` is accepted as
        an alias for ``!=``.

        Raises:
            InvalidOperatorError: If ``op`` is not a supported operator.
        """
        if isinstance(op, Operator):
            return op
        if isinstance(op, str):
            normalized = " ".join(op.upper().split())
            if normalized == "<>":
                normalized = "!="
            try:
                return cls(normalized)
            except ValueError:
                pass
        raise InvalidOperatorError(op, [o.value for o in cls])

    @property
    def takes_value(self) -> bool:
        return self not in (Operator.IS_NULL, Operator.IS_NOT_NULL)

    @property
    def takes_list(self) -> bool:
        return self in (Operator.IN, Operator.NOT_IN)

    @property
    def is_pattern(self) -> bool:
        return self in PATTERN_OPERATORS


PATTERN_OPERATORS = frozenset(
    {Operator.LIKE, Operator.ILIKE, Operator.NOT_LIKE, Operator.NOT_ILIKE}
)

#: Operators a caller may pass explicitly; RAW is reached through where_raw.
COMPARISON_OPERATORS = frozenset(o for o in Operator if o is not Operator.RAW)


class Conjunction(str, Enum):
    """How a node is joined to the nodes before it."""

    AND = "AND"
    OR = "OR"


# ---------------------------------------------------------------------------
# Tree nodes
# ---------------------------------------------------------------------------


class Condition(BaseModel):
    """A single predicate leaf.

    Attributes:
        column: Column name, or the SQL fragment for ``RAW`` conditions.
        operator: One of :class:`Operator`.
        value: Bound value; a list for IN / NOT IN and RAW, ``None`` for
            IS [NOT] NULL.
        conjunction: AND / OR relative to preceding siblings.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    column: str
    operator: Operator
    value: Any = None
    conjunction: Conjunction = Conjunction.AND


class ConditionGroup(BaseModel):
    """An ordered, nestable group of predicate nodes.

    Attributes:
        nodes: Conditions and sub-groups in insertion order.
        conjunction: AND / OR relative to the group's preceding siblings.
    """

    model_config = ConfigDict(extra="forbid")

    nodes: list[Condition | ConditionGroup] = Field(default_factory=list)
    conjunction: Conjunction = Conjunction.AND

    def is_empty(self) -> bool:
        """True when the group has no conditions at any depth."""
        return all(
            isinstance(n, ConditionGroup) and n.is_empty() for n in self.nodes
        )


ConditionGroup.model_rebuild()
