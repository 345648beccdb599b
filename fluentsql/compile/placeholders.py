"""Numbered placeholder utilities.

Clauses are compiled to the canonical ``$N`` form and only converted to a
dialect's own style once the whole statement is assembled.  Fragments that
were compiled independently (the WHERE of an UPDATE, the SET of an upsert)
are shifted into place with :func:`shift_placeholders`.
"""
from __future__ import annotations

import re

from fluentsql.errors import ValidationError

# ``$1`` must not match the prefix of ``$10``.
NUMBERED = re.compile(r"\$(\d+)(?!\d)")

_MARKER = re.compile(r"\?")


def placeholder(index: int) -> str:
    return f"${index}"


def shift_placeholders(sql: str, offset: int) -> str:
    """Add ``offset`` to every numbered placeholder in ``sql``.

    The rewrite is a single pass, so ``$1 -> $11`` can never be picked up
    again as ``$11 -> $21``.
    """
    if offset == 0:
        return sql
    return NUMBERED.sub(lambda m: placeholder(int(m.group(1)) + offset), sql)


def marker_count(fragment: str) -> int:
    return len(_MARKER.findall(fragment))


def renumber_markers(fragment: str, offset: int, expected: int) -> str:
    """Rewrite ``?`` markers in a raw fragment to ``$offset+1 ...``.

    Args:
        fragment: Caller-authored SQL using ``?`` for each bound value.
        offset: Number of placeholders already emitted before the fragment.
        expected: Number of values supplied with the fragment.

    Raises:
        ValidationError: If the marker count differs from ``expected``.
    """
    found = marker_count(fragment)
    if found != expected:
        raise ValidationError(
            f"Raw fragment has {found} '?' marker(s) but {expected} value(s) were given.",
            code="PARAM_COUNT_MISMATCH",
            details={"fragment": fragment, "markers": found, "values": expected},
        )
    counter = iter(range(offset + 1, offset + found + 1))
    return _MARKER.sub(lambda _m: placeholder(next(counter)), fragment)


def placeholder_indices(sql: str) -> list[int]:
    """Return numbered placeholder indices in emission order."""
    return [int(m.group(1)) for m in NUMBERED.finditer(sql)]


def to_positional(sql: str, marker: str = "?") -> str:
    """Replace every numbered placeholder with ``marker``.

    Only valid when indices already appear in ascending emission order,
    which every assembler guarantees.
    """
    return NUMBERED.sub(marker, sql)
