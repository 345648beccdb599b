"""Identifier validation and quoting.

Every table and column name that ends up in generated SQL passes through
:class:`IdentifierEscaper`.  Names are rejected outright when they look
like an injection attempt (statement separators, comments, ``UNION``) or
collide with a reserved keyword; otherwise characters outside the allowed
charset are stripped before the name is double-quoted.
"""
from __future__ import annotations

import re

from fluentsql.errors import InvalidIdentifierError, ValidationError

MAX_IDENTIFIER_LENGTH = 128

QUOTE = '"'

RESERVED_KEYWORDS: frozenset[str] = frozenset(
    """
    SELECT FROM WHERE INSERT UPDATE DELETE DROP CREATE ALTER TABLE INDEX VIEW
    PROCEDURE FUNCTION TRIGGER UNION JOIN LEFT RIGHT INNER OUTER ON AS ORDER
    GROUP BY HAVING DISTINCT TOP LIMIT OFFSET AND OR NOT IN EXISTS BETWEEN
    LIKE IS NULL TRUE FALSE CASE WHEN THEN ELSE END IF BEGIN COMMIT ROLLBACK
    TRANSACTION GRANT REVOKE PRIMARY FOREIGN KEY CONSTRAINT DEFAULT CHECK
    UNIQUE REFERENCES CASCADE RESTRICT SET VALUES INTO COLUMN DATABASE SCHEMA
    """.split()
)

# Statement separators and comment openers/closers.
_FRAGMENT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r";"),
    re.compile(r"--"),
    re.compile(r"/\*"),
    re.compile(r"\*/"),
    re.compile(r"\x00"),
)

_IDENTIFIER_PATTERNS: tuple[re.Pattern[str], ...] = _FRAGMENT_PATTERNS + (
    re.compile(r"\bunion\b", re.IGNORECASE),
)

_DISALLOWED_CHARS = re.compile(r"[^A-Za-z0-9_]")

# Compiled statements are renumbered textually; caller text must not look
# like a numbered placeholder.
_NUMBERED_TEXT = re.compile(r"\$\d")


class IdentifierEscaper:
    """Validates and quotes SQL identifiers.

    Args:
        max_length: Longest accepted identifier, checked per dotted part.
    """

    def __init__(self, max_length: int = MAX_IDENTIFIER_LENGTH) -> None:
        self.max_length = max_length

    def escape(self, identifier: str) -> str:
        """Return ``identifier`` as a quoted SQL identifier.

        ``"users.id"`` becomes ``"users"."id"`` and ``"users.*"`` becomes
        ``"users".*``.

        Raises:
            ValidationError: If any part of the name is rejected.
        """
        self._check_type(identifier)
        parts = identifier.strip().split(".")
        quoted: list[str] = []
        for index, part in enumerate(parts):
            if part == "*" and index == len(parts) - 1 and index > 0:
                quoted.append("*")
                continue
            quoted.append(self._escape_part(part, identifier))
        return ".".join(quoted)

    def escape_all(self, identifiers: list[str]) -> list[str]:
        return [self.escape(i) for i in identifiers]

    def _check_type(self, identifier: object) -> None:
        if not isinstance(identifier, str):
            raise InvalidIdentifierError(
                identifier, "identifier must be a string", "INVALID_IDENTIFIER"
            )
        if not identifier.strip():
            raise InvalidIdentifierError(
                identifier, "identifier must not be empty", "EMPTY_IDENTIFIER"
            )

    def _escape_part(self, part: str, identifier: str) -> str:
        part = part.strip()
        if not part:
            raise InvalidIdentifierError(
                identifier, "empty name segment", "EMPTY_IDENTIFIER"
            )
        if len(part) > self.max_length:
            raise InvalidIdentifierError(
                identifier,
                f"longer than {self.max_length} characters",
                "IDENTIFIER_TOO_LONG",
            )
        for pattern in _IDENTIFIER_PATTERNS:
            if pattern.search(part):
                raise InvalidIdentifierError(
                    identifier, "contains a dangerous pattern", "DANGEROUS_IDENTIFIER"
                )
        if part.upper() in RESERVED_KEYWORDS:
            raise InvalidIdentifierError(
                identifier, f"'{part}' is a reserved keyword", "RESERVED_KEYWORD"
            )
        cleaned = _DISALLOWED_CHARS.sub("", part)
        if not cleaned:
            raise InvalidIdentifierError(
                identifier, "no valid identifier characters", "INVALID_IDENTIFIER"
            )
        doubled = cleaned.replace(QUOTE, QUOTE * 2)
        return f"{QUOTE}{doubled}{QUOTE}"


_DEFAULT = IdentifierEscaper()


def escape_identifier(identifier: str) -> str:
    """Quote ``identifier`` using the default length limit."""
    return _DEFAULT.escape(identifier)


def unescape_identifier(quoted: str) -> str:
    """Reverse :func:`escape_identifier`.

    ``'"users"."id"'`` becomes ``'users.id'``.
    """
    parts: list[str] = []
    i = 0
    while i < len(quoted):
        if quoted[i] == QUOTE:
            i += 1
            buf: list[str] = []
            while i < len(quoted):
                if quoted[i] == QUOTE:
                    if i + 1 < len(quoted) and quoted[i + 1] == QUOTE:
                        buf.append(QUOTE)
                        i += 2
                        continue
                    break
                buf.append(quoted[i])
                i += 1
            parts.append("".join(buf))
            i += 1
        elif quoted[i] == "*":
            parts.append("*")
            i += 1
        elif quoted[i] == ".":
            i += 1
        else:
            raise ValidationError(
                f"Not a quoted identifier: {quoted!r}.", code="INVALID_IDENTIFIER"
            )
    return ".".join(parts)


def check_fragment(fragment: str, clause: str) -> str:
    """Reject trusted SQL text that carries separators or comments.

    Args:
        fragment: Caller-authored SQL (join ON text, raw predicates).
        clause: Clause name used in the error message.

    Returns:
        The fragment unchanged.

    Raises:
        ValidationError: If the fragment is empty, contains ``;`` or a
            comment sequence, or contains ``$<digit>`` text (use ``?``
            markers for bound values).
    """
    if not isinstance(fragment, str) or not fragment.strip():
        raise ValidationError(
            f"{clause} fragment must be a non-empty string.",
            code="INVALID_FRAGMENT",
            details={"clause": clause},
        )
    for pattern in _FRAGMENT_PATTERNS:
        if pattern.search(fragment):
            raise ValidationError(
                f"{clause} fragment contains a dangerous pattern: {fragment!r}.",
                code="DANGEROUS_FRAGMENT",
                details={"clause": clause, "fragment": fragment},
            )
    if _NUMBERED_TEXT.search(fragment):
        raise ValidationError(
            f"{clause} fragment contains numbered placeholder text: {fragment!r}. "
            "Bind values with '?' markers instead.",
            code="DANGEROUS_FRAGMENT",
            details={"clause": clause, "fragment": fragment},
        )
    return fragment
