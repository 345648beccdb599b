"""Dialect registry (Open/Closed Principle).

``DialectFactory``
    Central registry for :class:`~fluentsql.compile.base.Dialect`
    implementations.  Register a dialect once; ``Database`` looks it up by
    the configured name, so no other component branches on dialect names.

Usage::

    from fluentsql.compile.registry import DialectFactory

    @DialectFactory.register("mysql")
    class MySQLDialect(Dialect):
        ...
"""

from __future__ import annotations

from collections.abc import Callable
from typing import ClassVar

from fluentsql.compile.base import Dialect
from fluentsql.errors import CompilationError


class DialectFactory:
    """Registry mapping dialect names to :class:`Dialect` classes.

    Example::

        @DialectFactory.register("mysql")
        class MySQLDialect(Dialect):
            ...

        dialect = DialectFactory.create("mysql")
    """

    _dialects: ClassVar[dict[str, type[Dialect]]] = {}

    @classmethod
    def register(cls, name: str) -> Callable[[type[Dialect]], type[Dialect]]:
        """Decorator that registers a dialect class under ``name``.

        Args:
            name: The dialect name (e.g. ``"postgres"``).

        Returns:
            A decorator that registers and returns the dialect class.
        """

        def decorator(dialect_cls: type[Dialect]) -> type[Dialect]:
            cls._dialects[name] = dialect_cls
            return dialect_cls

        return decorator

    @classmethod
    def register_class(cls, name: str, dialect_cls: type[Dialect]) -> None:
        """Register a dialect class without using the decorator form."""
        cls._dialects[name] = dialect_cls

    @classmethod
    def create(cls, name: str) -> Dialect:
        """Instantiate the dialect registered for ``name``.

        Raises:
            CompilationError: If no dialect is registered for ``name``.
        """
        dialect_cls = cls._dialects.get(name)
        if dialect_cls is None:
            registered = sorted(cls._dialects)
            raise CompilationError(
                f"Unsupported dialect: '{name}'. Registered dialects: {registered}."
            )
        return dialect_cls()

    @classmethod
    def registered_dialects(cls) -> list[str]:
        """Return the sorted list of registered dialect names."""
        return sorted(cls._dialects)
