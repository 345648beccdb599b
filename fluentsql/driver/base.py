"""Driver contract.

A driver executes already-compiled statement text.  It never builds SQL
and never sees builder state; all it receives is ``(sql, params)`` in its
dialect's placeholder style.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class Connection(ABC):
    """A single reserved connection, used for transactions."""

    @abstractmethod
    async def execute(self, sql: str, params: list[Any]) -> list[dict[str, Any]]:
        """Run ``sql`` on this connection and return rows as dicts."""

    @abstractmethod
    async def release(self) -> None:
        """Return the connection to its driver."""


class Driver(ABC):
    """Executes statements over a pool (or a single shared connection)."""

    @abstractmethod
    async def connect(self) -> None:
        """Open the pool / connection.  Safe to call more than once."""

    @abstractmethod
    async def close(self) -> None:
        """Close the pool / connection."""

    @abstractmethod
    async def execute(self, sql: str, params: list[Any]) -> list[dict[str, Any]]:
        """Run ``sql`` on any available connection and return rows as dicts.

        Args:
            sql: Statement text in the dialect's placeholder style.
            params: Positional values, one per placeholder.

        Returns:
            Result rows; empty for statements that return none.
        """

    @abstractmethod
    async def reserve(self) -> Connection:
        """Reserve one connection for exclusive use until released."""
