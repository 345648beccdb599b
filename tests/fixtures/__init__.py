"""Test doubles: a driver that records statements and returns canned rows."""

from __future__ import annotations

from typing import Any

from fluentsql.compile.placeholders import placeholder_indices
from fluentsql.compile.base import CompiledSQL
from fluentsql.driver.base import Connection, Driver

CONTROL_STATEMENTS = {"BEGIN", "COMMIT", "ROLLBACK"}


def assert_contiguous(compiled: CompiledSQL) -> None:
    """Placeholders run $1..$N in emission order with one param each."""
    assert placeholder_indices(compiled.sql) == list(range(1, len(compiled.params) + 1))


class RecordingConnection(Connection):
    """Reserved connection that records what it was asked to run."""

    def __init__(self, driver: RecordingDriver) -> None:
        self._driver = driver
        self.statements: list[tuple[str, list[Any]]] = []
        self.released = False

    async def execute(self, sql: str, params: list[Any]) -> list[dict[str, Any]]:
        self.statements.append((sql, list(params)))
        return await self._driver.execute(sql, params)

    async def release(self) -> None:
        self.released = True


class RecordingDriver(Driver):
    """In-memory driver returning canned rows.

    Args:
        rows: Rows returned for every non-control statement.
        fail_on: Raise ``RuntimeError`` for statements containing this text.
    """

    def __init__(
        self,
        rows: list[dict[str, Any]] | None = None,
        fail_on: str | None = None,
    ) -> None:
        self.rows = rows or []
        self.fail_on = fail_on
        self.statements: list[tuple[str, list[Any]]] = []
        self.connections: list[RecordingConnection] = []
        self.closed = False

    async def connect(self) -> None:
        self.closed = False

    async def close(self) -> None:
        self.closed = True

    async def execute(self, sql: str, params: list[Any]) -> list[dict[str, Any]]:
        self.statements.append((sql, list(params)))
        if self.fail_on and self.fail_on in sql:
            raise RuntimeError(f"driver failure on {sql!r}")
        if sql in CONTROL_STATEMENTS:
            return []
        return [dict(r) for r in self.rows]

    async def reserve(self) -> Connection:
        conn = RecordingConnection(self)
        self.connections.append(conn)
        return conn

    @property
    def sql(self) -> list[str]:
        return [s for s, _ in self.statements]
