"""SQLite driver backed by the standard ``sqlite3`` module.

SQLite connections are not safe for concurrent use, so the driver owns a
single connection guarded by an ``asyncio.Lock``.  Blocking calls run in
a worker thread.  A reserved connection holds the lock until released,
which makes statements outside the transaction wait for it to finish.
"""
from __future__ import annotations

import asyncio
import sqlite3
from typing import Any

import structlog

from fluentsql.driver.base import Connection, Driver

logger = structlog.get_logger(__name__)


def _run(conn: sqlite3.Connection, sql: str, params: list[Any]) -> list[dict[str, Any]]:
    cursor = conn.execute(sql, params)
    try:
        if cursor.description is None:
            return []
        return [dict(row) for row in cursor.fetchall()]
    finally:
        cursor.close()


class SQLiteConnection(Connection):
    def __init__(self, driver: SQLiteDriver, conn: sqlite3.Connection) -> None:
        self._driver = driver
        self._conn = conn

    async def execute(self, sql: str, params: list[Any]) -> list[dict[str, Any]]:
        return await asyncio.to_thread(_run, self._conn, sql, params)

    async def release(self) -> None:
        self._driver._lock.release()


class SQLiteDriver(Driver):
    """Runs ``?`` statements through ``sqlite3``.

    Args:
        path: Database file path, or ``":memory:"``.
    """

    def __init__(self, path: str = ":memory:") -> None:
        self._path = path
        self._conn: sqlite3.Connection | None = None
        self._lock = asyncio.Lock()

    async def connect(self) -> None:
        if self._conn is not None:
            return
        # Autocommit mode; transactions are opened with explicit BEGIN.
        conn = sqlite3.connect(self._path, isolation_level=None, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        self._conn = conn
        logger.info("driver.connected", dialect="sqlite", path=self._path)

    async def close(self) -> None:
        if self._conn is not None:
            async with self._lock:
                self._conn.close()
                self._conn = None
            logger.info("driver.closed", dialect="sqlite")

    async def execute(self, sql: str, params: list[Any]) -> list[dict[str, Any]]:
        conn = await self._ensure_conn()
        async with self._lock:
            return await asyncio.to_thread(_run, conn, sql, params)

    async def reserve(self) -> Connection:
        conn = await self._ensure_conn()
        await self._lock.acquire()
        return SQLiteConnection(self, conn)

    async def _ensure_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            await self.connect()
        return self._conn
