"""PostgreSQL driver backed by an asyncpg pool."""
from __future__ import annotations

from typing import Any

import asyncpg
import structlog

from fluentsql.driver.base import Connection, Driver
from fluentsql.errors import ConfigurationError

logger = structlog.get_logger(__name__)


class PostgresConnection(Connection):
    def __init__(self, pool: asyncpg.Pool, conn: asyncpg.Connection) -> None:
        self._pool = pool
        self._conn = conn

    async def execute(self, sql: str, params: list[Any]) -> list[dict[str, Any]]:
        rows = await self._conn.fetch(sql, *params)
        return [dict(row) for row in rows]

    async def release(self) -> None:
        await self._pool.release(self._conn)


class PostgresDriver(Driver):
    """Runs ``$N`` statements through ``asyncpg``.

    Args:
        dsn: PostgreSQL connection string.
        min_size: Minimum pooled connections.
        max_size: Maximum pooled connections.
        pool: An existing pool to use instead of creating one.
    """

    def __init__(
        self,
        dsn: str | None = None,
        min_size: int = 1,
        max_size: int = 10,
        pool: asyncpg.Pool | None = None,
    ) -> None:
        self._dsn = dsn
        self._min_size = min_size
        self._max_size = max_size
        self._pool = pool

    async def connect(self) -> None:
        if self._pool is not None:
            return
        if not self._dsn:
            raise ConfigurationError(
                "A DSN is required for the postgres driver. Set FLUENTSQL_DSN.",
                missing=["dsn"],
            )
        self._pool = await asyncpg.create_pool(
            self._dsn, min_size=self._min_size, max_size=self._max_size
        )
        logger.info("driver.connected", dialect="postgres", max_size=self._max_size)

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("driver.closed", dialect="postgres")

    async def execute(self, sql: str, params: list[Any]) -> list[dict[str, Any]]:
        pool = await self._ensure_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(sql, *params)
        return [dict(row) for row in rows]

    async def reserve(self) -> Connection:
        pool = await self._ensure_pool()
        conn = await pool.acquire()
        return PostgresConnection(pool, conn)

    async def _ensure_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            await self.connect()
        return self._pool
