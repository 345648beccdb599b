"""Database entry point.

A :class:`Database` is the explicit context value that carries the active
dialect and driver.  Every builder it starts is bound to it, so there is no
global connection or helper state::

    db = await Database.connect(Settings(dialect="sqlite"))
    rows = await db.table("users").where("age", ">", 18).order_by("name").get()

    async with db.transaction() as trx:
        await trx.insert({"name": "Ada"}).into("users").execute()
"""
from __future__ import annotations

import inspect
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

import structlog

from fluentsql.compile.base import Dialect
from fluentsql.compile.context import CompilationContext
from fluentsql.compile.registry import DialectFactory
from fluentsql.config import Settings, get_settings
from fluentsql.driver.base import Driver
from fluentsql.driver.registry import DriverFactory
from fluentsql.errors import FluentSQLError
from fluentsql.executor import StatementExecutor
from fluentsql.schema.identifiers import IdentifierEscaper
from fluentsql.transaction import Transaction

logger = structlog.get_logger(__name__)

_T = TypeVar("_T")


class Database(StatementExecutor):
    """Starts statements and runs them through a driver.

    Args:
        dialect: Backend dialect used to compile statements.
        driver: Driver that executes them.
        escaper: Identifier validator; defaults to the standard limits.
        log_parameters: Include parameter values in debug logs.
    """

    def __init__(
        self,
        dialect: Dialect,
        driver: Driver,
        escaper: IdentifierEscaper | None = None,
        log_parameters: bool = False,
    ) -> None:
        self._ctx = CompilationContext(dialect=dialect, escaper=escaper or IdentifierEscaper())
        self._driver = driver
        self._log_parameters = log_parameters

    @classmethod
    async def connect(cls, settings: Settings | None = None) -> Database:
        """Create a connected database from settings.

        Both the dialect and the driver are looked up by
        ``settings.dialect`` in their registries.
        """
        settings = settings or get_settings()
        dialect = DialectFactory.create(settings.dialect)
        driver = DriverFactory.create(settings.dialect, settings)
        await driver.connect()
        return cls(
            dialect,
            driver,
            escaper=IdentifierEscaper(settings.max_identifier_length),
            log_parameters=settings.log_parameters,
        )

    @property
    def dialect(self) -> Dialect:
        return self._ctx.dialect

    @property
    def driver(self) -> Driver:
        return self._driver

    async def close(self) -> None:
        await self._driver.close()

    async def __aenter__(self) -> Database:
        await self._driver.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _send(self, sql: str, params: list[Any]) -> list[dict[str, Any]]:
        return await self._driver.execute(sql, params)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def begin(self) -> Transaction:
        """Reserve a connection and open a transaction on it.

        The caller must call ``commit()`` or ``rollback()`` on the returned
        handle.
        """
        connection = await self._driver.reserve()
        trx = Transaction(self._ctx, connection, log_parameters=self._log_parameters)
        try:
            await trx.start()
        except BaseException:
            await connection.release()
            raise
        return trx

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Transaction]:
        """Scope a transaction to an ``async with`` block.

        Commits when the block exits normally.  When the block raises, the
        transaction is rolled back and the original exception propagates.
        """
        trx = await self.begin()
        try:
            yield trx
        except BaseException:
            if trx.is_active:
                try:
                    await trx.rollback()
                except FluentSQLError as exc:
                    logger.error("transaction.rollback_failed", error=str(exc))
            raise
        if trx.is_active:
            await trx.commit()

    async def with_transaction(
        self, fn: Callable[[Transaction], Awaitable[_T] | _T]
    ) -> _T:
        """Run ``fn(trx)`` inside a transaction and return its result."""
        async with self.transaction() as trx:
            result = fn(trx)
            if inspect.isawaitable(result):
                result = await result
            return result
