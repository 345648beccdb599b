"""Transaction handle over one reserved connection.

A :class:`Transaction` is a single-use state machine::

    ACTIVE ──commit()──▶ COMMITTED
       └────rollback()──▶ ROLLED_BACK

Every call after a terminal state raises
:class:`~fluentsql.errors.TransactionStateError`.  Statements issued
through the handle run one at a time on its connection.
"""
from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any

import structlog

from fluentsql.compile.context import CompilationContext
from fluentsql.driver.base import Connection
from fluentsql.errors import TransactionStateError
from fluentsql.executor import StatementExecutor

logger = structlog.get_logger(__name__)


class TransactionState(str, Enum):
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class Transaction(StatementExecutor):
    """Statements bound to one connection inside ``BEGIN … COMMIT``.

    Obtain one from :meth:`Database.begin`, or use
    :meth:`Database.transaction` / :meth:`Database.with_transaction` to have
    commit and rollback handled for you.

    Args:
        ctx: Compilation context of the owning database.
        connection: Reserved driver connection; released on commit or
            rollback.
        log_parameters: Include parameter values in debug logs.
    """

    def __init__(
        self,
        ctx: CompilationContext,
        connection: Connection,
        log_parameters: bool = False,
    ) -> None:
        self._ctx = ctx
        self._conn = connection
        self._log_parameters = log_parameters
        self._state = TransactionState.ACTIVE
        self._lock = asyncio.Lock()

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is TransactionState.ACTIVE

    async def start(self) -> None:
        """Send the dialect's BEGIN statement."""
        self._ensure_active("start")
        await self._control(self._ctx.dialect.begin_sql)
        logger.debug("transaction.started", dialect=self._ctx.dialect.dialect_name)

    async def commit(self) -> None:
        """Commit and release the connection.

        If COMMIT fails the transaction is rolled back, the connection is
        released, and the commit error is raised.
        """
        self._ensure_active("commit")
        try:
            await self._control(self._ctx.dialect.commit_sql)
        except BaseException:
            await self._abort()
            raise
        await self._finish(TransactionState.COMMITTED)

    async def rollback(self) -> None:
        """Roll back and release the connection."""
        self._ensure_active("rollback")
        try:
            await self._control(self._ctx.dialect.rollback_sql)
        finally:
            await self._finish(TransactionState.ROLLED_BACK)

    async def _send(self, sql: str, params: list[Any]) -> list[dict[str, Any]]:
        self._ensure_active("execute")
        async with self._lock:
            return await self._conn.execute(sql, params)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_active(self, operation: str) -> None:
        if self._state is not TransactionState.ACTIVE:
            raise TransactionStateError(
                f"Cannot {operation}: transaction is already {self._state.value}.",
                state=self._state.value,
            )

    async def _control(self, sql: str) -> None:
        await self.run(self._compiled(sql, []))

    async def _abort(self) -> None:
        try:
            await self._control(self._ctx.dialect.rollback_sql)
        except Exception as exc:
            logger.error("transaction.rollback_failed", error=str(exc))
        finally:
            await self._finish(TransactionState.ROLLED_BACK)

    async def _finish(self, state: TransactionState) -> None:
        self._state = state
        await self._conn.release()
        logger.debug("transaction.finished", state=state.value)
