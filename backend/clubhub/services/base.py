"""
Base service class.

A service method builds one ``work(uow, effects)`` coroutine and hands it to
``_run``. The store runs it inside a transaction (re-running it on optimistic
conflicts); audit events and notifications collected in ``effects`` are
published only once the transaction has committed.
"""
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from clubhub.services.audit import AuditNotifier, SideEffects
from clubhub.services.store import SqlAlchemyStore, UnitOfWork

T = TypeVar("T")


class BaseService:
    """Common wiring for the organization services."""

    def __init__(
        self,
        store: Optional[SqlAlchemyStore] = None,
        notifier: Optional[AuditNotifier] = None,
    ):
        self.store = store or SqlAlchemyStore()
        self.notifier = notifier or AuditNotifier()
        self.logger = logging.getLogger(f"clubhub.services.{self.__class__.__name__}")

    async def _run(self, work: Callable[[UnitOfWork, SideEffects], Awaitable[T]]) -> T:
        async def attempt(uow: UnitOfWork):
            # Fresh collector per attempt so a retried run never publishes twice
            effects = SideEffects()
            result = await work(uow, effects)
            return result, effects

        result, effects = await self.store.with_transaction(attempt)
        await self.notifier.publish(effects)
        return result

    async def _read(self, work: Callable[[UnitOfWork], Awaitable[T]]) -> T:
        return await self.store.with_transaction(work)
