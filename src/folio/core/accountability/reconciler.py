"""Background reconciliation of the accountability store."""

from __future__ import annotations

import asyncio
import logging

from folio.core.accountability.store import AccountabilityStore

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 30.0


class PeriodicReconciler:
    """
    Re-fetch goals from the backend every ``interval`` seconds.

    Remote always wins. This can race with an in-flight local mutation;
    a failed round is logged and the loop carries on.

    Example:
        >>> async with PeriodicReconciler(store, interval=30):
        ...     await serve_forever()
    """

    def __init__(
        self,
        store: AccountabilityStore,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        *,
        run_immediately: bool = True,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.store = store
        self.interval = interval
        self.run_immediately = run_immediately
        self.rounds = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def reconcile_once(self) -> bool:
        """Run one round. Returns False if it failed."""
        self.rounds += 1
        try:
            await self.store.sync_from_remote()
        except Exception as e:
            logger.warning("Periodic goal sync failed: %s", e)
            return False
        return True

    async def _run(self) -> None:
        if self.run_immediately:
            await self.reconcile_once()
        while True:
            await asyncio.sleep(self.interval)
            await self.reconcile_once()

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run(), name="folio-goal-reconciler")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def __aenter__(self) -> PeriodicReconciler:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()
