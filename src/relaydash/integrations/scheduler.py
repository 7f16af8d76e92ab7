"""Periodic background refresh for an IntegrationsStore."""

from __future__ import annotations

import asyncio
from contextlib import suppress
from typing import TYPE_CHECKING, Optional

from ..util.log import Log

if TYPE_CHECKING:
    from .store import IntegrationsStore

log = Log.create({"service": "integrations.scheduler"})

DEFAULT_INTERVAL = 300.0


class AutoRefresh:
    """Ticks every ``interval`` seconds and runs a non-forced fetch.

    A tick is skipped while the store is loading. Because the fetch is not
    forced, ticks inside the cache TTL cost nothing.
    """

    def __init__(self, store: "IntegrationsStore", interval: float = DEFAULT_INTERVAL) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._store = store
        self._interval = interval
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        """Start ticking. Returns False outside a client context or event loop."""
        if not self._store.environment.is_client:
            log.debug("auto refresh unavailable outside client context")
            return False
        if self.running:
            return True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            log.warning("auto refresh needs a running event loop")
            return False
        self._task = loop.create_task(self._run())
        log.info("auto refresh started", {"interval": self._interval})
        return True

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            if self._store.is_loading:
                log.debug("auto refresh tick skipped, fetch in progress")
                continue
            try:
                await self._store.fetch_overview()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                log.error("auto refresh tick failed", {"error": exc})

    def cancel(self) -> Optional["asyncio.Task[None]"]:
        """Cancel the ticking task without waiting for it; returns the task."""
        task = self._task
        self._task = None
        if task is not None:
            task.cancel()
        return task

    async def stop(self) -> None:
        task = self.cancel()
        if task is None:
            return
        with suppress(asyncio.CancelledError):
            await task
        log.info("auto refresh stopped")
