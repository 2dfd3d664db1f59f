"""
Background sweep that evicts idle chat sessions.

Runs as an asyncio task owned by the application lifespan. The sweep itself
is synchronous (it takes the store lock), so it is pushed to a worker thread
to keep the event loop free for requests.
"""

import asyncio
import logging
import time
from collections.abc import Callable

from .policy import SessionPolicy
from .sessions import SessionStore

logger = logging.getLogger(__name__)


class SessionReaper:
    def __init__(
        self,
        store: SessionStore,
        policy: SessionPolicy,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.policy = policy
        self._clock = clock
        self._task: asyncio.Task | None = None
        self.last_sweep_at: float | None = None
        self.last_evicted = 0
        self.total_evicted = 0
        self.last_error: str | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run_loop(), name="session-reaper")
        logger.info(
            "Session reaper started (every %.0fs, idle timeout %.0fs)",
            self.policy.sweep_interval, self.policy.max_idle,
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Session reaper stopped.")

    async def sweep_once(self) -> int:
        now = self._clock()
        evicted = await asyncio.to_thread(self.store.sweep_stale, self.policy.max_idle, now)
        self.last_sweep_at = now
        self.last_evicted = evicted
        self.total_evicted += evicted
        return evicted

    async def _run_loop(self) -> None:
        while True:
            await asyncio.sleep(self.policy.sweep_interval)
            try:
                await self.sweep_once()
                self.last_error = None
            except Exception as e:
                # A failed sweep must not end the schedule.
                logger.exception("Session sweep failed")
                self.last_error = str(e)

    def status(self) -> dict:
        return {
            "running": self.running,
            "sweep_interval_seconds": self.policy.sweep_interval,
            "idle_timeout_seconds": self.policy.max_idle,
            "last_sweep_at": self.last_sweep_at,
            "last_evicted": self.last_evicted,
            "total_evicted": self.total_evicted,
            "last_error": self.last_error,
        }
