"""The single repeating task that drives discovery and tailing.

Each tick is plain synchronous code: one discovery pass, then one tail
pass over every registered session. The next tick is only armed after
the current one returns, so ticks never overlap and session state is
never mutated concurrently. Stopping cancels the sleep between ticks; a
tick that is already running always finishes.
"""
from __future__ import annotations

import asyncio
import logging
import time

from agentwatch.engine.discovery import SessionDiscovery
from agentwatch.engine.registry import SessionRegistry
from agentwatch.engine.tailer import SessionTailer
from agentwatch.shared.models.session import SessionState

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.5


class Poller:
    """Periodic discovery + tail loop over the registry."""

    def __init__(
        self,
        discovery: SessionDiscovery,
        registry: SessionRegistry,
        tailer: SessionTailer,
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self._discovery = discovery
        self._registry = registry
        self._tailer = tailer
        self.interval = interval
        self.tick_count = 0
        self.last_tick_at: float | None = None
        self._task: asyncio.Task | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def sync(self, live: bool) -> list[SessionState]:
        """Register any newly matching transcripts; return the new states."""
        created: list[SessionState] = []
        for path in self._discovery.find_project_sessions():
            if path in self._registry:
                continue
            try:
                created.append(self._registry.register(path, live=live))
            except Exception:
                logger.exception("Failed to register session %s", path)
        return created

    def tick(self) -> None:
        """Run one discovery pass and one tail pass. Never raises."""
        try:
            self.sync(live=True)
        except Exception:
            logger.exception("Session discovery failed; continuing with known sessions")

        for session in self._registry.sessions():
            try:
                self._tailer.poll(session)
            except Exception:
                logger.exception(
                    "Polling agent %d failed (%s)", session.agent_id, session.path,
                )
        self.tick_count += 1
        self.last_tick_at = time.time()

    async def run(self) -> None:
        """Tick, sleep, repeat until stop()."""
        self._running = True
        logger.info("Poller started (interval=%.2fs)", self.interval)
        try:
            while self._running:
                self.tick()
                await asyncio.sleep(self.interval)
        except asyncio.CancelledError:
            pass
        finally:
            self._running = False
            logger.info("Poller stopped after %d tick(s)", self.tick_count)

    def start(self) -> asyncio.Task:
        """Schedule run() on the current loop; idempotent while running."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        self._running = False
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
