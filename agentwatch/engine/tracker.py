"""SessionTracker: wires discovery, registry, tailing and fan-out.

This is the object every front end (server, TUI, ``--list``) talks to.
All mutation happens on the event loop that runs the poller; front ends
only call ``subscribe``, ``snapshot`` and ``rescan`` from that same loop.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from agentwatch.adapters.broadcaster import Broadcaster, Subscription
from agentwatch.adapters.events import ResyncSnapshot
from agentwatch.engine.config import WatchConfig
from agentwatch.engine.discovery import SessionDiscovery
from agentwatch.engine.poller import Poller
from agentwatch.engine.processor import RecordProcessor
from agentwatch.engine.registry import SessionRegistry
from agentwatch.engine.tailer import SessionTailer
from agentwatch.shared.models.session import SessionState

logger = logging.getLogger(__name__)


class SessionTracker:
    """Tracks the live state of every Codex session in the project."""

    def __init__(
        self,
        config: WatchConfig | None = None,
        *,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.config = config or WatchConfig.from_env()
        self.broadcaster = Broadcaster(
            self.snapshot, queue_size=self.config.subscriber_queue_size,
        )
        self.processor = RecordProcessor(self.broadcaster.publish)
        self.tailer = SessionTailer(self.processor)
        self.registry = SessionRegistry(self.tailer, self.broadcaster.publish)
        self.discovery = SessionDiscovery(
            self.config.sessions_root,
            self.config.project_root,
            max_sessions=self.config.max_sessions,
            days_back=self.config.days_back,
            suffixes=self.config.transcript_suffixes,
            today=today,
        )
        self.poller = Poller(
            self.discovery,
            self.registry,
            self.tailer,
            interval=self.config.poll_interval_seconds,
        )
        self._bootstrapped = False

    def bootstrap(self) -> list[SessionState]:
        """Register the sessions that already exist, without live events.

        Observers learn about them from the snapshot they get on attach.
        """
        sessions = self.poller.sync(live=False)
        self._bootstrapped = True
        logger.info(
            "Bootstrapped %d session(s) for %s from %s",
            len(sessions), self.discovery.project_root, self.discovery.sessions_root,
        )
        return sessions

    def rescan(self) -> list[SessionState]:
        """Pick up new transcripts now instead of waiting for the next tick."""
        created = self.poller.sync(live=True)
        if created:
            logger.info("Rescan registered agent(s): %s", [s.agent_id for s in created])
        return created

    def tick(self) -> None:
        self.poller.tick()

    def sessions(self) -> list[SessionState]:
        return self.registry.sessions()

    def snapshot(self) -> ResyncSnapshot:
        """Current state of every tracked agent, in agent id order."""
        per_agent = {}
        for session in self.registry.sessions():
            state = session.to_dict()
            per_agent[session.agent_id] = {
                "status": state["status"],
                "active_tools": state["active_tools"],
            }
        return ResyncSnapshot(agent_ids=list(per_agent), per_agent=per_agent)

    def subscribe(self, name: str = "") -> Subscription:
        return self.broadcaster.subscribe(name)

    def start(self) -> None:
        """Bootstrap (once) and start polling on the running loop."""
        if not self._bootstrapped:
            self.bootstrap()
        self.poller.start()

    async def stop(self) -> None:
        await self.poller.stop()
