"""Dashboard screen — live table of the project's Codex agents."""

from __future__ import annotations

import logging

from textual import work
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.screen import Screen
from textual.widgets import Footer, Header

from agentwatch.adapters.broadcaster import Subscription
from agentwatch.adapters.events import TrackerEvent
from agentwatch.engine.tracker import SessionTracker
from agentwatch.shared.models.observer import ObservedState
from agentwatch.tui.widgets.activity_log import ActivityLog
from agentwatch.tui.widgets.agent_table import AgentTable
from agentwatch.tui.widgets.status_bar import StatusBar

logger = logging.getLogger(__name__)


class DashboardScreen(Screen):
    """Agent table over an activity log, fed by a tracker subscription."""

    def __init__(self, tracker: SessionTracker, **kwargs) -> None:
        super().__init__(**kwargs)
        self.tracker = tracker
        self.state = ObservedState()
        self._subscription: Subscription | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="workspace"):
            yield AgentTable(id="agent-table")
            yield ActivityLog(id="activity-log")
        yield StatusBar(id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        sb = self.query_one("#status-bar", StatusBar)
        sb.project = str(self.tracker.config.project_root)
        self.tracker.start()
        self._subscription = self.tracker.subscribe(name="tui")
        self.consume_events(self._subscription)

    async def on_unmount(self) -> None:
        if self._subscription is not None:
            self._subscription.close()
        await self.tracker.stop()

    @work(exclusive=True, name="event-consumer")
    async def consume_events(self, subscription: Subscription) -> None:
        """Background worker: apply every tracker event to the view."""
        async for event in subscription.consume():
            self.handle_event(event)

    def handle_event(self, event: TrackerEvent) -> None:
        self.state.apply(event)
        self.query_one("#activity-log", ActivityLog).log_event(event)
        self.refresh_view()

    def refresh_view(self) -> None:
        names = {s.agent_id: s.path.name for s in self.tracker.sessions()}
        self.query_one("#agent-table", AgentTable).render_state(self.state, names)
        sb = self.query_one("#status-bar", StatusBar)
        sb.agent_count = len(self.state.agents)
        sb.active_count = self.state.active_count
        sb.last_tick_at = self.tracker.poller.last_tick_at

    def rescan(self) -> None:
        created = self.tracker.rescan()
        log = self.query_one("#activity-log", ActivityLog)
        if created:
            log.write(f"[green]Rescan found[/green] {len(created)} new session(s)")
        else:
            log.write("[dim]Rescan found no new sessions[/dim]")
