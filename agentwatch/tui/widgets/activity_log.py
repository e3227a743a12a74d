"""Activity log — scrolling RichLog of tool and status events."""

from __future__ import annotations

from rich.markup import escape
from textual.widgets import RichLog

from agentwatch.adapters.events import (
    ResyncSnapshot,
    SessionCreated,
    StatusChanged,
    ToolFinished,
    ToolsCleared,
    ToolStarted,
    TrackerEvent,
)


def _agent(agent_id: int) -> str:
    return f"[bold cyan]#{agent_id}[/bold cyan]"


def describe_event(event: TrackerEvent) -> str | None:
    """One markup line for *event*, or ``None`` for unknown event types."""
    if isinstance(event, ResyncSnapshot):
        return f"[dim]Tracking {len(event.agent_ids)} session(s)[/dim]"
    if isinstance(event, SessionCreated):
        return f"[green]New session[/green] {_agent(event.agent_id)}"
    if isinstance(event, StatusChanged):
        color = "green" if event.status == "active" else "yellow"
        return f"{_agent(event.agent_id)} [{color}]{escape(event.status)}[/{color}]"
    if isinstance(event, ToolStarted):
        return f"{_agent(event.agent_id)} {escape(event.status_text)}"
    if isinstance(event, ToolFinished):
        return f"[dim]#{event.agent_id} done {escape(event.tool_id)}[/dim]"
    if isinstance(event, ToolsCleared):
        return f"[dim]#{event.agent_id} turn ended, tools cleared[/dim]"
    return None


class ActivityLog(RichLog):
    """Chronological log of what the tracked agents are doing."""

    def __init__(self, **kwargs) -> None:
        super().__init__(
            auto_scroll=True,
            wrap=True,
            markup=True,
            highlight=False,
            max_lines=2000,
            **kwargs,
        )

    def log_event(self, event: TrackerEvent) -> None:
        line = describe_event(event)
        if line is not None:
            self.write(line)

    def toggle(self) -> None:
        self.toggle_class("hidden")
