"""Agent table — one row per tracked Codex session."""

from __future__ import annotations

from rich.text import Text
from textual.widgets import DataTable

from agentwatch.shared.models.observer import ObservedState

STATUS_STYLES = {
    "active": ("●", "green"),
    "waiting": ("○", "yellow"),
}


class AgentTable(DataTable):
    """Read-only table rendered from an ``ObservedState``."""

    COLUMNS = ("Agent", "Session", "Status", "Tools")

    def on_mount(self) -> None:
        self.cursor_type = "row"
        self.zebra_stripes = True
        for label in self.COLUMNS:
            self.add_column(label, key=label.lower())

    def render_state(self, state: ObservedState, session_names: dict[int, str]) -> None:
        """Rebuild every row from *state*."""
        self.clear()
        for agent_id, agent in sorted(state.agents.items()):
            icon, color = STATUS_STYLES.get(agent.status, ("?", "white"))
            tools = "\n".join(agent.tools.values()) or "—"
            self.add_row(
                Text(f"#{agent_id}", style="bold"),
                Text(session_names.get(agent_id, "")),
                Text(f"{icon} {agent.status}", style=color),
                Text(tools),
                key=str(agent_id),
                height=max(1, len(agent.tools)),
            )
