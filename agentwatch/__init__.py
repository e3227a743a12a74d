"""agentwatch — live activity tracking for Codex agent sessions."""

__version__ = "0.1.0"
