"""Incremental reader for append-only transcript files.

Reads only the bytes appended since the last poll. Lines are split on raw
bytes and the unterminated tail is carried in ``SessionState.partial`` so
a line (or a multi-byte character) split across two polls is decoded
whole. A file that shrank is treated as rewritten and replayed from the
start.
"""
from __future__ import annotations

import logging

from agentwatch.engine.processor import RecordProcessor
from agentwatch.shared.models.session import SessionState, SessionStatus

logger = logging.getLogger(__name__)


class SessionTailer:
    """Feed newly appended transcript lines into a ``RecordProcessor``."""

    def __init__(self, processor: RecordProcessor) -> None:
        self._processor = processor

    def poll(self, session: SessionState) -> int:
        """Read and process the delta since the last poll.

        Returns the number of complete lines handed to the processor.
        Missing or unreadable files are a no-op until the next poll.
        """
        try:
            size = session.path.stat().st_size
        except FileNotFoundError:
            return 0
        except OSError as exc:
            logger.debug("stat failed for %s: %s", session.path, exc)
            return 0

        if size < session.offset:
            logger.info(
                "Transcript shrank (agent=%d size=%d offset=%d), replaying %s",
                session.agent_id, size, session.offset, session.path,
            )
            self._processor.clear_tools(session, emit=True)
            self._processor.set_status(session, SessionStatus.WAITING, emit=True)
            session.reset()
        if size == session.offset:
            return 0

        try:
            with session.path.open("rb") as f:
                f.seek(session.offset)
                chunk = f.read(size - session.offset)
        except OSError as exc:
            logger.debug("read failed for %s: %s", session.path, exc)
            return 0

        session.offset += len(chunk)
        return self._feed(session, chunk, emit=True)

    def hydrate(self, session: SessionState) -> int:
        """Replay the whole file silently to rebuild in-progress state."""
        try:
            data = session.path.read_bytes()
        except OSError as exc:
            logger.debug("hydrate skipped for %s: %s", session.path, exc)
            return 0
        session.reset()
        session.offset = len(data)
        return self._feed(session, data, emit=False)

    def _feed(self, session: SessionState, data: bytes, emit: bool) -> int:
        *lines, session.partial = (session.partial + data).split(b"\n")
        for raw in lines:
            line = raw.rstrip(b"\r").decode("utf-8", errors="replace")
            try:
                self._processor.process_line(session, line, emit)
            except Exception:
                logger.exception(
                    "Failed to apply transcript line for agent %d (%s)",
                    session.agent_id, session.path,
                )
        return len(lines)
