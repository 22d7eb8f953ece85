"""
Client-side session registry.

Holds the latest snapshot per session id, the focused session and each
session's log timeline. The import service is the source of truth: every
snapshot applied here replaces the previous one for that id, and sessions are
never dropped locally.
"""

import logging
from collections import deque
from typing import Iterable, Optional

from snabel_console.models.log import LogEntry, LogLevel
from snabel_console.models.session import Session, SessionStatus

logger = logging.getLogger(__name__)


class SessionRegistry:
    def __init__(self, max_log_entries: Optional[int] = None):
        self._sessions: dict[str, Session] = {}
        self._logs: dict[str, deque[LogEntry]] = {}
        self._focused: Optional[str] = None
        self._focus_epoch = 0
        self._seq = 0
        self._max_log_entries = max_log_entries
        self._optimistic_merges: set[str] = set()

    # --- snapshots ---

    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def sessions(self) -> list[Session]:
        """Snapshots, newest first."""
        return sorted(self._sessions.values(), key=lambda s: s.created_at, reverse=True)

    def apply(self, session: Session) -> Session:
        """Replace the snapshot for ``session.session_id`` with a fetched one.

        List snapshots omit detail fields (branch, isRunning); those carry
        over from the previous snapshot when the new one leaves them unset.
        """
        sid = session.session_id
        previous = self._sessions.get(sid)
        if previous is not None:
            if previous.status is not session.status and not previous.status.can_transition_to(session.status):
                logger.debug("Session %s moved %s -> %s", sid, previous.status_label, session.status_label)
            fill = {
                name: getattr(previous, name)
                for name in ("branch_name", "instructions", "target_mfe", "error_message")
                if getattr(session, name) is None and getattr(previous, name) is not None
            }
            if "is_running" not in session.model_fields_set:
                fill["is_running"] = previous.is_running
            if fill:
                session = session.model_copy(update=fill)
        if sid in self._optimistic_merges:
            self._optimistic_merges.discard(sid)
            if not session.merged:
                logger.warning("Merge of session %s not reflected by the service; keeping service state", sid)
        if session.status is SessionStatus.UNKNOWN:
            logger.debug("Session %s has unrecognised status %r", sid, session.raw_status)
        self._sessions[sid] = session
        return session

    def apply_all(self, sessions: Iterable[Session]) -> int:
        count = 0
        for session in sessions:
            self.apply(session)
            count += 1
        return count

    def mark_merged(self, session_id: str) -> None:
        """Optimistic merged=True, pending the next fetch for this id."""
        session = self._sessions.get(session_id)
        if session is None:
            return
        self._sessions[session_id] = session.model_copy(update={"merged": True})
        self._optimistic_merges.add(session_id)

    def is_optimistic(self, session_id: str) -> bool:
        return session_id in self._optimistic_merges

    # --- focus ---

    @property
    def focused_session_id(self) -> Optional[str]:
        return self._focused

    @property
    def focused(self) -> Optional[Session]:
        return self._sessions.get(self._focused) if self._focused else None

    def claim_focus(self) -> int:
        """Start a focus change; responses for older claims are stale."""
        self._focus_epoch += 1
        return self._focus_epoch

    def is_current(self, epoch: int) -> bool:
        return epoch == self._focus_epoch

    def focus(self, session_id: Optional[str]) -> None:
        self._focus_epoch += 1
        self._focused = session_id

    # --- logs ---

    def append_log(self, session_id: str, level: str, message: str) -> LogEntry:
        self._seq += 1
        entry = LogEntry(level=(level or LogLevel.INFO).upper(), message=message, seq=self._seq)
        buf = self._logs.get(session_id)
        if buf is None:
            buf = self._logs[session_id] = deque(maxlen=self._max_log_entries)
        buf.append(entry)
        return entry

    def logs(self, session_id: str) -> list[LogEntry]:
        return list(self._logs.get(session_id, ()))
