"""
Session lifecycle controller.

The only writer of the registry's snapshots and focus, and the only caller of
attach/detach on the log stream. Invariant kept here: the stream is never
bound to a session other than the focused one, and it is detached before a
new session takes focus.

Destructive operations (stop, merge, reset) pass through a synchronous
confirmation callback before any request is issued.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Optional, Union

from snabel_console.errors import ActionError, SnabelError, ValidationError
from snabel_console.models.session import (
    MfeInfo,
    Session,
    SessionStatus,
    StartResult,
    UploadResult,
    ValidationReport,
)
from snabel_console.registry import SessionRegistry
from snabel_console.sessions import SessionsAPI
from snabel_console.status import GitAPI
from snabel_console.transport.logstream import LogStreamManager

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]

MERGE_PROMPT = "Are you sure you want to merge this branch to main? This cannot be undone."
RESET_PROMPT = "Are you sure you want to reset the frontend to HEAD? This will discard all uncommitted changes!"


class SessionController:
    def __init__(
        self,
        sessions: SessionsAPI,
        git: GitAPI,
        registry: SessionRegistry,
        stream: LogStreamManager,
        confirm: Optional[Confirm] = None,
    ):
        self._sessions = sessions
        self._git = git
        self._registry = registry
        self._stream = stream
        self._confirm = confirm

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    @property
    def stream(self) -> LogStreamManager:
        return self._stream

    # --- helpers ---

    def _confirmed(self, prompt: str) -> bool:
        if self._confirm is None:
            logger.warning("No confirmation handler configured, declining: %s", prompt)
            return False
        return bool(self._confirm(prompt))

    def _resolve(self, session_id: Optional[str]) -> str:
        sid = session_id or self._registry.focused_session_id
        if not sid:
            raise ValidationError("No active session. Create or view a session first.")
        return sid

    async def _focus(self, session_id: str) -> None:
        bound = self._stream.session_id
        self._registry.focus(session_id)
        if bound is not None and bound != session_id:
            await self._stream.detach()

    # --- lifecycle ---

    async def create(self, description: str, instructions: str = "", target_mfe: str = "") -> str:
        """Create a session and focus it. Returns the new session id."""
        if not description or not description.strip():
            raise ValidationError("Please enter a description")
        data = await self._sessions.create(description, instructions, target_mfe)
        session_id = data.get("sessionId") if isinstance(data, dict) else None
        if not session_id:
            raise ActionError("Import service did not return a session id")

        self._registry.apply(Session.model_validate({
            "session_id": session_id,
            "description": description,
            "instructions": instructions or None,
            "target_mfe": target_mfe or None,
            "status": data.get("status") or SessionStatus.CREATED.value,
            "created_at": data.get("createdAt"),
        }))
        await self._focus(session_id)
        logger.info("Created session %s", session_id)
        return session_id

    async def upload_archive(self, file: Union[str, Path, None], session_id: Optional[str] = None) -> UploadResult:
        if not file:
            raise ValidationError("Please select a zip file")
        path = Path(file)
        if not path.is_file():
            raise ValidationError(f"File not found: {path}")
        sid = self._resolve(session_id)
        result = await self._sessions.upload(sid, path)
        logger.info("Uploaded %s to session %s (%d files)", path.name, sid, result.analysis.total_files)
        return result

    async def start(self, session_id: Optional[str] = None, additional_instructions: Optional[str] = None) -> StartResult:
        """Start the agent, focus the session and attach its log stream."""
        sid = self._resolve(session_id)
        result = await self._sessions.start(sid, additional_instructions)
        logger.info("Started session %s on branch %s", sid, result.branch_name)
        await self._focus(sid)
        await self._stream.attach(sid)
        return result

    async def stop(self, session_id: Optional[str] = None) -> Optional[dict[str, Any]]:
        """Stop the agent. The log stream stays open until the service closes it.

        Returns None when the confirmation was declined.
        """
        sid = self._resolve(session_id)
        if not self._confirmed(f"Stop the agent for session {sid}?"):
            return None
        ack = await self._sessions.stop(sid)
        logger.info("Stopped session %s", sid)
        return ack

    async def send_command(self, command: str, session_id: Optional[str] = None) -> None:
        """Fire-and-forget input to the focused session's agent."""
        command = (command or "").strip()
        if not command:
            raise ValidationError("Please enter a command")
        focused = self._registry.focused_session_id
        if not focused:
            raise ValidationError("No active session")
        if session_id and session_id != focused:
            raise ValidationError(f"Session {session_id} is not the focused session")
        await self._sessions.command(focused, command)

    async def merge(self, session_id: Optional[str] = None, commit_message: Optional[str] = None) -> Optional[dict[str, Any]]:
        """Merge the session branch into main.

        Marks the session merged locally as soon as the service accepts, then
        refreshes the session list; the refreshed snapshot is authoritative.
        """
        sid = self._resolve(session_id)
        if not self._confirmed(MERGE_PROMPT):
            return None
        ack = await self._sessions.merge(sid, commit_message)
        self._registry.mark_merged(sid)
        logger.info("Merged session %s", sid)
        try:
            await self.refresh_sessions()
        except SnabelError as e:
            logger.warning("Session refresh after merge failed: %s", e)
        return ack

    async def view(self, session_id: str, attach_stream: bool = True) -> Session:
        """Fetch and focus a session, reattaching its stream if an agent is live."""
        if not session_id:
            raise ValidationError("Session id required")
        epoch = self._registry.claim_focus()
        session = await self._sessions.get(session_id)
        if not self._registry.is_current(epoch):
            logger.info("Discarding stale view of session %s", session_id)
            return session

        session = self._registry.apply(session)
        await self._focus(session_id)
        if attach_stream and session.status is not SessionStatus.CREATED and session.is_running:
            await self._stream.attach(session_id)
        return session

    # --- refresh ---

    def apply_sessions(self, sessions: list[Session]) -> int:
        """Sink for polled session lists."""
        return self._registry.apply_all(sessions)

    async def refresh_sessions(self) -> list[Session]:
        self.apply_sessions(await self._sessions.list())
        return self._registry.sessions()

    # --- auxiliary ---

    async def reset_frontend(self) -> Optional[str]:
        if not self._confirmed(RESET_PROMPT):
            return None
        data = await self._git.reset_frontend()
        return str(data.get("message", "")) if isinstance(data, dict) else ""

    async def validate(self, session_id: Optional[str] = None) -> ValidationReport:
        return await self._sessions.validate(self._resolve(session_id))

    async def diff(self, session_id: Optional[str] = None) -> str:
        return await self._sessions.diff(self._resolve(session_id))

    async def changes(self, session_id: Optional[str] = None) -> list[str]:
        return await self._sessions.changes(self._resolve(session_id))

    async def list_mfes(self) -> list[MfeInfo]:
        return await self._sessions.mfes()

    async def close(self) -> None:
        await self._stream.detach()
