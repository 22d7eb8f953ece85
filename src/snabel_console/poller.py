"""
Background status poller.

Every tick fetches frontend health, backend health and the session list
concurrently. A failed fetch is logged and recorded on the snapshot; it never
affects the other fetches of the tick or any later tick.
"""

import asyncio
import inspect
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from snabel_console.models.session import Session
from snabel_console.models.status import StatusSnapshot
from snabel_console.sessions import SessionsAPI
from snabel_console.status import StatusAPI

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_S = 10.0

SessionSink = Callable[[list[Session]], Any]


class StatusPoller:
    def __init__(
        self,
        status: StatusAPI,
        sessions: SessionsAPI,
        on_sessions: Optional[SessionSink] = None,
        interval: float = DEFAULT_POLL_INTERVAL_S,
    ):
        self._status = status
        self._sessions = sessions
        self._on_sessions = on_sessions
        self._interval = interval
        self._task: Optional[asyncio.Task[None]] = None
        self.snapshot = StatusSnapshot()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> StatusSnapshot:
        """One poll. Never raises for a failed fetch."""
        results = await asyncio.gather(
            self._status.frontend(),
            self._status.backend(),
            self._sessions.list(),
            return_exceptions=True,
        )
        frontend, backend, sessions = results
        snap = self.snapshot

        if self._ok("frontend", frontend):
            snap.frontend_running = frontend.running
        if self._ok("backend", backend):
            snap.backend_running = backend.running
        if self._ok("sessions", sessions):
            snap.session_count = len(sessions)
            if self._on_sessions is not None:
                await self._deliver(sessions)

        snap.ticks += 1
        snap.last_tick_at = datetime.now(timezone.utc).isoformat()
        return snap

    def _ok(self, source: str, result: Any) -> bool:
        if isinstance(result, BaseException):
            if isinstance(result, asyncio.CancelledError):
                raise result
            logger.warning("Status poll of %s failed: %s", source, result)
            self.snapshot.errors[source] = str(result) or type(result).__name__
            return False
        self.snapshot.errors.pop(source, None)
        return True

    async def _deliver(self, sessions: list[Session]) -> None:
        try:
            outcome = self._on_sessions(sessions)  # type: ignore[misc]
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.warning("Applying polled sessions failed: %s", e, exc_info=True)
            self.snapshot.errors["sessions"] = str(e)

    async def _loop(self) -> None:
        while True:
            try:
                await self.tick()
            except Exception:
                logger.exception("Status poll tick failed")
            await asyncio.sleep(self._interval)

    def start(self) -> None:
        """Start ticking on the running event loop; the first tick is immediate."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._loop(), name="status-poller")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
