"""
AsyncSnabelConsole wires the REST APIs, registry, log stream, controller
and status poller for one import service.
"""

from typing import Any, Optional

import httpx

from snabel_console.config import ConsoleSettings
from snabel_console.controller import Confirm, SessionController
from snabel_console.poller import DEFAULT_POLL_INTERVAL_S, StatusPoller
from snabel_console.registry import SessionRegistry
from snabel_console.sessions import SessionsAPI
from snabel_console.status import GitAPI, StatusAPI
from snabel_console.transport.http import DEFAULT_BASE_URL, HttpClient
from snabel_console.transport.logstream import Connector, LogStreamManager


class AsyncSnabelConsole:
    """Async control surface for migration sessions."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        confirm: Optional[Confirm] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL_S,
        request_timeout: float = 30.0,
        max_log_entries: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        connector: Optional[Connector] = None,
    ):
        self.http = HttpClient(base_url=base_url, timeout=request_timeout, transport=transport)
        self.sessions = SessionsAPI(self.http)
        self.status = StatusAPI(self.http)
        self.git = GitAPI(self.http)

        self.registry = SessionRegistry(max_log_entries=max_log_entries)
        self.stream = LogStreamManager(base_url, self.registry, connector=connector)
        self.controller = SessionController(self.sessions, self.git, self.registry, self.stream, confirm=confirm)
        self.poller = StatusPoller(
            self.status, self.sessions,
            on_sessions=self.controller.apply_sessions,
            interval=poll_interval,
        )

    @classmethod
    def from_settings(cls, settings: ConsoleSettings, **kwargs: Any) -> "AsyncSnabelConsole":
        return cls(
            base_url=settings.base_url,
            poll_interval=settings.poll_interval,
            request_timeout=settings.request_timeout,
            max_log_entries=settings.max_log_entries,
            **kwargs,
        )

    async def __aenter__(self) -> "AsyncSnabelConsole":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self.poller.stop()
        await self.controller.close()
        await self.http.close()

    # Lifecycle shortcuts

    async def create(self, description: str, instructions: str = "", target_mfe: str = "") -> str:
        return await self.controller.create(description, instructions, target_mfe)

    async def upload_archive(self, file: Any, session_id: Optional[str] = None) -> Any:
        return await self.controller.upload_archive(file, session_id)

    async def start(self, session_id: Optional[str] = None, additional_instructions: Optional[str] = None) -> Any:
        return await self.controller.start(session_id, additional_instructions)

    async def stop(self, session_id: Optional[str] = None) -> Any:
        return await self.controller.stop(session_id)

    async def send_command(self, command: str, session_id: Optional[str] = None) -> None:
        await self.controller.send_command(command, session_id)

    async def merge(self, session_id: Optional[str] = None, commit_message: Optional[str] = None) -> Any:
        return await self.controller.merge(session_id, commit_message)

    async def view(self, session_id: str, attach_stream: bool = True) -> Any:
        return await self.controller.view(session_id, attach_stream)
