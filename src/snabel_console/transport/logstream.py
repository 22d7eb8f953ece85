"""
Log stream manager for the per-session push channel at /ws/logs/{sessionId}.

At most one channel is live at a time. A single reader task per channel turns
transport activity into StreamEvents, appends the matching LogEntry to that
session's timeline and fans the event out to any events() consumers.
Attaching always tears the previous channel down first. No reconnection:
a dropped channel stays dropped until the caller attaches again.
"""

import asyncio
import json
import logging
from typing import Any, AsyncGenerator, Awaitable, Callable, Optional
from urllib.parse import urlsplit, urlunsplit

from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosedError, WebSocketException

from snabel_console.models.log import (
    CONNECTED_MESSAGE,
    DISCONNECTED_MESSAGE,
    ERROR_MESSAGE,
    LogLevel,
    StreamEvent,
    StreamEventKind,
)
from snabel_console.registry import SessionRegistry

logger = logging.getLogger(__name__)

# Connection object must support `async for` over text frames and `await close()`.
Connector = Callable[[str], Awaitable[Any]]

DEFAULT_OPEN_TIMEOUT = 10.0


def log_stream_url(base_url: str, session_id: str) -> str:
    """ws:// for http, wss:// for https, mirroring the service's own transport."""
    parts = urlsplit(base_url)
    scheme = "wss" if parts.scheme == "https" else "ws"
    return urlunsplit((scheme, parts.netloc, f"{parts.path.rstrip('/')}/ws/logs/{session_id}", "", ""))


def parse_log_message(raw: Any) -> tuple[str, str]:
    """Return (level, message). Anything that is not a {level, message} object
    is kept verbatim as one INFO message."""
    if isinstance(raw, (bytes, bytearray)):
        raw = bytes(raw).decode("utf-8", errors="replace")
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        return LogLevel.INFO, str(raw)
    if not isinstance(data, dict) or data.get("message") is None:
        return LogLevel.INFO, str(raw)
    return str(data.get("level") or LogLevel.INFO).upper(), str(data["message"])


class LogStreamManager:
    def __init__(
        self,
        base_url: str,
        registry: SessionRegistry,
        connector: Optional[Connector] = None,
        open_timeout: float = DEFAULT_OPEN_TIMEOUT,
    ):
        self._base_url = base_url
        self._registry = registry
        self._open_timeout = open_timeout
        self._connect = connector or self._default_connect
        self._ws: Optional[Any] = None
        self._session_id: Optional[str] = None
        self._reader: Optional[asyncio.Task[None]] = None
        self._listeners: list[asyncio.Queue[StreamEvent]] = []
        # Held from teardown of the old channel until the new one is stored
        self._lock = asyncio.Lock()

    async def _default_connect(self, url: str) -> Any:
        return await connect(url, open_timeout=self._open_timeout)

    @property
    def session_id(self) -> Optional[str]:
        """Session the live channel is bound to, if any."""
        return self._session_id

    @property
    def connected(self) -> bool:
        return self._ws is not None and self._reader is not None and not self._reader.done()

    async def attach(self, session_id: str) -> bool:
        """Open the channel for ``session_id``, closing any other one first.

        Returns False when the channel could not be opened; the failure is
        recorded in the session's log rather than raised. Overlapping calls
        run one after another, so the last caller's channel is the only one
        left open.
        """
        async with self._lock:
            if self._session_id == session_id and self.connected:
                return True
            await self._teardown()
            return await self._open(session_id)

    async def _open(self, session_id: str) -> bool:
        url = log_stream_url(self._base_url, session_id)
        logger.debug("Opening log stream %s", url)
        try:
            ws = await self._connect(url)
        except (OSError, WebSocketException, asyncio.TimeoutError) as e:
            logger.warning("Log stream for %s failed to open: %s", session_id, e)
            self._emit(session_id, StreamEventKind.ERROR, LogLevel.ERROR, ERROR_MESSAGE)
            self._emit(session_id, StreamEventKind.CLOSE, LogLevel.INFO, DISCONNECTED_MESSAGE)
            return False

        self._ws = ws
        self._session_id = session_id
        logger.info("Log stream connected for session %s", session_id)
        self._emit(session_id, StreamEventKind.OPEN, LogLevel.INFO, CONNECTED_MESSAGE)
        self._reader = asyncio.create_task(self._read(session_id, ws), name=f"logstream-{session_id}")
        return True

    async def detach(self) -> None:
        """Close the live channel. Safe to call when nothing is attached."""
        async with self._lock:
            await self._teardown()

    async def _teardown(self) -> None:
        ws, reader, session_id = self._ws, self._reader, self._session_id
        self._ws = None
        self._reader = None
        self._session_id = None
        if reader is not None and not reader.done():
            reader.cancel()
            await asyncio.gather(reader, return_exceptions=True)
        if ws is not None:
            try:
                await ws.close()
            except (OSError, WebSocketException) as e:
                logger.debug("Error closing log stream for %s: %s", session_id, e)
            logger.info("Log stream closed for session %s", session_id)

    async def _read(self, session_id: str, ws: Any) -> None:
        try:
            async for raw in ws:
                level, message = parse_log_message(raw)
                self._emit(session_id, StreamEventKind.MESSAGE, level, message)
        except (ConnectionClosedError, WebSocketException, OSError) as e:
            logger.warning("Log stream for %s dropped: %s", session_id, e)
            self._emit(session_id, StreamEventKind.ERROR, LogLevel.ERROR, ERROR_MESSAGE)
        except Exception:
            logger.exception("Log stream reader for %s failed", session_id)
            self._emit(session_id, StreamEventKind.ERROR, LogLevel.ERROR, ERROR_MESSAGE)
        finally:
            self._emit(session_id, StreamEventKind.CLOSE, LogLevel.INFO, DISCONNECTED_MESSAGE)
            if self._ws is ws:
                # Closed by the service, not by detach()
                self._ws = None
                self._reader = None
                self._session_id = None

    def _emit(self, session_id: str, kind: str, level: str, message: str) -> None:
        entry = self._registry.append_log(session_id, level, message)
        event = StreamEvent(kind=kind, session_id=session_id, entry=entry)
        for queue in list(self._listeners):
            queue.put_nowait(event)

    async def events(self) -> AsyncGenerator[StreamEvent, None]:
        """Every event from every channel attached while iterating, in receipt order."""
        queue: asyncio.Queue[StreamEvent] = asyncio.Queue()
        self._listeners.append(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._listeners.remove(queue)
