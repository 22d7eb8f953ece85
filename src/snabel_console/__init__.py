"""
snabel-console — control and monitoring client for migration sessions.

REST + WebSocket client for the uber-snabel import service.
"""

__version__ = "0.1.0"

from snabel_console.client import AsyncSnabelConsole  # noqa: E402
from snabel_console.config import ConsoleSettings, load_settings  # noqa: E402
from snabel_console.controller import SessionController  # noqa: E402
from snabel_console.errors import ActionError, SnabelError, TransportError, ValidationError  # noqa: E402
from snabel_console.models import LogEntry, Session, SessionStatus, StreamEvent  # noqa: E402
from snabel_console.poller import StatusPoller  # noqa: E402
from snabel_console.registry import SessionRegistry  # noqa: E402
from snabel_console.transport.logstream import LogStreamManager  # noqa: E402

__all__ = [
    "AsyncSnabelConsole",
    "ConsoleSettings",
    "load_settings",
    "SessionController",
    "SnabelError",
    "ActionError",
    "TransportError",
    "ValidationError",
    "LogEntry",
    "Session",
    "SessionStatus",
    "StreamEvent",
    "StatusPoller",
    "SessionRegistry",
    "LogStreamManager",
]
