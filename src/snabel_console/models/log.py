"""
Log entries and push-channel events.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


class LogLevel:
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class LogEntry(BaseModel):
    level: str = LogLevel.INFO
    message: str = ""
    received_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    seq: int = 0  # registry-wide receipt order

    def format(self) -> str:
        return f"[{self.received_at.astimezone().strftime('%H:%M:%S')}] [{self.level}] {self.message}"


class StreamEventKind:
    OPEN = "open"
    MESSAGE = "message"
    ERROR = "error"
    CLOSE = "close"


class StreamEvent(BaseModel):
    """One transition or payload observed on a session's log channel."""
    kind: str
    session_id: str
    entry: Optional[LogEntry] = None


# Synthesised timeline entries for channel transitions
CONNECTED_MESSAGE = "Connected to log stream"
ERROR_MESSAGE = "WebSocket connection error"
DISCONNECTED_MESSAGE = "Disconnected from log stream"
