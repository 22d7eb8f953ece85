from snabel_console.models.session import (
    ArchiveAnalysis,
    MfeInfo,
    Session,
    SessionStatus,
    StartResult,
    UploadResult,
    ValidationReport,
)
from snabel_console.models.status import ServiceStatus, StatusSnapshot
from snabel_console.models.log import LogEntry, LogLevel, StreamEvent, StreamEventKind

__all__ = [
    "ArchiveAnalysis",
    "MfeInfo",
    "Session",
    "SessionStatus",
    "StartResult",
    "UploadResult",
    "ValidationReport",
    "ServiceStatus",
    "StatusSnapshot",
    "LogEntry",
    "LogLevel",
    "StreamEvent",
    "StreamEventKind",
]
