"""
Session models: the import service's session snapshots.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator


class SessionStatus(str, Enum):
    CREATED = "CREATED"
    UNPACKING = "UNPACKING"
    ANALYZING = "ANALYZING"
    TRANSFORMING = "TRANSFORMING"
    RUNNING = "RUNNING"
    PAUSED = "PAUSED"
    VALIDATING = "VALIDATING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    MERGED = "MERGED"
    UNKNOWN = "UNKNOWN"  # display fallback for values this client does not know

    @classmethod
    def parse(cls, value: Any) -> "SessionStatus":
        """Map a backend status string onto the enum, never raising."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.MERGED, SessionStatus.FAILED)

    def can_transition_to(self, other: "SessionStatus") -> bool:
        """Whether the backend moving from ``self`` to ``other`` is an expected step."""
        if self is other:
            return True
        if other is SessionStatus.FAILED:
            return not self.is_terminal
        return other in _TRANSITIONS.get(self, frozenset())


_ACTIVE = frozenset({SessionStatus.TRANSFORMING, SessionStatus.RUNNING})

_TRANSITIONS: dict[SessionStatus, frozenset[SessionStatus]] = {
    # Starting without an upload goes straight to the agent.
    SessionStatus.CREATED: frozenset({SessionStatus.UNPACKING}) | _ACTIVE,
    SessionStatus.UNPACKING: frozenset({SessionStatus.ANALYZING}),
    SessionStatus.ANALYZING: _ACTIVE,
    SessionStatus.TRANSFORMING: frozenset({SessionStatus.PAUSED, SessionStatus.VALIDATING, SessionStatus.COMPLETED}),
    SessionStatus.RUNNING: frozenset({SessionStatus.PAUSED, SessionStatus.VALIDATING, SessionStatus.COMPLETED}),
    SessionStatus.PAUSED: _ACTIVE | frozenset({SessionStatus.VALIDATING}),
    SessionStatus.VALIDATING: frozenset({SessionStatus.COMPLETED}),
    SessionStatus.COMPLETED: frozenset({SessionStatus.MERGED}),
}


class Session(BaseModel):
    """Most recently fetched snapshot of one import session."""

    session_id: str = Field(alias="sessionId")
    description: str = ""
    instructions: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("instructions", "originalInstructions"),
    )
    target_mfe: Optional[str] = Field(default=None, alias="targetMfe")
    status: SessionStatus = SessionStatus.CREATED
    raw_status: Optional[str] = None
    created_at: str = Field(default="", alias="createdAt")
    merged: bool = False
    is_running: bool = Field(default=False, alias="isRunning")

    # Only present on the single-session endpoint
    branch_name: Optional[str] = Field(default=None, alias="branchName")
    completed_at: Optional[str] = Field(default=None, alias="completedAt")
    error_message: Optional[str] = Field(default=None, alias="errorMessage")
    files_created: Optional[int] = Field(default=None, alias="filesCreated")
    files_modified: Optional[int] = Field(default=None, alias="filesModified")
    files_deleted: Optional[int] = Field(default=None, alias="filesDeleted")

    model_config = {"populate_by_name": True}

    @model_validator(mode="before")
    @classmethod
    def _coerce_status(cls, data: Any) -> Any:
        if isinstance(data, dict) and "status" in data:
            data = dict(data)
            raw = data["status"]
            if isinstance(raw, SessionStatus):
                raw = raw.value
            data["raw_status"] = None if raw is None else str(raw)
            data["status"] = SessionStatus.parse(raw)
        return data

    @field_validator("merged", "is_running", mode="before")
    @classmethod
    def _null_is_false(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("created_at", mode="before")
    @classmethod
    def _timestamp_to_str(cls, value: Any) -> Any:
        return "" if value is None else str(value)

    @property
    def status_label(self) -> str:
        return self.status.value

    @property
    def status_display(self) -> str:
        """Status for display; unrecognised values keep the service's text."""
        if self.status is SessionStatus.UNKNOWN and self.raw_status:
            return f"{self.status.value} ({self.raw_status})"
        return self.status.value


class MfeInfo(BaseModel):
    """A micro-frontend the agent can be pointed at."""
    name: str
    description: str = ""
    path: Optional[str] = None


class ArchiveAnalysis(BaseModel):
    total_files: int = Field(default=0, alias="totalFiles")
    typescript_files: int = Field(default=0, alias="typescriptFiles")
    javascript_files: int = Field(default=0, alias="javascriptFiles")
    total_size_mb: float = Field(default=0.0, alias="totalSizeMB")

    model_config = {"populate_by_name": True}


class UploadResult(BaseModel):
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    status: Optional[str] = None
    unpacked_path: Optional[str] = Field(default=None, alias="unpackedPath")
    analysis: ArchiveAnalysis = ArchiveAnalysis()

    model_config = {"populate_by_name": True}


class StartResult(BaseModel):
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    status: Optional[str] = None
    branch_name: str = Field(alias="branchName")

    model_config = {"populate_by_name": True}


class ValidationReport(BaseModel):
    """POST /session/{id}/validate result."""
    passed: bool = False
    typescript: Optional[bool] = None
    api_compatibility: Optional[bool] = Field(default=None, alias="apiCompatibility")
    tests: Optional[bool] = None
    build: Optional[bool] = None
    error: Optional[str] = None

    model_config = {"populate_by_name": True}
