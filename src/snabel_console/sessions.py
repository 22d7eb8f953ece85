"""
Import sessions REST API — /api/import.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

from snabel_console.models.session import MfeInfo, Session, StartResult, UploadResult, ValidationReport
from snabel_console.transport.http import HttpClient


class SessionsAPI:
    def __init__(self, http: HttpClient):
        self._http = http

    async def list(self) -> list[Session]:
        """All sessions, newest first."""
        data = await self._http.get("/import/sessions")
        return [Session.model_validate(s) for s in data or []]

    async def get(self, session_id: str) -> Session:
        return Session.model_validate(await self._http.get(f"/import/session/{session_id}"))

    async def create(self, description: str, instructions: str = "", target_mfe: str = "") -> dict[str, Any]:
        """Create session. Returns the raw body; ``sessionId`` is always present."""
        return await self._http.post("/import/session", {
            "description": description,
            "instructions": instructions,
            "targetMfe": target_mfe,
        })

    async def upload(self, session_id: str, file_path: Union[str, Path]) -> UploadResult:
        """Upload a zip archive. Multipart form upload."""
        data = await self._http.upload(f"/import/session/{session_id}/upload", file_path)
        return UploadResult.model_validate(data)

    async def start(self, session_id: str, additional_instructions: Optional[str] = None) -> StartResult:
        body: dict[str, Any] = {}
        if additional_instructions:
            body["additionalInstructions"] = additional_instructions
        return StartResult.model_validate(await self._http.post(f"/import/session/{session_id}/start", body))

    async def stop(self, session_id: str) -> dict[str, Any]:
        return await self._http.post(f"/import/session/{session_id}/stop")

    async def command(self, session_id: str, command: str) -> dict[str, Any]:
        return await self._http.post(f"/import/session/{session_id}/command", {"command": command})

    async def merge(self, session_id: str, commit_message: Optional[str] = None) -> dict[str, Any]:
        body = {"commitMessage": commit_message} if commit_message else {}
        return await self._http.post(f"/import/session/{session_id}/merge", body)

    async def validate(self, session_id: str) -> ValidationReport:
        return ValidationReport.model_validate(await self._http.post(f"/import/session/{session_id}/validate"))

    async def diff(self, session_id: str) -> str:
        return await self._http.get_text(f"/import/session/{session_id}/diff")

    async def changes(self, session_id: str) -> list[str]:
        data = await self._http.get(f"/import/session/{session_id}/changes")
        return list(data.get("changes", []))

    async def mfes(self) -> list[MfeInfo]:
        """Target micro-frontends discovered by the service."""
        return [MfeInfo.model_validate(m) for m in await self._http.get("/import/mfes") or []]
