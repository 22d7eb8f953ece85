"""
Service status and git maintenance REST API — /api/status, /api/git.
"""

from typing import Any

from snabel_console.models.status import ServiceStatus
from snabel_console.transport.http import HttpClient


class StatusAPI:
    def __init__(self, http: HttpClient):
        self._http = http

    async def frontend(self) -> ServiceStatus:
        return ServiceStatus.model_validate(await self._http.get("/status/frontend"))

    async def backend(self) -> ServiceStatus:
        return ServiceStatus.model_validate(await self._http.get("/status/backend"))

    async def system(self) -> dict[str, Any]:
        return await self._http.get("/status")

    async def config(self) -> dict[str, str]:
        data = await self._http.get("/status/config")
        return {str(k): str(v) for k, v in (data or {}).items()}

    async def update_config(self, updates: dict[str, str]) -> dict[str, Any]:
        """Only frontend.path, backend.path, temp.directory, claude.executable
        and branch.prefix are honoured by the service."""
        return await self._http.put("/status/config", updates)


class GitAPI:
    def __init__(self, http: HttpClient):
        self._http = http

    async def reset_frontend(self) -> dict[str, Any]:
        """git reset --hard HEAD in the frontend checkout."""
        return await self._http.post("/git/reset-frontend")
