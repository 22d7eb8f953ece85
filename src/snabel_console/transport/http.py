"""
REST HTTP client for the import service.
"""

import logging
from pathlib import Path
from typing import Any, Optional, Union

import httpx

from snabel_console import __version__
from snabel_console.errors import ActionError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8080"


class HttpClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=f"{self._base_url}/api",
            headers={"User-Agent": f"snabel-console/{__version__}", "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        """Prefer the service's own {"error": ...} text over the raw body."""
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return f"HTTP {resp.status_code}: {resp.text[:200]}"

    def _check(self, resp: httpx.Response) -> httpx.Response:
        if resp.status_code >= 400:
            raise ActionError(self._error_message(resp), details={"status_code": resp.status_code})
        return resp

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError:
            return {"message": resp.text}

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        logger.debug("%s %s", method, path)
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            raise TransportError(f"{method} {path} failed: {e}") from e
        return self._check(resp)

    async def get(self, path: str) -> Any:
        return self._json(await self._request("GET", path))

    async def get_text(self, path: str) -> str:
        resp = await self._request("GET", path, headers={"Accept": "text/plain"})
        return resp.text

    async def post(self, path: str, body: Optional[dict[str, Any]] = None) -> Any:
        return self._json(await self._request("POST", path, json=body))

    async def put(self, path: str, body: Optional[dict[str, Any]] = None) -> Any:
        return self._json(await self._request("PUT", path, json=body))

    async def upload(self, path: str, file_path: Union[str, Path], field: str = "file") -> Any:
        """Multipart form upload of a single file."""
        file_path = Path(file_path)
        with file_path.open("rb") as fh:
            files = {field: (file_path.name, fh, "application/zip")}
            return self._json(await self._request("POST", path, files=files))

    async def close(self) -> None:
        await self._client.aclose()
