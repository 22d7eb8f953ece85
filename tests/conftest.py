"""Shared fakes: an in-memory import service behind httpx.MockTransport and an
in-memory push channel connector."""

import asyncio
import json
import re
from typing import Any, Optional

import httpx
import pytest
import pytest_asyncio

from snabel_console import AsyncSnabelConsole

BASE_URL = "http://snabel.test"

SESSION_PATH = re.compile(r"^/api/import/session/(?P<sid>[^/]+)(?:/(?P<action>[a-z]+))?$")


class FakeImportService:
    """Just enough of the import service to drive the client end to end."""

    def __init__(self) -> None:
        self.sessions: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, str]] = []
        self.failing: dict[str, int] = {}  # path -> status code to answer with
        self.unreachable: set[str] = set()  # paths that raise a transport error
        self.analysis = {"totalFiles": 42, "typescriptFiles": 10, "javascriptFiles": 5, "totalSizeMB": 1.23}
        self.mfes = [{"name": "cart", "description": "Cart MFE"}, {"name": "checkout", "description": "Checkout"}]
        self.merge_sticks = True
        self._counter = 0

    def add_session(self, sid: str, status: str = "CREATED", running: bool = False, **extra: Any) -> None:
        self.sessions[sid] = {
            "sessionId": sid, "description": f"Session {sid}", "status": status,
            "createdAt": f"2024-05-01T10:00:{len(self.sessions):02d}", "merged": False,
            "isRunning": running, **extra,
        }

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append((request.method, path))
        if path in self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)
        if path in self.failing:
            return httpx.Response(self.failing[path], json={"error": f"{path} is broken"})

        if path == "/api/status/frontend":
            return httpx.Response(200, json={"running": True, "url": "http://localhost:4200"})
        if path == "/api/status/backend":
            return httpx.Response(200, json={"running": False, "portOpen": False})
        if path == "/api/status/config":
            return httpx.Response(200, json={"frontend.path": "/srv/frontend", "branch.prefix": "import"})
        if path == "/api/import/mfes":
            return httpx.Response(200, json=self.mfes)
        if path == "/api/import/sessions":
            listing = [
                {k: s[k] for k in ("sessionId", "description", "status", "createdAt", "merged")}
                for s in self.sessions.values()
            ]
            return httpx.Response(200, json=sorted(listing, key=lambda s: s["createdAt"], reverse=True))
        if path == "/api/import/session" and request.method == "POST":
            body = json.loads(request.content)
            self._counter += 1
            sid = f"s{self._counter}"
            self.add_session(sid, originalInstructions=body.get("instructions"), targetMfe=body.get("targetMfe"))
            self.sessions[sid]["description"] = body["description"]
            return httpx.Response(200, json={"sessionId": sid, "status": "CREATED", "targetMfe": body.get("targetMfe") or ""})
        if path == "/api/git/reset-frontend":
            return httpx.Response(200, json={"message": "Frontend reset to HEAD successfully", "output": ""})

        m = SESSION_PATH.match(path)
        if not m or m["sid"] not in self.sessions:
            return httpx.Response(404, json={"error": "Session not found"})
        sid, action = m["sid"], m["action"]
        session = self.sessions[sid]

        if action is None:
            return httpx.Response(200, json=session)
        if action == "upload":
            assert request.headers["content-type"].startswith("multipart/form-data")
            session["status"] = "ANALYZING"
            return httpx.Response(200, json={"sessionId": sid, "status": "ANALYZING", "analysis": self.analysis})
        if action == "start":
            session.update(status="RUNNING", isRunning=True, branchName=f"import/{sid}")
            return httpx.Response(200, json={"sessionId": sid, "status": "RUNNING", "branchName": f"import/{sid}"})
        if action == "stop":
            session.update(status="PAUSED", isRunning=False)
            return httpx.Response(200, json={"sessionId": sid, "status": "STOPPED"})
        if action == "command":
            if not session["isRunning"]:
                return httpx.Response(400, json={"error": "No Claude Code process is running for this session"})
            return httpx.Response(200, json={"sessionId": sid, "command": json.loads(request.content)["command"], "sent": True})
        if action == "merge":
            if self.merge_sticks:
                session.update(status="MERGED", merged=True)
            return httpx.Response(200, json={"sessionId": sid, "status": "MERGED"})
        if action == "validate":
            return httpx.Response(200, json={"passed": True, "typescript": True, "apiCompatibility": True,
                                             "tests": True, "build": True, "error": ""})
        if action == "diff":
            return httpx.Response(200, text="diff --git a/x b/x\n", headers={"content-type": "text/plain"})
        if action == "changes":
            return httpx.Response(200, json={"changes": ["src/app/cart.ts"]})
        return httpx.Response(404, json={"error": "Unknown action"})

    def count(self, method: str, path: str) -> int:
        return self.calls.count((method, path))


class FakeConnection:
    """In-memory stand-in for a websocket client connection."""

    def __init__(self, url: str, timeline: list[tuple[str, str]]):
        self.url = url
        self.closed = False
        self._timeline = timeline
        self._queue: asyncio.Queue[Any] = asyncio.Queue()

    def push(self, raw: Any) -> None:
        self._queue.put_nowait(raw)

    def drop(self, exc: BaseException) -> None:
        self._queue.put_nowait(exc)

    def finish(self) -> None:
        self._queue.put_nowait(None)

    def __aiter__(self) -> "FakeConnection":
        return self

    async def __anext__(self) -> Any:
        item = await self._queue.get()
        if item is None:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._timeline.append(("close", self.url))
            self._queue.put_nowait(None)


class FakeConnector:
    def __init__(self) -> None:
        self.connections: list[FakeConnection] = []
        self.timeline: list[tuple[str, str]] = []
        self.fail: Optional[BaseException] = None

    async def __call__(self, url: str) -> FakeConnection:
        if self.fail is not None:
            raise self.fail
        conn = FakeConnection(url, self.timeline)
        self.connections.append(conn)
        self.timeline.append(("open", url))
        return conn

    @property
    def last(self) -> FakeConnection:
        return self.connections[-1]


async def settle(rounds: int = 5) -> None:
    """Let background reader tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def service() -> FakeImportService:
    return FakeImportService()


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def confirmations() -> list[str]:
    return []


@pytest_asyncio.fixture
async def client(service, connector, confirmations):
    def confirm(prompt: str) -> bool:
        confirmations.append(prompt)
        return True

    c = AsyncSnabelConsole(
        BASE_URL,
        confirm=confirm,
        transport=httpx.MockTransport(service.handle),
        connector=connector,
    )
    yield c
    await c.close()
