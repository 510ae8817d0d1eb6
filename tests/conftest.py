"""
Pytest configuration for chatturn tests.

Registers the ``--run-e2e`` option and the markers used by tests that call
real provider APIs, plus shared helpers for serving raw wire bytes.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, Iterable, List, Optional

import httpx
import pytest


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-e2e",
        action="store_true",
        default=False,
        help="Run end-to-end tests with real API calls",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "e2e: mark test as end-to-end (requires real API keys, use --run-e2e to run)"
    )


def pytest_collection_modifyitems(config, items):
    """Skip e2e tests unless --run-e2e is passed."""
    if config.getoption("--run-e2e"):
        return

    skip_e2e = pytest.mark.skip(reason="Need --run-e2e option to run end-to-end tests")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip_e2e)


class WireServer:
    """
    ``httpx.MockTransport`` handler replaying canned response bodies.

    ``chunks`` is the body split exactly where the test wants chunk
    boundaries. Every request is recorded for envelope assertions.
    """

    def __init__(
        self,
        chunks: Iterable[bytes] = (),
        status_code: int = 200,
        content_type: str = "text/event-stream",
    ):
        self.chunks: List[bytes] = list(chunks)
        self.status_code = status_code
        self.content_type = content_type
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(
            self.status_code,
            headers={"Content-Type": self.content_type},
            stream=_ChunkStream(self.chunks),
        )

    @property
    def last_json(self) -> Dict[str, Any]:
        return json.loads(self.requests[-1].content)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


class _ChunkStream(httpx.AsyncByteStream):
    def __init__(self, chunks: List[bytes]):
        self._chunks = chunks

    async def __aiter__(self):
        for chunk in self._chunks:
            yield chunk

    async def aclose(self) -> None:
        pass


def sse(*payloads: Any, event: Optional[str] = None) -> bytes:
    """Encode payloads as SSE ``data:`` frames (dicts are JSON-encoded)."""
    out = []
    for payload in payloads:
        data = payload if isinstance(payload, str) else json.dumps(payload)
        if event:
            out.append(f"event: {event}\n")
        out.append(f"data: {data}\n\n")
    return "".join(out).encode("utf-8")


def ndjson(*payloads: Dict[str, Any]) -> bytes:
    return "".join(json.dumps(p) + "\n" for p in payloads).encode("utf-8")


@pytest.fixture
def wire_server() -> Callable[..., WireServer]:
    return WireServer


@pytest.fixture(autouse=True)
def isolated_user_env(tmp_path_factory, monkeypatch):
    """Point the per-user env file at an empty location."""
    monkeypatch.setattr(
        "chatturn.env.USER_ENV_FILE", tmp_path_factory.mktemp("home") / ".env"
    )
