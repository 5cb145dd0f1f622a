"""Pytest configuration and fixtures."""

import asyncio
import os
import tempfile
import time
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from mediaflow.collaborators.base import (
    CollaboratorError,
    GenerationClient,
    ImageGenerationRequest,
    MediaResult,
    VideoEditRequest,
    VideoGenerationRequest,
)
from mediaflow.db.database import close_database, init_database
from mediaflow.graph.store import GraphStore
from mediaflow.main import app
from mediaflow.media.resolver import MediaResolver
from mediaflow.services.scheduler import ExecutionScheduler
from mediaflow.services.session import SessionManager, get_session_manager


class FakeGenerationClient(GenerationClient):
    """In-memory collaborator that records every call with its time window.

    ``errors`` maps a prompt (or edit operation) to the error to raise and
    ``delays`` overrides the call delay per key.
    While ``gate`` is set to an unset event, calls block until it is set.
    """

    service = "fake"

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.calls: list[dict] = []
        self.errors: dict[str, CollaboratorError] = {}
        self.delays: dict[str, float] = {}
        self.gate: asyncio.Event | None = None
        self._counter = 0

    def windows(self, key: str) -> tuple[float, float]:
        """(start, end) of the first call made for ``key``."""
        for call in self.calls:
            if call["key"] == key:
                return call["start"], call["end"]
        raise KeyError(key)

    def requests(self, key: str) -> list:
        return [call["request"] for call in self.calls if call["key"] == key]

    async def _run(self, key: str, request, prefix: str, aspect_ratio: str | None = None):
        call = {"key": key, "request": request, "start": time.monotonic(), "end": None}
        self.calls.append(call)
        if self.gate is not None:
            await self.gate.wait()
        delay = self.delays.get(key, self.delay)
        if delay:
            await asyncio.sleep(delay)
        call["end"] = time.monotonic()
        if key in self.errors:
            raise self.errors[key]
        self._counter += 1
        url = f"https://cdn.test/{prefix}-{self._counter}"
        return MediaResult(url=url, aspect_ratio=aspect_ratio, raw={"url": url})

    async def generate_image(self, request: ImageGenerationRequest) -> MediaResult:
        return await self._run(request.prompt, request, "image", request.aspect_ratio)

    async def generate_video(self, request: VideoGenerationRequest) -> MediaResult:
        return await self._run(request.prompt, request, "video")

    async def edit_video(self, request: VideoEditRequest) -> MediaResult:
        return await self._run(request.operation, request, "edit")


@pytest.fixture(autouse=True)
async def setup_test_db():
    """Set up a test database for each test."""
    # Create a temporary database file
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name

    # Initialize the database
    await init_database(db_path)

    yield

    # Clean up
    await close_database()
    os.unlink(db_path)


@pytest.fixture
def fake_client() -> FakeGenerationClient:
    return FakeGenerationClient()


@pytest.fixture
def resolver(tmp_path) -> MediaResolver:
    """Resolver backed by an empty temporary media root."""
    return MediaResolver(media_root=tmp_path)


@pytest.fixture
def store() -> GraphStore:
    return GraphStore(debounce_seconds=0.05)


@pytest.fixture
def scheduler(store, fake_client, resolver) -> ExecutionScheduler:
    """Scheduler with short dispatch and poll intervals."""
    return ExecutionScheduler(
        store,
        fake_client,
        resolver=resolver,
        dispatch_delay=0.001,
        poll_interval=0.005,
    )


@pytest.fixture
def session_manager(fake_client, resolver) -> SessionManager:
    return SessionManager(client_factory=lambda: fake_client, resolver=resolver)


@pytest.fixture
async def client(session_manager) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client wired to the fake collaborator."""
    app.dependency_overrides[get_session_manager] = lambda: session_manager
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()
    await session_manager.shutdown()
