import os
import random
from typing import Any

import httpx
import pytest

# IMPORTANT:
# Set env vars BEFORE importing poster_finder.core.config (pydantic settings load at import time)
os.environ["ENV"] = "test"
os.environ.setdefault("TMDB_API_KEY", "test-key")
os.environ.setdefault("CORS_ORIGINS", "http://localhost:5173")

from poster_finder.core.config import Settings  # noqa: E402
from poster_finder.host.base import Vector  # noqa: E402
from poster_finder.host.memory import MemoryDocument  # noqa: E402
from poster_finder.services.channel import RecordingChannel  # noqa: E402
from poster_finder.services.commands import CommandHandler  # noqa: E402
from poster_finder.services.tmdb import TmdbClient  # noqa: E402

IMAGE_BASE = "https://image.tmdb.org/t/p/w500"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24


class FakeTmdbServer:
    """Routes requests by URL path.

    A route may be a JSON payload (dict), a status code (int), raw bytes, an
    exception to raise, or a callable taking the request.
    """

    def __init__(self) -> None:
        self.routes: dict[str, Any] = {}
        self.requests: list[httpx.Request] = []

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"status_message": "not found"})
        if callable(route) and not isinstance(route, type):
            route = route(request)
        if isinstance(route, httpx.Response):
            return route
        if isinstance(route, Exception):
            raise route
        if isinstance(route, int):
            return httpx.Response(route)
        if isinstance(route, bytes):
            return httpx.Response(200, content=route, headers={"Content-Type": "image/png"})
        return httpx.Response(200, json=route)


def _make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "ENV": "test",
        "TMDB_API_KEY": "test-key",
        "TMDB_BASE_URL": "https://api.themoviedb.org/3",
        "TMDB_IMAGE_BASE_URL": IMAGE_BASE,
        "RANDOM_PICK_MODE": "handoff",
        "FILL_FALLBACK": True,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings_factory():
    return _make_settings


@pytest.fixture
def test_settings():
    return _make_settings()


@pytest.fixture
def tmdb_server():
    return FakeTmdbServer()


@pytest.fixture
def tmdb_client(test_settings, tmdb_server):
    return TmdbClient(test_settings, transport=httpx.MockTransport(tmdb_server.handler))


@pytest.fixture
def doc():
    return MemoryDocument(viewport_center=Vector(500.0, 400.0))


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def handler_factory(doc, channel, tmdb_server):
    def _create(*, config: Settings | None = None, rng: random.Random | None = None, tmdb: Any = None):
        config = config or _make_settings()
        if tmdb is None:
            tmdb = TmdbClient(config, transport=httpx.MockTransport(tmdb_server.handler))
        return CommandHandler(doc, channel, tmdb=tmdb, config=config, rng=rng or random.Random(7))

    return _create


@pytest.fixture
def handler(handler_factory):
    return handler_factory()


@pytest.fixture
def png_bytes():
    return PNG_BYTES
