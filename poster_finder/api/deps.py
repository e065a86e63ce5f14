from __future__ import annotations

from collections.abc import Callable

import httpx

from poster_finder.core.config import Settings, settings
from poster_finder.host.base import HostDocument
from poster_finder.host.memory import MemoryDocument

HostFactory = Callable[[], HostDocument]


def get_settings() -> Settings:
    return settings


def get_host_factory() -> HostFactory:
    return MemoryDocument


def get_tmdb_transport() -> httpx.AsyncBaseTransport | None:
    # None means the default network transport.
    return None
