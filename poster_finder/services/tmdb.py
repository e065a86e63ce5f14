from __future__ import annotations

import logging
from typing import Any

import httpx

from poster_finder.core.config import Settings, settings as default_settings
from poster_finder.core.errors import NetworkError
from poster_finder.schemas.messages import MediaType, resolve_media_type
from poster_finder.schemas.tmdb import RandomPickCandidate, SearchResultItem, TrendingResultItem

logger = logging.getLogger(__name__)


def _safe_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _safe_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _display_title(item: dict[str, Any]) -> str:
    return _text(item.get("title")) or _text(item.get("name"))


def _year(item: dict[str, Any]) -> str:
    date = _text(item.get("release_date")) or _text(item.get("first_air_date"))
    return date[:4]


def _poster_path(item: dict[str, Any]) -> str | None:
    path = item.get("poster_path")
    if isinstance(path, str) and path:
        return path
    return None


def poster_url(image_base_url: str, poster_path: str) -> str:
    return f"{image_base_url}{poster_path}"


def _results(payload: Any) -> list[Any]:
    if not isinstance(payload, dict):
        return []
    rows = payload.get("results")
    return rows if isinstance(rows, list) else []


def shape_search_results(
    payload: Any,
    *,
    image_base_url: str,
    limit: int,
) -> list[SearchResultItem]:
    out: list[SearchResultItem] = []
    # Truncate before filtering: a null in the first page slots costs a slot.
    for item in _results(payload)[:limit]:
        if not isinstance(item, dict):
            continue
        path = _poster_path(item)
        out.append(
            SearchResultItem(
                id=_safe_int(item.get("id")),
                title=_display_title(item),
                year=_year(item),
                poster_path=path,
                poster_full=poster_url(image_base_url, path) if path else None,
            )
        )
    return out


def shape_trending_results(
    payload: Any,
    *,
    image_base_url: str,
    limit: int,
) -> list[TrendingResultItem]:
    candidates = [
        item
        for item in _results(payload)
        if isinstance(item, dict) and _poster_path(item)
    ][:limit]

    return [
        TrendingResultItem(
            id=_safe_int(item.get("id")),
            title=_display_title(item),
            year=_year(item),
            poster_path=item["poster_path"],
            poster_full=poster_url(image_base_url, item["poster_path"]),
        )
        for item in candidates
    ]


def qualifying_candidates(payload: Any, *, min_vote_average: float) -> list[RandomPickCandidate]:
    out: list[RandomPickCandidate] = []
    for item in _results(payload):
        if not isinstance(item, dict):
            continue
        path = _poster_path(item)
        if not path:
            continue
        vote_average = _safe_float(item.get("vote_average"))
        # Re-checked here; discover filtering is not trusted per item.
        if vote_average is None or vote_average < min_vote_average:
            continue
        out.append(RandomPickCandidate(poster_path=path, title=_display_title(item) or None))
    return out


def total_pages(payload: Any, *, max_pages: int) -> int:
    raw = _safe_int(payload.get("total_pages")) if isinstance(payload, dict) else None
    pages = raw if raw and raw > 0 else 1
    return min(pages, max_pages)


class TmdbClient:
    """Async TMDB access for search, trending, discover and poster downloads.

    The API key travels as the ``api_key`` query parameter. Pass ``transport``
    (e.g. ``httpx.MockTransport``) to run against a fake server.
    """

    def __init__(
        self,
        config: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or default_settings
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.config.tmdb_timeout_seconds,
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "TmdbClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        query: dict[str, Any] = {"api_key": self.config.tmdb_api_key}
        if params:
            query.update(params)

        url = f"{self.config.tmdb_base_url}{path}"
        try:
            r = await self._http().get(url, params=query, headers={"Accept": "application/json"})
        except httpx.HTTPError as exc:
            raise NetworkError(f"TMDB request failed: {exc}") from exc

        if r.status_code < 200 or r.status_code >= 300:
            raise NetworkError(f"HTTP {r.status_code}", status_code=r.status_code)

        try:
            data = r.json()
        except ValueError as exc:
            raise NetworkError("TMDB returned non-JSON response.", status_code=r.status_code) from exc

        if not isinstance(data, dict):
            raise NetworkError("TMDB returned unexpected JSON shape (not an object).")
        return data

    async def search(self, media_type: str, query: str) -> dict[str, Any]:
        kind: MediaType = resolve_media_type(media_type)
        return await self._get_json(f"/search/{kind}", {"query": query, "page": 1})

    async def trending(self, media_type: str) -> dict[str, Any]:
        kind: MediaType = resolve_media_type(media_type)
        return await self._get_json(f"/trending/{kind}/day")

    async def discover(self, media_type: str, *, page: int = 1) -> dict[str, Any]:
        kind: MediaType = resolve_media_type(media_type)
        params = {
            "sort_by": "popularity.desc",
            "vote_average.gte": self.config.random_pick_min_vote_average,
            "vote_count.gte": self.config.random_pick_min_vote_count,
            "page": page,
        }
        return await self._get_json(f"/discover/{kind}", params)

    async def download(self, url: str) -> bytes:
        logger.debug("downloading poster url=%s", url)
        try:
            r = await self._http().get(url)
        except httpx.HTTPError as exc:
            raise NetworkError(f"Download failed: {exc}") from exc

        if r.status_code < 200 or r.status_code >= 300:
            raise NetworkError(f"Download failed: HTTP {r.status_code}", status_code=r.status_code)
        return r.content
