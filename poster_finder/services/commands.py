from __future__ import annotations

import logging
import random
from collections.abc import Mapping
from typing import Any

from poster_finder.core.config import Settings, settings as default_settings
from poster_finder.core.errors import NetworkError, NoCandidateError, UnsupportedTargetError
from poster_finder.host.base import HostDocument, HostNode
from poster_finder.schemas.messages import (
    INBOUND_TYPES,
    CloseMessage,
    FetchForRandomMessage,
    GetTrendingMessage,
    InsertedMessage,
    InsertPosterMessage,
    LiveSearchMessage,
    NoSelectionMessage,
    RandomPickMessage,
    SearchMessage,
    SearchResultsMessage,
    TrendingResultsMessage,
    parse_inbound,
    resolve_media_type,
)
from poster_finder.schemas.tmdb import RandomPickCandidate
from poster_finder.services.channel import UIChannel, snack
from poster_finder.services.insertion import insert_poster
from poster_finder.services.targets import resolve_target_node
from poster_finder.services.tmdb import (
    TmdbClient,
    poster_url,
    qualifying_candidates,
    shape_search_results,
    shape_trending_results,
    total_pages,
)

logger = logging.getLogger(__name__)

NETWORK_ERROR = "Network error"
NO_SUITABLE_POSTER = "No suitable poster found"
POSTER_NOT_AVAILABLE = "Poster not available"
ACTION_FAILED = "Action failed"


class CommandHandler:
    """Turns panel messages into TMDB lookups and document edits.

    One handler serves one plugin session. ``latest_search_serial`` orders
    live searches: a live response is only shown if no newer search was issued
    while it was in flight.
    """

    def __init__(
        self,
        host: HostDocument,
        channel: UIChannel,
        *,
        tmdb: TmdbClient | None = None,
        config: Settings | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config or (tmdb.config if tmdb is not None else default_settings)
        self.host = host
        self.channel = channel
        self.tmdb = tmdb or TmdbClient(self.config)
        self.rng = rng or random.Random()
        self.latest_search_serial = 0

        if not self.config.has_api_key():
            logger.warning("TMDB_API_KEY missing; TMDB requests will be rejected")

    # ─────────────────────────────────────────────
    # Dispatch
    # ─────────────────────────────────────────────

    async def dispatch(self, raw: Mapping[str, Any]) -> None:
        msg_type = raw.get("type") if isinstance(raw, Mapping) else None
        if not isinstance(msg_type, str) or msg_type not in INBOUND_TYPES:
            logger.debug("ignoring message type=%r", msg_type)
            return

        try:
            msg = parse_inbound(dict(raw))
            await self.handle(msg)
        except Exception:
            logger.exception("plugin message failed type=%s", msg_type)
            snack(self.channel, ACTION_FAILED)

    async def handle(self, msg: Any) -> None:
        if isinstance(msg, LiveSearchMessage):
            await self.live_search(msg.media_type, msg.query)
        elif isinstance(msg, SearchMessage):
            await self.search(msg.media_type, msg.query)
        elif isinstance(msg, GetTrendingMessage):
            await self.fetch_trending(msg.media_type)
        elif isinstance(msg, RandomPickMessage):
            await self.random_pick(msg.media_type)
        elif isinstance(msg, InsertPosterMessage):
            await self.insert_poster_message(msg)
        elif isinstance(msg, CloseMessage):
            self.host.close_plugin()
        else:
            raise TypeError(f"Unhandled message: {type(msg).__name__}")

    # ─────────────────────────────────────────────
    # Target selection
    # ─────────────────────────────────────────────

    def resolve_target(self) -> HostNode | None:
        try:
            return resolve_target_node(self.host)
        except UnsupportedTargetError as exc:
            self.channel.post(NoSelectionMessage(message=str(exc)))
            return None

    # ─────────────────────────────────────────────
    # Search & trending
    # ─────────────────────────────────────────────

    async def live_search(self, media_type: str, query: str) -> None:
        await self._perform_search(media_type, query, live=True)

    async def search(self, media_type: str, query: str) -> None:
        await self._perform_search(media_type, query, live=False)

    async def _perform_search(self, media_type: str, query: str, *, live: bool) -> None:
        if not query or not query.strip():
            self.channel.post(SearchResultsMessage(results=[], query=query or ""))
            return

        self.latest_search_serial += 1
        serial = self.latest_search_serial
        kind = resolve_media_type(media_type)

        try:
            payload = await self.tmdb.search(kind, query)
        except NetworkError:
            if not live or serial == self.latest_search_serial:
                logger.exception("search failed type=%s query=%r", kind, query)
                self.channel.post(SearchResultsMessage(results=[], query=query))
                snack(self.channel, NETWORK_ERROR)
            return

        if live and serial != self.latest_search_serial:
            logger.debug("dropping stale live search serial=%s latest=%s", serial, self.latest_search_serial)
            return

        results = shape_search_results(
            payload,
            image_base_url=self.config.tmdb_image_base_url,
            limit=self.config.search_result_limit,
        )
        self.channel.post(SearchResultsMessage(results=results, query=query))

    async def fetch_trending(self, media_type: str) -> None:
        kind = resolve_media_type(media_type)
        try:
            payload = await self.tmdb.trending(kind)
        except NetworkError:
            logger.exception("trending fetch failed type=%s", kind)
            snack(self.channel, NETWORK_ERROR)
            self.channel.post(TrendingResultsMessage(results=[]))
            return

        results = shape_trending_results(
            payload,
            image_base_url=self.config.tmdb_image_base_url,
            limit=self.config.trending_result_limit,
        )
        self.channel.post(TrendingResultsMessage(results=results))

    # ─────────────────────────────────────────────
    # Random pick
    # ─────────────────────────────────────────────

    async def _pick_candidate(self, kind: str) -> RandomPickCandidate:
        info = await self.tmdb.discover(kind, page=1)
        pages = total_pages(info, max_pages=self.config.random_pick_max_pages)

        for attempt in range(self.config.random_pick_attempts):
            page = self.rng.randint(1, pages)
            try:
                page_payload = await self.tmdb.discover(kind, page=page)
            except NetworkError:
                logger.info("discover page failed attempt=%s page=%s", attempt + 1, page)
                continue

            candidates = qualifying_candidates(
                page_payload,
                min_vote_average=self.config.random_pick_min_vote_average,
            )
            if candidates:
                return self.rng.choice(candidates)

        raise NoCandidateError(NO_SUITABLE_POSTER)

    async def random_pick(self, media_type: str) -> None:
        node = self.resolve_target()
        if node is None:
            return

        kind = resolve_media_type(media_type)
        try:
            candidate = await self._pick_candidate(kind)
        except NoCandidateError:
            snack(self.channel, NO_SUITABLE_POSTER)
            return
        except NetworkError:
            logger.exception("random pick failed type=%s", kind)
            snack(self.channel, NETWORK_ERROR)
            return

        if self.config.random_pick_mode == "direct":
            url = poster_url(self.config.tmdb_image_base_url, candidate.poster_path)
            if await self._insert(node, url):
                self.channel.post(InsertedMessage(message=f"Added: {candidate.title or ''}"))
            return

        self.channel.post(
            FetchForRandomMessage(poster_path=candidate.poster_path, title=candidate.title)
        )

    # ─────────────────────────────────────────────
    # Insertion
    # ─────────────────────────────────────────────

    async def _insert(self, node: HostNode, source: bytes | str) -> bool:
        return await insert_poster(
            self.host,
            self.channel,
            node,
            source,
            download=self.tmdb.download,
            fallback=self.config.fill_fallback,
        )

    async def insert_poster_message(self, msg: InsertPosterMessage) -> None:
        source = msg.image_source()
        if source is None and msg.poster_path:
            source = poster_url(self.config.tmdb_image_base_url, msg.poster_path)
        if source is None:
            snack(self.channel, POSTER_NOT_AVAILABLE)
            return

        node = self.resolve_target()
        if node is None:
            return

        if await self._insert(node, source):
            self.channel.post(InsertedMessage(message=f"Added: {msg.title or ''}"))
