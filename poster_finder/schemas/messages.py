from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from poster_finder.schemas.tmdb import SearchResultItem, TrendingResultItem


MediaType = Literal["movie", "tv"]


def resolve_media_type(value: object) -> MediaType:
    return "tv" if value == "tv" else "movie"


# ─────────────────────────────────────────────
# Inbound (UI -> handler)
# ─────────────────────────────────────────────


class _InboundMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class _MediaTypeMessage(_InboundMessage):
    media_type: MediaType = Field(default="movie", alias="mediaType")

    @field_validator("media_type", mode="before")
    @classmethod
    def normalize_media_type(cls, v: object) -> MediaType:
        return resolve_media_type(v)


class _QueryMessage(_MediaTypeMessage):
    query: str = ""

    @field_validator("query", mode="before")
    @classmethod
    def normalize_query(cls, v: object) -> str:
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)


class LiveSearchMessage(_QueryMessage):
    type: Literal["live-search"] = "live-search"


class SearchMessage(_QueryMessage):
    type: Literal["search"] = "search"


class GetTrendingMessage(_MediaTypeMessage):
    type: Literal["get-trending"] = "get-trending"


class RandomPickMessage(_MediaTypeMessage):
    type: Literal["random-pick"] = "random-pick"


class InsertPosterMessage(_InboundMessage):
    type: Literal["insert-poster"] = "insert-poster"
    # Raw image bytes, or a data URI / URL string.
    data: bytes | str | None = None
    poster_path: str | None = Field(default=None, alias="posterPath")
    title: str | None = None

    @field_validator("data", mode="before")
    @classmethod
    def coerce_byte_list(cls, v: object) -> object:
        # Byte arrays posted from the panel arrive as JSON lists of ints.
        if isinstance(v, list) and all(isinstance(b, int) for b in v):
            return bytes(v)
        if isinstance(v, (bytearray, memoryview)):
            return bytes(v)
        return v

    def image_source(self) -> bytes | str | None:
        if isinstance(self.data, bytes):
            return self.data
        if isinstance(self.data, str) and self.data.strip():
            return self.data.strip()
        return None


class CloseMessage(_InboundMessage):
    type: Literal["close"] = "close"


InboundMessage = Annotated[
    Union[
        LiveSearchMessage,
        SearchMessage,
        GetTrendingMessage,
        RandomPickMessage,
        InsertPosterMessage,
        CloseMessage,
    ],
    Field(discriminator="type"),
]

INBOUND_TYPES = frozenset(
    {"live-search", "search", "get-trending", "random-pick", "insert-poster", "close"}
)

_inbound_adapter: TypeAdapter[Any] = TypeAdapter(InboundMessage)


def parse_inbound(raw: Any):
    return _inbound_adapter.validate_python(raw)


# ─────────────────────────────────────────────
# Outbound (handler -> UI)
# ─────────────────────────────────────────────


class _OutboundMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SearchResultsMessage(_OutboundMessage):
    type: Literal["search-results"] = "search-results"
    results: list[SearchResultItem] = Field(default_factory=list)
    query: str = ""


class TrendingResultsMessage(_OutboundMessage):
    type: Literal["trending-results"] = "trending-results"
    results: list[TrendingResultItem] = Field(default_factory=list)


class FetchForRandomMessage(_OutboundMessage):
    type: Literal["fetch-for-random"] = "fetch-for-random"
    poster_path: str = Field(alias="posterPath")
    title: str | None = None


class InsertedMessage(_OutboundMessage):
    type: Literal["inserted"] = "inserted"
    message: str


class NoSelectionMessage(_OutboundMessage):
    type: Literal["no-selection"] = "no-selection"
    message: str


class SnackbarMessage(_OutboundMessage):
    type: Literal["snackbar"] = "snackbar"
    message: str


OutboundMessage = Union[
    SearchResultsMessage,
    TrendingResultsMessage,
    FetchForRandomMessage,
    InsertedMessage,
    NoSelectionMessage,
    SnackbarMessage,
]


def dump_outbound(message: OutboundMessage) -> dict[str, Any]:
    return message.model_dump(mode="json", by_alias=True)
