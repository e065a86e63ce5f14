from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SearchResultItem(BaseModel):
    id: int | None = None
    title: str = ""
    year: str = Field(default="", max_length=4)
    poster_path: str | None = None
    poster_full: str | None = None


class TrendingResultItem(SearchResultItem):
    poster_path: str
    poster_full: str


class RandomPickCandidate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    poster_path: str = Field(alias="posterPath")
    title: str | None = None
