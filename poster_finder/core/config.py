import re

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator, model_validator

API_KEY_PLACEHOLDER = "__TMDB_API_KEY__"
RANDOM_PICK_MODES = {"handoff", "direct"}
LOCAL_ORIGIN_REGEX = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    env: str = Field(default="local", alias="ENV")

    # ─────────────────────────────────────────────
    # TMDB
    # ─────────────────────────────────────────────
    tmdb_api_key: str = Field(default="", alias="TMDB_API_KEY")
    tmdb_base_url: str = Field(default="https://api.themoviedb.org/3", alias="TMDB_BASE_URL")
    tmdb_image_base_url: str = Field(
        default="https://image.tmdb.org/t/p/w500",
        alias="TMDB_IMAGE_BASE_URL",
    )
    tmdb_timeout_seconds: float | None = Field(default=10.0, alias="TMDB_TIMEOUT_SECONDS")

    search_result_limit: int = Field(default=9, ge=1, alias="SEARCH_RESULT_LIMIT")
    trending_result_limit: int = Field(default=12, ge=1, alias="TRENDING_RESULT_LIMIT")

    # ─────────────────────────────────────────────
    # Random pick
    # ─────────────────────────────────────────────
    random_pick_min_vote_average: float = Field(default=7.0, alias="RANDOM_PICK_MIN_VOTE_AVERAGE")
    random_pick_min_vote_count: int = Field(default=50, alias="RANDOM_PICK_MIN_VOTE_COUNT")
    random_pick_max_pages: int = Field(default=500, alias="RANDOM_PICK_MAX_PAGES")
    random_pick_attempts: int = Field(default=3, alias="RANDOM_PICK_ATTEMPTS")
    random_pick_mode: str = Field(default="handoff", alias="RANDOM_PICK_MODE")

    # Place the poster on a substitute rectangle when the target refuses fills.
    fill_fallback: bool = Field(default=True, alias="FILL_FALLBACK")

    cors_origins: str = Field(default="null,http://localhost:5173", alias="CORS_ORIGINS")

    @field_validator("tmdb_api_key", mode="before")
    @classmethod
    def normalize_api_key(cls, value: object) -> object:
        if not isinstance(value, str):
            return value
        cleaned = value.strip()
        if cleaned == API_KEY_PLACEHOLDER:
            return ""
        return cleaned

    @field_validator("tmdb_base_url", "tmdb_image_base_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, value: object) -> object:
        if not isinstance(value, str):
            return value
        return value.strip().rstrip("/")

    @field_validator("tmdb_timeout_seconds", mode="before")
    @classmethod
    def normalize_timeout(cls, value: object) -> object:
        if isinstance(value, str) and value.strip().lower() in {"", "none", "null", "0"}:
            return None
        if isinstance(value, (int, float)) and value <= 0:
            return None
        return value

    @field_validator("random_pick_mode", mode="before")
    @classmethod
    def normalize_random_pick_mode(cls, value: object) -> object:
        if not isinstance(value, str):
            return value
        return value.strip().lower()

    @model_validator(mode="after")
    def validate_random_pick(self) -> "Settings":
        if self.random_pick_mode not in RANDOM_PICK_MODES:
            raise ValueError("RANDOM_PICK_MODE must be one of: handoff, direct")
        if self.random_pick_max_pages < 1:
            raise ValueError("RANDOM_PICK_MAX_PAGES must be at least 1")
        if self.random_pick_attempts < 1:
            raise ValueError("RANDOM_PICK_ATTEMPTS must be at least 1")
        return self

    def has_api_key(self) -> bool:
        return bool(self.tmdb_api_key)

    def cors_origin_list(self) -> list[str]:
        origins: list[str] = []
        for value in (self.cors_origins or "").split(","):
            cleaned = value.strip().rstrip("/")
            if cleaned and cleaned not in origins:
                origins.append(cleaned)
        return origins

    def local_origin_regex(self) -> str | None:
        return LOCAL_ORIGIN_REGEX if self.env in {"local", "test"} else None

    def origin_allowed(self, origin: str | None) -> bool:
        """Whether a browser with ``origin`` may open the plugin bridge.

        Non-browser clients send no Origin header and are always let in.
        Figma plugin iframes report the literal origin ``null``.
        """

        if origin is None:
            return True
        allowed = self.cors_origin_list()
        if "*" in allowed or origin.rstrip("/") in allowed:
            return True
        pattern = self.local_origin_regex()
        return bool(pattern and re.fullmatch(pattern, origin))


settings = Settings()
