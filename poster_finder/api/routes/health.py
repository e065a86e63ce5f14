from __future__ import annotations

from fastapi import APIRouter, Depends

from poster_finder.api.deps import get_settings
from poster_finder.core.config import Settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(config: Settings = Depends(get_settings)):
    return {"status": "ok", "tmdb_key_configured": config.has_api_key()}
