import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from poster_finder.core.config import settings
from poster_finder.api.routes.health import router as health_router
from poster_finder.api.routes.plugin import router as plugin_router


logger = logging.getLogger(__name__)
app = FastAPI(title="Poster Finder", version="0.1.0")

if not settings.has_api_key():
    logger.warning("Warning: TMDB key missing.")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception for %s %s", request.method, request.url.path)
    return JSONResponse({"detail": "Internal Server Error"}, status_code=500)

# Covers the HTTP routes; the plugin socket checks its Origin header itself.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list(),
    allow_origin_regex=settings.local_origin_regex(),
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(plugin_router)
