from __future__ import annotations

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from movie_watchlist.api.logging_setup import configure_logging
from movie_watchlist.api.rate_limit import RateLimitMiddleware
from movie_watchlist.api.routes import router
from movie_watchlist.core.search import SearchController
from movie_watchlist.core.watchlist import WatchlistStore

logger = logging.getLogger(__name__)

# Everything the UI sends: search and reads, add/toggle, review, remove.
API_METHODS = ["GET", "POST", "PUT", "DELETE"]


def cors_origins_from_env() -> list[str]:
    """Origins allowed to call the JSON API from another site.

    MOVIE_WATCHLIST_CORS_ORIGINS holds one origin per line or a comma-separated
    list; unset means the API is same-origin only (the bundled page).
    """

    raw = os.environ.get("MOVIE_WATCHLIST_CORS_ORIGINS", "")
    origins: list[str] = []
    for line in raw.splitlines():
        origins.extend(o.strip().rstrip("/") for o in line.split(",") if o.strip())
    return origins


def create_app(
    *,
    store: WatchlistStore | None = None,
    search_controller: SearchController | None = None,
) -> FastAPI:
    app = FastAPI(title="Movie Watchlist", version="0.1.0")

    # WatchlistStore defines __len__, so test against None rather than truthiness.
    app.state.watchlist_store = store if store is not None else WatchlistStore()
    app.state.search_controller = (
        search_controller if search_controller is not None else SearchController()
    )

    origins = cors_origins_from_env()
    if origins:
        # The watchlist is not tied to cookies, so credentials are never allowed.
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"] if "*" in origins else origins,
            allow_credentials=False,
            allow_methods=API_METHODS,
            allow_headers=["Content-Type"],
        )

    app.add_middleware(RateLimitMiddleware)

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(_request, exc: Exception):
        logger.error("unhandled error", exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    app.include_router(router)
    logger.info("app created", extra={"cors_origins": origins})
    return app


# Logging is set up for the served app only; apps built in tests leave the
# host's logging alone.
configure_logging()
app = create_app()
