from __future__ import annotations

import math
import os
import time
from collections import deque
from dataclasses import dataclass
from threading import Lock

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

WRITE_METHODS = frozenset({"POST", "PUT", "DELETE"})


@dataclass(frozen=True)
class Bucket:
    """A named limit applied to the requests that `matches` accepts."""

    name: str
    limit: int
    window_s: float

    def matches(self, method: str, path: str) -> bool:
        if self.name == "search":
            # Only real searches reach the catalog; the state snapshot does not.
            return method == "GET" and path == "/api/search"
        if self.name == "watchlist-write":
            return method in WRITE_METHODS and path.startswith("/api/watchlist")
        return True


def _env_bucket(name: str, env_key: str, limit: int, window_s: float) -> Bucket:
    return Bucket(
        name=name,
        limit=int(os.environ.get(f"MOVIE_WATCHLIST_RL_{env_key}", str(limit))),
        window_s=float(os.environ.get(f"MOVIE_WATCHLIST_RL_{env_key}_WINDOW_S", str(window_s))),
    )


def buckets_from_env() -> list[Bucket]:
    # Checked in order; a request is refused by the first bucket that is full.
    return [
        _env_bucket("global", "GLOBAL", 120, 60),
        _env_bucket("search", "SEARCH", 30, 60),
        _env_bucket("watchlist-write", "WRITE", 60, 60),
    ]


class SlidingWindowRateLimiter:
    """Per-client sliding windows, one per (client, bucket) pair.

    `hit` answers how many seconds the caller should wait before the oldest hit
    leaves the window, or 0 when the request is admitted.
    """

    def __init__(self, clock=time.monotonic) -> None:
        self._clock = clock
        self._lock = Lock()
        self._hits: dict[tuple[str, str], deque[float]] = {}

    def hit(self, client: str, bucket: Bucket) -> float:
        now = self._clock()
        with self._lock:
            hits = self._hits.setdefault((client, bucket.name), deque())
            while hits and hits[0] <= now - bucket.window_s:
                hits.popleft()

            if len(hits) >= bucket.limit:
                return max(hits[0] + bucket.window_s - now, 0.001)

            hits.append(now)
            return 0.0


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app,
        *,
        limiter: SlidingWindowRateLimiter | None = None,
        buckets: list[Bucket] | None = None,
    ) -> None:
        super().__init__(app)
        self._limiter = limiter or SlidingWindowRateLimiter()
        self._buckets = buckets if buckets is not None else buckets_from_env()

    async def dispatch(self, request: Request, call_next) -> Response:
        client = request.client.host if request.client else "unknown"
        method, path = request.method, request.url.path

        for bucket in self._buckets:
            if not bucket.matches(method, path):
                continue
            wait_s = self._limiter.hit(client, bucket)
            if wait_s:
                return JSONResponse(
                    status_code=429,
                    content={"detail": "Rate limit exceeded", "bucket": bucket.name},
                    headers={"Retry-After": str(math.ceil(wait_s))},
                )

        return await call_next(request)
