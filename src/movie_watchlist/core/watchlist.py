from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from threading import Lock

from movie_watchlist.core.schemas import CatalogEntry, WatchlistItem, WatchlistStats

logger = logging.getLogger(__name__)

MIN_RATING = 0
MAX_RATING = 5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _average_rating(items: list[WatchlistItem]) -> float:
    # Unrated (0) and unwatched items do not count.
    rated = [m.rating for m in items if m.watched and m.rating > 0]
    if not rated:
        return 0.0
    return sum(rated) / len(rated)


class WatchlistStore:
    """In-memory watchlist, keyed by catalog identifier.

    Lives for the lifetime of the process; nothing is written to disk.

    Mutations on unknown identifiers are silent no-ops (they return None/False
    rather than raising), and adding an identifier that is already present
    leaves the existing item untouched.
    """

    def __init__(self, *, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or _utcnow
        self._lock = Lock()
        # Insertion-ordered.
        self._items: dict[str, WatchlistItem] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def items(self) -> list[WatchlistItem]:
        with self._lock:
            return list(self._items.values())

    def get(self, imdb_id: str) -> WatchlistItem | None:
        with self._lock:
            return self._items.get(imdb_id)

    def contains(self, imdb_id: str) -> bool:
        with self._lock:
            return imdb_id in self._items

    def add(self, entry: CatalogEntry) -> WatchlistItem | None:
        with self._lock:
            if entry.imdb_id in self._items:
                return None
            item = WatchlistItem.from_entry(entry, added_at=self._clock())
            self._items[item.imdb_id] = item
        logger.debug("watchlist add", extra={"imdb_id": item.imdb_id})
        return item

    def remove(self, imdb_id: str) -> bool:
        with self._lock:
            removed = self._items.pop(imdb_id, None) is not None
        if removed:
            logger.debug("watchlist remove", extra={"imdb_id": imdb_id})
        return removed

    def toggle_watched(self, imdb_id: str) -> WatchlistItem | None:
        # Rating and review are kept when going back to unwatched.
        with self._lock:
            item = self._items.get(imdb_id)
            if item is None:
                return None
            updated = item.model_copy(update={"watched": not item.watched})
            self._items[imdb_id] = updated
        logger.debug(
            "watchlist toggle watched", extra={"imdb_id": imdb_id, "watched": updated.watched}
        )
        return updated

    def mark_watched(self, imdb_id: str, watched: bool = True) -> WatchlistItem | None:
        """Set the watched flag without touching rating or review."""

        with self._lock:
            item = self._items.get(imdb_id)
            if item is None:
                return None
            updated = item.model_copy(update={"watched": watched})
            self._items[imdb_id] = updated
        return updated

    def save_review(self, imdb_id: str, rating: int, review: str) -> WatchlistItem | None:
        """Store a rating and review; saving a review always marks the item watched."""

        if isinstance(rating, bool) or not isinstance(rating, int):
            raise TypeError(f"rating must be an int, got {type(rating).__name__}")
        if not MIN_RATING <= rating <= MAX_RATING:
            raise ValueError(f"rating must be between {MIN_RATING} and {MAX_RATING}")

        with self._lock:
            item = self._items.get(imdb_id)
            if item is None:
                return None
            updated = item.model_copy(
                update={"rating": rating, "review": review, "watched": True}
            )
            self._items[imdb_id] = updated
        logger.debug("watchlist review saved", extra={"imdb_id": imdb_id, "rating": rating})
        return updated

    def unwatched(self) -> list[WatchlistItem]:
        return [m for m in self.items() if not m.watched]

    def watched(self) -> list[WatchlistItem]:
        return [m for m in self.items() if m.watched]

    def average_rating(self) -> float:
        return _average_rating(self.items())

    def stats(self) -> WatchlistStats:
        snapshot = self.items()
        watched = sum(1 for m in snapshot if m.watched)
        return WatchlistStats(
            total=len(snapshot),
            unwatched=len(snapshot) - watched,
            watched=watched,
            average_rating=_average_rating(snapshot),
        )
