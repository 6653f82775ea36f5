from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

NO_POSTER = "N/A"

ItemState = Literal["unwatched", "watched-unrated", "watched-rated"]
WatchlistView = Literal["all", "unwatched", "watched"]


class CatalogEntry(BaseModel):
    """A search result as returned by the catalog (read-only here).

    Accepts both OMDb's field names (``imdbID``, ``Title``...) and our own.
    """

    model_config = ConfigDict(frozen=True)

    imdb_id: str = Field(validation_alias=AliasChoices("imdb_id", "imdbID"), min_length=1)
    title: str = Field(default="", validation_alias=AliasChoices("title", "Title"))
    year: str = Field(default="", validation_alias=AliasChoices("year", "Year"))
    poster: str = Field(default=NO_POSTER, validation_alias=AliasChoices("poster", "Poster"))
    kind: str | None = Field(default=None, validation_alias=AliasChoices("kind", "Type"))

    @property
    def has_poster(self) -> bool:
        return bool(self.poster) and self.poster != NO_POSTER


class WatchlistItem(BaseModel):
    # Stored items are shared with callers; the store swaps in copies instead.
    model_config = ConfigDict(frozen=True)

    imdb_id: str
    title: str
    year: str
    poster: str = NO_POSTER
    kind: str | None = None

    watched: bool = False
    # 0 means "unrated".
    rating: int = Field(default=0, ge=0, le=5)
    review: str = ""
    added_at: datetime

    @classmethod
    def from_entry(cls, entry: CatalogEntry, *, added_at: datetime) -> WatchlistItem:
        return cls(
            imdb_id=entry.imdb_id,
            title=entry.title,
            year=entry.year,
            poster=entry.poster,
            kind=entry.kind,
            added_at=added_at,
        )

    @property
    def has_poster(self) -> bool:
        return bool(self.poster) and self.poster != NO_POSTER

    @property
    def state(self) -> ItemState:
        if not self.watched:
            return "unwatched"
        return "watched-rated" if self.rating > 0 else "watched-unrated"


class WatchlistStats(BaseModel):
    total: int = Field(ge=0)
    unwatched: int = Field(ge=0)
    watched: int = Field(ge=0)
    average_rating: float = Field(ge=0.0, le=5.0)


class SearchErrorOut(BaseModel):
    kind: Literal["not_found", "network_failure"]
    message: str


class SearchResult(BaseModel):
    imdb_id: str
    title: str
    year: str
    poster: str
    kind: str | None = None
    has_poster: bool
    in_watchlist: bool


class SearchResponse(BaseModel):
    query: str
    loading: bool
    results: list[SearchResult]
    error: SearchErrorOut | None = None


class ReviewRequest(BaseModel):
    rating: int = Field(ge=0, le=5, strict=True)
    review: str = ""


class WatchlistItemOut(BaseModel):
    imdb_id: str
    title: str
    year: str
    poster: str
    kind: str | None = None
    has_poster: bool
    watched: bool
    rating: int
    review: str
    added_at: datetime
    state: ItemState


class AddResponse(BaseModel):
    added: bool
    item: WatchlistItemOut


class WatchlistResponse(BaseModel):
    view: WatchlistView
    items: list[WatchlistItemOut]
    stats: WatchlistStats
