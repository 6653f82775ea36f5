from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from threading import Lock
from typing import Literal

from movie_watchlist.core.catalog import (
    CatalogNotFoundError,
    CatalogUnavailableError,
    search_catalog,
)
from movie_watchlist.core.schemas import CatalogEntry

logger = logging.getLogger(__name__)

NETWORK_FAILURE_MESSAGE = "Failed to fetch movies. Please try again."

SearchErrorKind = Literal["not_found", "network_failure"]
Lookup = Callable[[str], list[CatalogEntry]]


@dataclass(frozen=True)
class SearchError:
    kind: SearchErrorKind
    message: str


@dataclass(frozen=True)
class SearchOutcome:
    query: str
    results: list[CatalogEntry] = field(default_factory=list)
    error: SearchError | None = None
    # Empty query: nothing was sent and nothing changed.
    skipped: bool = False
    # A newer search started while this one was in flight; its response was dropped.
    stale: bool = False


@dataclass(frozen=True)
class SearchState:
    query: str
    results: list[CatalogEntry]
    error: SearchError | None
    loading: bool


class SearchController:
    """Runs catalog searches and holds the latest results for the UI.

    Only the most recent search may update the visible state: every call takes
    a generation number and a response that comes back after a newer search
    has started is ignored. In-flight requests are not cancelled.
    """

    def __init__(self, lookup: Lookup | None = None) -> None:
        self._lookup = lookup or search_catalog
        self._lock = Lock()
        self._generation = 0
        self._pending: int | None = None
        self._query = ""
        self._results: list[CatalogEntry] = []
        self._error: SearchError | None = None

    @property
    def loading(self) -> bool:
        with self._lock:
            return self._pending is not None

    def state(self) -> SearchState:
        with self._lock:
            return SearchState(
                query=self._query,
                results=list(self._results),
                error=self._error,
                loading=self._pending is not None,
            )

    def search(self, query: str) -> SearchOutcome:
        term = (query or "").strip()
        if not term:
            return SearchOutcome(query="", skipped=True)

        with self._lock:
            self._generation += 1
            generation = self._generation
            self._pending = generation

        logger.info("catalog search started", extra={"query": term, "generation": generation})
        try:
            try:
                results = self._lookup(term)
                error = None
            except CatalogNotFoundError as e:
                results = []
                error = SearchError(kind="not_found", message=str(e))
            except CatalogUnavailableError as e:
                logger.warning("catalog search failed", extra={"query": term, "reason": str(e)})
                results = []
                error = SearchError(kind="network_failure", message=NETWORK_FAILURE_MESSAGE)

            with self._lock:
                if generation != self._generation:
                    logger.info(
                        "discarding stale search response",
                        extra={"query": term, "generation": generation},
                    )
                    return SearchOutcome(query=term, results=results, error=error, stale=True)

                self._query = term
                self._results = list(results)
                self._error = error

            logger.info(
                "catalog search finished",
                extra={
                    "query": term,
                    "result_count": len(results),
                    "error": error.kind if error else None,
                },
            )
            return SearchOutcome(query=term, results=list(results), error=error)
        finally:
            with self._lock:
                if self._pending == generation:
                    self._pending = None
