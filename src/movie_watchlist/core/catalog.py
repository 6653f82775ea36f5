from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import ValidationError

from movie_watchlist.core.schemas import CatalogEntry

OMDB_BASE = "https://www.omdbapi.com/"
DEFAULT_NOT_FOUND_MESSAGE = "No movies found"


class CatalogError(RuntimeError):
    pass


class CatalogConfigError(CatalogError):
    pass


class CatalogNotFoundError(CatalogError):
    pass


class CatalogUnavailableError(CatalogError):
    pass


@dataclass(frozen=True)
class CatalogConfig:
    api_key: str
    base_url: str = OMDB_BASE
    timeout_s: float | None = None


def load_catalog_config() -> CatalogConfig:
    raw_timeout = os.environ.get("MOVIE_WATCHLIST_OMDB_TIMEOUT_S", "").strip()
    return CatalogConfig(
        api_key=os.environ.get("MOVIE_WATCHLIST_OMDB_API_KEY", "").strip(),
        base_url=os.environ.get("MOVIE_WATCHLIST_OMDB_URL", OMDB_BASE).strip() or OMDB_BASE,
        timeout_s=float(raw_timeout) if raw_timeout else None,
    )


def fetch_search_payload(
    query: str,
    *,
    client: httpx.Client | None = None,
    config: CatalogConfig | None = None,
) -> dict[str, Any]:
    """Issue a single search request and return the decoded JSON body.

    Anything that stops us from getting a JSON object back (transport error,
    HTTP error status, undecodable body) is reported as CatalogUnavailableError.
    """

    config = config or load_catalog_config()
    if not config.api_key:
        raise CatalogConfigError("Catalog API key is not configured")

    close_client = False
    if client is None:
        # Without an explicit timeout we keep httpx's own default.
        extra: dict[str, Any] = {}
        if config.timeout_s is not None:
            extra["timeout"] = config.timeout_s
        client = httpx.Client(
            headers={
                "User-Agent": "movie-watchlist/0.1",
                "Accept": "application/json",
            },
            follow_redirects=True,
            **extra,
        )
        close_client = True

    try:
        try:
            resp = client.get(config.base_url, params={"s": query, "apikey": config.api_key})
        except httpx.HTTPError as e:
            raise CatalogUnavailableError(f"Catalog request failed: {e}") from e

        try:
            payload = resp.json()
        except ValueError:
            payload = None

        if resp.status_code >= 400:
            # OMDb reports a bad key or an exhausted quota as a 401 that still
            # carries the Response flag; let the parser surface its message.
            if isinstance(payload, dict) and "Response" in payload:
                return payload
            raise CatalogUnavailableError(f"Catalog responded with {resp.status_code}")

        if not isinstance(payload, dict):
            raise CatalogUnavailableError("Catalog returned a malformed response")
        return payload
    finally:
        if close_client:
            client.close()


def _is_success(flag: Any) -> bool:
    # OMDb sends the flag as the string "True"/"False".
    if isinstance(flag, bool):
        return flag
    return isinstance(flag, str) and flag.strip().lower() == "true"


def parse_search_payload(payload: dict[str, Any]) -> list[CatalogEntry]:
    """Turn a catalog search payload into entries.

    The result list is returned exactly as the service ordered it.
    """

    if not _is_success(payload.get("Response")):
        message = payload.get("Error")
        if not isinstance(message, str) or not message.strip():
            message = DEFAULT_NOT_FOUND_MESSAGE
        raise CatalogNotFoundError(message)

    records = payload.get("Search")
    if not isinstance(records, list):
        raise CatalogUnavailableError("Catalog returned a malformed response")

    try:
        return [CatalogEntry.model_validate(r) for r in records]
    except ValidationError as e:
        raise CatalogUnavailableError("Catalog returned a malformed response") from e


def search_catalog(
    query: str,
    *,
    client: httpx.Client | None = None,
    config: CatalogConfig | None = None,
) -> list[CatalogEntry]:
    payload = fetch_search_payload(query, client=client, config=config)
    return parse_search_payload(payload)
