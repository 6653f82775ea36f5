from __future__ import annotations

from fastapi.testclient import TestClient

from movie_watchlist.api.app import create_app
from movie_watchlist.core.watchlist import WatchlistStore

ALIEN = {"imdbID": "tt0078748", "Title": "Alien", "Year": "1979", "Poster": "N/A", "Type": "movie"}
HEAT = {"imdb_id": "tt0113277", "title": "Heat", "year": "1995", "poster": "https://img/heat.jpg"}


def _client() -> tuple[TestClient, WatchlistStore]:
    store = WatchlistStore()
    return TestClient(create_app(store=store)), store


def test_add_returns_201_then_200_for_duplicates() -> None:
    client, store = _client()

    r1 = client.post("/api/watchlist", json=ALIEN)
    assert r1.status_code == 201
    body = r1.json()
    assert body["added"] is True
    assert body["item"]["imdb_id"] == "tt0078748"
    assert body["item"]["title"] == "Alien"
    assert body["item"]["has_poster"] is False
    assert body["item"]["watched"] is False
    assert body["item"]["rating"] == 0
    assert body["item"]["state"] == "unwatched"

    r2 = client.post("/api/watchlist", json=ALIEN)
    assert r2.status_code == 200
    assert r2.json()["added"] is False
    assert len(store) == 1


def test_add_rejects_entry_without_identifier() -> None:
    client, store = _client()
    resp = client.post("/api/watchlist", json={"title": "Nameless"})
    assert resp.status_code == 422
    assert len(store) == 0


def test_views_and_stats() -> None:
    client, _ = _client()
    client.post("/api/watchlist", json=ALIEN)
    client.post("/api/watchlist", json=HEAT)
    client.put("/api/watchlist/tt0113277/review", json={"rating": 4, "review": "Tense"})

    all_items = client.get("/api/watchlist").json()
    assert all_items["view"] == "all"
    assert [m["imdb_id"] for m in all_items["items"]] == ["tt0078748", "tt0113277"]
    assert all_items["stats"] == {"total": 2, "unwatched": 1, "watched": 1, "average_rating": 4.0}

    unwatched = client.get("/api/watchlist", params={"view": "unwatched"}).json()
    assert [m["imdb_id"] for m in unwatched["items"]] == ["tt0078748"]

    watched = client.get("/api/watchlist", params={"view": "watched"}).json()
    assert [m["imdb_id"] for m in watched["items"]] == ["tt0113277"]
    assert watched["items"][0]["has_poster"] is True

    assert client.get("/api/watchlist/stats").json()["average_rating"] == 4.0


def test_unknown_view_is_rejected() -> None:
    client, _ = _client()
    assert client.get("/api/watchlist", params={"view": "later"}).status_code == 422


def test_get_item_for_review_dialog() -> None:
    client, _ = _client()
    client.post("/api/watchlist", json=HEAT)

    resp = client.get("/api/watchlist/tt0113277")
    assert resp.status_code == 200
    assert resp.json()["title"] == "Heat"

    assert client.get("/api/watchlist/tt-missing").status_code == 404


def test_toggle_watched() -> None:
    client, _ = _client()
    client.post("/api/watchlist", json=ALIEN)

    r1 = client.post("/api/watchlist/tt0078748/toggle-watched")
    assert r1.status_code == 200
    assert r1.json()["watched"] is True
    assert r1.json()["state"] == "watched-unrated"

    r2 = client.post("/api/watchlist/tt0078748/toggle-watched")
    assert r2.json()["watched"] is False

    assert client.post("/api/watchlist/tt-missing/toggle-watched").status_code == 404


def test_review_validation_and_missing_item() -> None:
    client, store = _client()
    client.post("/api/watchlist", json=ALIEN)

    assert client.put("/api/watchlist/tt0078748/review", json={"rating": 6}).status_code == 422
    assert client.put("/api/watchlist/tt0078748/review", json={"rating": -1}).status_code == 422
    assert client.put("/api/watchlist/tt0078748/review", json={"rating": 3.7}).status_code == 422
    assert client.put("/api/watchlist/tt0078748/review", json={"rating": True}).status_code == 422
    assert store.get("tt0078748").watched is False

    resp = client.put("/api/watchlist/tt-missing/review", json={"rating": 3, "review": ""})
    assert resp.status_code == 404


def test_remove_is_idempotent() -> None:
    client, store = _client()
    client.post("/api/watchlist", json=ALIEN)

    assert client.delete("/api/watchlist/tt0078748").status_code == 204
    assert client.delete("/api/watchlist/tt0078748").status_code == 204
    assert len(store) == 0
