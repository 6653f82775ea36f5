from __future__ import annotations

from fastapi.testclient import TestClient

from movie_watchlist.api.app import create_app


def test_index_has_search_tabs_stats_and_review_dialog() -> None:
    client = TestClient(create_app())

    resp = client.get("/")
    assert resp.status_code == 200
    assert "text/html" in resp.headers["content-type"]

    body = resp.text
    assert "<title>Movie Watchlist</title>" in body
    for element_id in ["query", "search", "error", "stat_total", "stat_avg", "review_modal", "review_text"]:
        assert f'id="{element_id}"' in body, element_id
    for tab in ["search", "unwatched", "watched"]:
        assert f'data-tab="{tab}"' in body


def test_index_talks_to_the_watchlist_api() -> None:
    body = TestClient(create_app()).get("/").text

    assert "/api/search?q=" in body
    assert "/api/search/state" in body
    assert "/toggle-watched" in body
    assert "/review" in body
    assert "No movies in your watchlist yet!" in body
    assert "You haven't watched any movies yet!" in body
