from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from movie_watchlist.core.schemas import CatalogEntry
from movie_watchlist.core.watchlist import WatchlistStore

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _entry(imdb_id: str, title: str = "Film") -> CatalogEntry:
    return CatalogEntry(imdb_id=imdb_id, title=title, year="2000", poster="N/A")


def _ticking_clock():
    ticks = iter(range(1000))
    return lambda: T0 + timedelta(minutes=next(ticks))


def test_add_initialises_defaults() -> None:
    store = WatchlistStore(clock=lambda: T0)
    item = store.add(_entry("tt1", "Alien"))

    assert item is not None
    assert item.title == "Alien"
    assert item.watched is False
    assert item.rating == 0
    assert item.review == ""
    assert item.added_at == T0
    assert item.state == "unwatched"


def test_add_same_identifier_twice_keeps_one_entry() -> None:
    store = WatchlistStore()
    first = store.add(_entry("tt1", "Alien"))
    second = store.add(_entry("tt1", "Alien (re-release)"))

    assert first is not None
    assert second is None
    assert len(store) == 1
    assert store.get("tt1").title == "Alien"


def test_add_preserves_insertion_order() -> None:
    store = WatchlistStore()
    for imdb_id in ["tt3", "tt1", "tt2"]:
        store.add(_entry(imdb_id))
    assert [m.imdb_id for m in store.items()] == ["tt3", "tt1", "tt2"]


def test_remove_missing_identifier_is_a_no_op() -> None:
    store = WatchlistStore()
    store.add(_entry("tt1"))
    before = store.items()

    assert store.remove("tt-missing") is False
    assert store.items() == before


def test_remove_deletes_from_any_state() -> None:
    store = WatchlistStore()
    store.add(_entry("tt1"))
    store.save_review("tt1", 4, "ok")

    assert store.remove("tt1") is True
    assert store.contains("tt1") is False
    assert len(store) == 0


def test_toggle_twice_restores_flag_and_keeps_rating() -> None:
    store = WatchlistStore()
    store.add(_entry("tt1"))
    store.save_review("tt1", 3, "fine")

    store.toggle_watched("tt1")
    middle = store.get("tt1")
    assert middle.watched is False
    # Retained even though the item is back to unwatched.
    assert middle.rating == 3
    assert middle.review == "fine"

    store.toggle_watched("tt1")
    after = store.get("tt1")
    assert after.watched is True
    assert after.rating == 3
    assert after.review == "fine"


def test_toggle_and_review_on_missing_identifier_return_none() -> None:
    store = WatchlistStore()
    assert store.toggle_watched("nope") is None
    assert store.save_review("nope", 5, "x") is None
    assert store.mark_watched("nope") is None
    assert len(store) == 0


def test_save_review_forces_watched() -> None:
    store = WatchlistStore()
    store.add(_entry("tt1"))

    item = store.save_review("tt1", 5, "Great film")
    assert item.watched is True
    assert item.rating == 5
    assert item.review == "Great film"
    assert item.state == "watched-rated"


@pytest.mark.parametrize("rating", [-1, 6, 100])
def test_save_review_rejects_out_of_range_rating(rating: int) -> None:
    store = WatchlistStore()
    store.add(_entry("tt1"))

    with pytest.raises(ValueError):
        store.save_review("tt1", rating, "")
    assert store.get("tt1").rating == 0
    assert store.get("tt1").watched is False


def test_mark_watched_leaves_rating_and_review_alone() -> None:
    store = WatchlistStore()
    store.add(_entry("tt1"))
    store.save_review("tt1", 2, "meh")

    item = store.mark_watched("tt1", False)
    assert item.watched is False
    assert item.rating == 2
    assert item.review == "meh"

    assert store.mark_watched("tt1").watched is True


def test_state_machine_transitions() -> None:
    store = WatchlistStore()
    store.add(_entry("tt1"))
    assert store.get("tt1").state == "unwatched"

    store.toggle_watched("tt1")
    assert store.get("tt1").state == "watched-unrated"

    store.toggle_watched("tt1")
    assert store.get("tt1").state == "unwatched"

    store.save_review("tt1", 4, "")
    assert store.get("tt1").state == "watched-rated"


def test_added_at_is_not_changed_by_mutations() -> None:
    store = WatchlistStore(clock=_ticking_clock())
    store.add(_entry("tt1"))
    store.add(_entry("tt2"))
    original = store.get("tt1").added_at

    store.toggle_watched("tt1")
    store.save_review("tt1", 5, "x")
    store.toggle_watched("tt1")

    assert store.get("tt1").added_at == original
    assert store.get("tt2").added_at == original + timedelta(minutes=1)


def test_average_rating_is_zero_without_rated_watched_items() -> None:
    store = WatchlistStore()
    assert store.average_rating() == 0.0

    store.add(_entry("tt1"))
    store.toggle_watched("tt1")
    assert store.average_rating() == 0.0


def test_average_rating_over_watched_rated_items() -> None:
    store = WatchlistStore()
    for imdb_id in ["tt1", "tt2", "tt3", "tt4"]:
        store.add(_entry(imdb_id))

    store.save_review("tt1", 3, "")
    store.save_review("tt2", 5, "")
    # Watched but unrated: excluded.
    store.toggle_watched("tt3")
    # Rated but toggled back to unwatched: excluded.
    store.save_review("tt4", 1, "")
    store.toggle_watched("tt4")

    assert store.average_rating() == 4.0
    stats = store.stats()
    assert stats.total == 4
    assert stats.watched == 3
    assert stats.unwatched == 1
    assert stats.average_rating == 4.0


def test_views_partition_the_store_for_random_operation_sequences() -> None:
    rng = random.Random(1234)
    store = WatchlistStore()
    ids = [f"tt{i}" for i in range(8)]

    for _ in range(300):
        imdb_id = rng.choice(ids)
        op = rng.choice(["add", "remove", "toggle", "review"])
        if op == "add":
            store.add(_entry(imdb_id))
        elif op == "remove":
            store.remove(imdb_id)
        elif op == "toggle":
            store.toggle_watched(imdb_id)
        else:
            store.save_review(imdb_id, rng.randint(0, 5), "r")

        unwatched = {m.imdb_id for m in store.unwatched()}
        watched = {m.imdb_id for m in store.watched()}
        assert len(unwatched) + len(watched) == len(store)
        assert not (unwatched & watched)
        assert all(0 <= m.rating <= 5 for m in store.items())
        assert len({m.imdb_id for m in store.items()}) == len(store)


def test_items_handed_out_cannot_be_modified() -> None:
    store = WatchlistStore()
    store.add(_entry("tt1"))

    with pytest.raises(ValidationError):
        store.get("tt1").rating = 42
    with pytest.raises(ValidationError):
        store.items()[0].watched = True

    assert store.get("tt1").rating == 0
    assert store.get("tt1").watched is False


@pytest.mark.parametrize("rating", [3.7, 4.0, True, "4", None])
def test_save_review_rejects_non_int_rating(rating) -> None:
    store = WatchlistStore()
    store.add(_entry("tt1"))

    with pytest.raises(TypeError):
        store.save_review("tt1", rating, "")
    assert store.get("tt1").rating == 0
    assert store.get("tt1").watched is False


def test_stats_average_matches_average_rating() -> None:
    store = WatchlistStore()
    for imdb_id, rating in [("tt1", 2), ("tt2", 5), ("tt3", 0)]:
        store.add(_entry(imdb_id))
        store.save_review(imdb_id, rating, "")
    store.add(_entry("tt4"))

    assert store.average_rating() == 3.5
    assert store.stats().average_rating == store.average_rating()
