"""Tests for the recently viewed listings history."""

import pytest

from modules.listings.history import RecentlyViewed
from modules.listings.models import parse_listing
from shared.storage import InMemoryKeyValueStore

from factories import make_document


@pytest.fixture
def storage() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


class TestRecentlyViewed:
    def test_most_recent_first_without_duplicates(self, storage):
        history = RecentlyViewed(storage)
        history.record_view("u1", "a")
        history.record_view("u1", "b")
        history.record_view("u1", "a")

        assert history.recent_ids("u1") == ["a", "b"]

    def test_bounded(self, storage):
        history = RecentlyViewed(storage, limit=20)
        for index in range(25):
            history.record_view("u1", f"l{index}")

        ids = history.recent_ids("u1")
        assert len(ids) == 20
        assert ids[0] == "l24"
        assert ids[-1] == "l5"

    def test_per_identity(self, storage):
        history = RecentlyViewed(storage)
        history.record_view("u1", "a")

        assert history.recent_ids("u2") == []
        assert storage.get("history:recent:u1") == ["a"]

    def test_survives_new_instance(self, storage):
        RecentlyViewed(storage).record_view("u1", "a")
        assert RecentlyViewed(storage).recent_ids("u1") == ["a"]

    def test_ignores_corrupt_value(self, storage):
        storage.set("history:recent:u1", "not-a-list")
        assert RecentlyViewed(storage).recent_ids("u1") == []

    def test_resolve_skips_unknown_ids(self, storage):
        history = RecentlyViewed(storage)
        history.record_view("u1", "gone")
        history.record_view("u1", "a")
        listings = [parse_listing(make_document("a")), parse_listing(make_document("b"))]

        assert [item.id for item in history.resolve("u1", listings)] == ["a"]

    def test_clear(self, storage):
        history = RecentlyViewed(storage)
        history.record_view("u1", "a")
        history.clear("u1")
        assert history.recent_ids("u1") == []

    def test_limit_must_be_positive(self, storage):
        with pytest.raises(ValueError):
            RecentlyViewed(storage, limit=0)
