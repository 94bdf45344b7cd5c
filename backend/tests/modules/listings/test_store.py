"""Tests for the canonical listing store and merge rule."""

from modules.listings.models import ListingOrigin, parse_listing
from modules.listings.store import ListingStore, canonical_order, merge_and_deduplicate

from factories import BASE_TIME_MS, make_document


def remote(listing_id: str, created_at: int = BASE_TIME_MS, **overrides):
    return parse_listing(make_document(listing_id, created_at=created_at, **overrides))


def local(listing_id: str, created_at: int = BASE_TIME_MS, **overrides):
    return parse_listing(make_document(listing_id, created_at=created_at, **overrides), origin=ListingOrigin.LOCAL)


class TestCanonicalOrder:
    def test_newest_first(self):
        ordered = canonical_order([remote("a", 1), remote("b", 3), remote("c", 2)])
        assert [listing.id for listing in ordered] == ["b", "c", "a"]

    def test_ties_broken_by_id(self):
        ordered = canonical_order([remote("b", 5), remote("a", 5), remote("c", 5)])
        assert [listing.id for listing in ordered] == ["a", "b", "c"]


class TestMergeAndDeduplicate:
    def test_remote_wins_on_id_collision(self):
        merged = merge_and_deduplicate(
            [remote("x", to_city="Remote City")],
            [local("x", to_city="Local City")],
        )
        assert len(merged) == 1
        assert merged[0].to_city == "Remote City"
        assert merged[0].origin == ListingOrigin.REMOTE

    def test_keeps_local_only_entries(self):
        merged = merge_and_deduplicate([remote("r", 1)], [local("l", 2)])
        assert [listing.id for listing in merged] == ["l", "r"]

    def test_idempotent(self):
        r = [remote("a", 1), remote("b", 2)]
        l = [local("c", 3)]
        once = merge_and_deduplicate(r, l)
        twice = merge_and_deduplicate(once, [])
        assert once == twice

    def test_empty_inputs(self):
        assert merge_and_deduplicate([], []) == []


class TestApplyRemoteSnapshot:
    def test_replaces_remote_subset(self):
        store = ListingStore()
        store.apply_remote_snapshot([remote("a"), remote("b")])
        store.apply_remote_snapshot([remote("b")])

        assert [listing.id for listing in store.listings()] == ["b"]
        assert "a" not in store

    def test_preserves_local_entries(self):
        store = ListingStore()
        store.add_optimistic(local("pending"))
        store.apply_remote_snapshot([remote("a")])

        assert "pending" in store
        assert store.local_ids == frozenset({"pending"})

    def test_remote_supersedes_local_with_same_id(self):
        store = ListingStore()
        store.add_optimistic(local("x", to_city="Local"))
        store.apply_remote_snapshot([remote("x", to_city="Remote")])

        assert store.get("x").to_city == "Remote"
        assert store.local_ids == frozenset()
        assert len(store) == 1

    def test_duplicate_ids_in_snapshot(self):
        store = ListingStore()
        store.apply_remote_snapshot([remote("x", to_city="First"), remote("x", to_city="Second")])

        assert len(store) == 1
        assert store.get("x").to_city == "First"

    def test_forces_remote_origin(self):
        store = ListingStore()
        store.apply_remote_snapshot([local("x")])
        assert store.get("x").origin == ListingOrigin.REMOTE

    def test_clears_stale_flag(self):
        store = ListingStore()
        store.mark_stale(RuntimeError("offline"))
        store.apply_remote_snapshot([])

        assert store.is_stale is False
        assert store.last_error is None
        assert store.has_snapshot is True

    def test_empty_snapshot_keeps_locals(self):
        store = ListingStore()
        store.apply_remote_snapshot([remote("a")])
        store.add_optimistic(local("p"))
        store.apply_remote_snapshot([])

        assert [listing.id for listing in store.listings()] == ["p"]


class TestMarkStale:
    def test_keeps_last_known_state(self):
        store = ListingStore()
        store.apply_remote_snapshot([remote("a"), remote("b")])
        store.add_optimistic(local("p"))
        before = store.listings()
        version = store.version

        error = RuntimeError("connection lost")
        store.mark_stale(error)

        assert store.listings() == before
        assert store.is_stale is True
        assert store.last_error is error
        assert store.version == version


class TestOptimisticEntries:
    def test_add_marks_local(self):
        store = ListingStore()
        store.add_optimistic(remote("p"))
        assert store.get("p").is_local is True

    def test_confirm_swaps_id(self):
        store = ListingStore()
        placeholder = local("local-1")
        store.add_optimistic(placeholder)

        confirmed = store.confirm_optimistic("local-1", placeholder.model_copy(update={"id": "remote-1"}))

        assert confirmed.id == "remote-1"
        assert confirmed.is_local is True
        assert "local-1" not in store
        assert [listing.id for listing in store.listings()] == ["remote-1"]

    def test_confirm_after_snapshot_keeps_remote_entry(self):
        store = ListingStore()
        placeholder = local("local-1")
        store.add_optimistic(placeholder)
        store.apply_remote_snapshot([remote("remote-1", to_city="From Server")])

        confirmed = store.confirm_optimistic("local-1", placeholder.model_copy(update={"id": "remote-1"}))

        assert confirmed.origin == ListingOrigin.REMOTE
        assert confirmed.to_city == "From Server"
        assert len(store) == 1

    def test_discard(self):
        store = ListingStore()
        store.add_optimistic(local("p"))

        assert store.discard_optimistic("p").id == "p"
        assert "p" not in store
        assert store.discard_optimistic("p") is None


class TestUpsertAndRemove:
    def test_upsert_keeps_remote_side(self):
        store = ListingStore()
        store.apply_remote_snapshot([remote("a")])
        store.upsert(store.get("a").model_copy(update={"urgent": True}))

        assert store.get("a").urgent is True
        assert store.get("a").origin == ListingOrigin.REMOTE
        assert store.local_ids == frozenset()

    def test_upsert_unknown_goes_local(self):
        store = ListingStore()
        store.upsert(remote("new"))
        assert store.local_ids == frozenset({"new"})

    def test_remove(self):
        store = ListingStore()
        store.apply_remote_snapshot([remote("a")])

        assert store.remove("a").id == "a"
        assert store.remove("a") is None
        assert len(store) == 0


class TestChangeNotification:
    def test_listener_receives_new_view(self):
        store = ListingStore()
        seen = []
        store.on_change(seen.append)

        store.apply_remote_snapshot([remote("a")])
        store.add_optimistic(local("p", created_at=BASE_TIME_MS + 1))

        assert [[listing.id for listing in view] for view in seen] == [["a"], ["p", "a"]]

    def test_unsubscribe(self):
        store = ListingStore()
        seen = []
        unsubscribe = store.on_change(seen.append)
        unsubscribe()
        unsubscribe()

        store.apply_remote_snapshot([remote("a")])
        assert seen == []

    def test_view_is_immutable_snapshot(self):
        store = ListingStore()
        store.apply_remote_snapshot([remote("a")])
        view = store.listings()
        store.apply_remote_snapshot([remote("b")])

        assert isinstance(view, tuple)
        assert [listing.id for listing in view] == ["a"]
