"""
Recently viewed listings.

A per-identity list of listing ids, most recent first, bounded in length and
kept in the local key-value store. Read-only with respect to the board: it
never touches the ListingStore.
"""

from typing import Iterable

from shared.storage import IKeyValueStore

from .models import Listing

DEFAULT_HISTORY_LIMIT = 20


class RecentlyViewed:
    """Tracks which listings an identity opened last."""

    def __init__(self, storage: IKeyValueStore, limit: int = DEFAULT_HISTORY_LIMIT):
        if limit < 1:
            raise ValueError("History limit must be at least 1")
        self._storage = storage
        self._limit = limit

    @staticmethod
    def _key(identity_id: str) -> str:
        return f"history:recent:{identity_id}"

    def record_view(self, identity_id: str, listing_id: str) -> list[str]:
        """
        Move listing_id to the front of the identity's history.

        Returns:
            The updated id list
        """
        ids = [i for i in self.recent_ids(identity_id) if i != listing_id]
        ids.insert(0, listing_id)
        ids = ids[: self._limit]
        self._storage.set(self._key(identity_id), ids)
        return ids

    def recent_ids(self, identity_id: str) -> list[str]:
        stored = self._storage.get(self._key(identity_id), [])
        if not isinstance(stored, list):
            return []
        return [i for i in stored if isinstance(i, str)][: self._limit]

    def resolve(self, identity_id: str, listings: Iterable[Listing]) -> list[Listing]:
        """Listings from the history that are still known, in history order."""
        by_id = {listing.id: listing for listing in listings}
        return [by_id[i] for i in self.recent_ids(identity_id) if i in by_id]

    def clear(self, identity_id: str) -> None:
        self._storage.delete(self._key(identity_id))
