"""
Canonical in-memory listing set.

Merges full remote snapshots with optimistic local entries. The merged view
is an immutable tuple rebuilt on every mutation and swapped in with a single
assignment, so a reader never observes a half-applied merge.
"""

import logging
from typing import Callable, Iterable, Optional

from .models import Listing, ListingOrigin

logger = logging.getLogger(__name__)

StoreListener = Callable[[tuple[Listing, ...]], None]


def canonical_order(listings: Iterable[Listing]) -> list[Listing]:
    """Newest first by created_at; ties broken by id ascending."""
    return sorted(listings, key=lambda listing: (-listing.created_at, listing.id))


def merge_and_deduplicate(remote: Iterable[Listing], local: Iterable[Listing]) -> list[Listing]:
    """
    Merge remote and local listings into one de-duplicated list.

    Entries are keyed by id. When both sides carry the same id the remote
    entry wins, since it is authoritative once a write has round-tripped.

    Returns:
        Each id at most once, in canonical order
    """
    by_id: dict[str, Listing] = {}
    for listing in local:
        by_id[listing.id] = listing
    for listing in remote:
        by_id[listing.id] = listing
    return canonical_order(by_id.values())


class ListingStore:
    """
    Single source of truth for all known listings.

    Remote entries are replaced wholesale by each snapshot. Local entries are
    optimistic placeholders (and confirmed writes not yet seen in a snapshot);
    they survive snapshots until a remote entry with the same id shows up.
    """

    def __init__(self) -> None:
        self._remote: dict[str, Listing] = {}
        self._local: dict[str, Listing] = {}
        self._view: tuple[Listing, ...] = ()
        self._version = 0
        self._stale = False
        self._last_error: Optional[Exception] = None
        self._snapshot_received = False
        self._listeners: list[StoreListener] = []

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def listings(self) -> tuple[Listing, ...]:
        """The canonical set, newest first."""
        return self._view

    def get(self, listing_id: str) -> Optional[Listing]:
        return self._remote.get(listing_id) or self._local.get(listing_id)

    def __contains__(self, listing_id: object) -> bool:
        return listing_id in self._remote or listing_id in self._local

    def __len__(self) -> int:
        return len(self._view)

    @property
    def version(self) -> int:
        """Incremented on every mutation."""
        return self._version

    @property
    def local_ids(self) -> frozenset[str]:
        return frozenset(self._local)

    @property
    def is_stale(self) -> bool:
        """Whether the last feed event was an error."""
        return self._stale

    @property
    def last_error(self) -> Optional[Exception]:
        return self._last_error

    @property
    def has_snapshot(self) -> bool:
        return self._snapshot_received

    # -------------------------------------------------------------------------
    # Remote snapshots
    # -------------------------------------------------------------------------

    def apply_remote_snapshot(self, items: Iterable[Listing]) -> None:
        """
        Replace the remote-origin subset with a full snapshot.

        Local entries whose id now appears remotely are dropped (remote wins);
        the rest are preserved.
        """
        remote: dict[str, Listing] = {}
        for listing in items:
            if listing.id in remote:
                logger.debug(f"Duplicate id in snapshot ignored: {listing.id}")
                continue
            if listing.origin != ListingOrigin.REMOTE:
                listing = listing.model_copy(update={"origin": ListingOrigin.REMOTE})
            remote[listing.id] = listing

        superseded = [listing_id for listing_id in self._local if listing_id in remote]
        local = {k: v for k, v in self._local.items() if k not in remote}

        self._remote = remote
        self._local = local
        self._stale = False
        self._last_error = None
        self._snapshot_received = True
        if superseded:
            logger.debug(f"Snapshot superseded {len(superseded)} local entries")
        self._commit()

    def mark_stale(self, error: Exception) -> None:
        """
        Record a feed failure.

        The last known-good snapshot and all local entries are kept.
        """
        self._stale = True
        self._last_error = error
        logger.warning(f"Listing feed error, serving last known state ({len(self._view)} listings): {error}")

    # -------------------------------------------------------------------------
    # Optimistic entries
    # -------------------------------------------------------------------------

    def add_optimistic(self, listing: Listing) -> None:
        """Insert a placeholder for a write that has not round-tripped yet."""
        if listing.origin != ListingOrigin.LOCAL:
            listing = listing.model_copy(update={"origin": ListingOrigin.LOCAL})
        self._local[listing.id] = listing
        self._commit()

    def confirm_optimistic(self, local_id: str, confirmed: Listing) -> Listing:
        """
        Replace a placeholder with the entry carrying the server-assigned id.

        If a snapshot already delivered that id, the remote entry is kept.

        Returns:
            The entry now in the canonical set for the confirmed id
        """
        self._local.pop(local_id, None)
        if confirmed.id in self._remote:
            self._commit()
            return self._remote[confirmed.id]
        if confirmed.origin != ListingOrigin.LOCAL:
            confirmed = confirmed.model_copy(update={"origin": ListingOrigin.LOCAL})
        self._local[confirmed.id] = confirmed
        self._commit()
        return confirmed

    def discard_optimistic(self, local_id: str) -> Optional[Listing]:
        """Remove a placeholder whose write was rejected."""
        listing = self._local.pop(local_id, None)
        if listing is not None:
            self._commit()
        return listing

    # -------------------------------------------------------------------------
    # Bookkeeping primitives for the lifecycle controller
    # -------------------------------------------------------------------------

    def upsert(self, listing: Listing) -> None:
        """Insert or replace an entry, keeping it on the side it lives on."""
        if listing.id in self._remote:
            self._remote[listing.id] = listing.model_copy(update={"origin": ListingOrigin.REMOTE})
        else:
            self._local[listing.id] = listing.model_copy(update={"origin": ListingOrigin.LOCAL})
        self._commit()

    def remove(self, listing_id: str) -> Optional[Listing]:
        """Remove an entry from both sides. Returns the removed entry, if any."""
        removed = self._remote.pop(listing_id, None)
        local = self._local.pop(listing_id, None)
        removed = removed or local
        if removed is not None:
            self._commit()
        return removed

    # -------------------------------------------------------------------------
    # Change notification
    # -------------------------------------------------------------------------

    def on_change(self, listener: StoreListener) -> Callable[[], None]:
        """
        Register a listener called with the new canonical tuple after each mutation.

        Returns:
            A callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self) -> None:
        self._view = tuple(merge_and_deduplicate(self._remote.values(), self._local.values()))
        self._version += 1
        for listener in list(self._listeners):
            listener(self._view)
