"""
Listing synchronization service.

Owns the remote feed subscription: parses each snapshot, hands it to the
ListingStore, records feed failures without clearing anything, and replays
deferred writes once the feed answers again.
"""

import asyncio
import logging
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from shared.clock import Clock, now_ms

from .expiry import active_listings
from .interfaces import IFeedSubscription, IListingFeed
from .lifecycle import LifecycleController
from .models import FeedQuery, Listing, parse_listing
from .store import ListingStore

logger = logging.getLogger(__name__)


class ListingSyncService:
    """
    Keeps a ListingStore in step with the remote feed.

    Callbacks are tagged with the subscription that produced them; after
    stop() (or a restart) callbacks from the old subscription are ignored.
    """

    def __init__(
        self,
        store: ListingStore,
        feed: IListingFeed,
        lifecycle: Optional[LifecycleController] = None,
        query: Optional[FeedQuery] = None,
        clock: Clock = now_ms,
    ):
        self._store = store
        self._feed = feed
        self._lifecycle = lifecycle
        self._query = query or FeedQuery()
        self._clock = clock

        self._subscription: Optional[IFeedSubscription] = None
        self._token: Optional[object] = None
        self._first_snapshot = asyncio.Event()
        self._flush_task: Optional[asyncio.Task] = None
        self._snapshots = 0
        self._skipped_documents = 0

    @property
    def running(self) -> bool:
        return self._token is not None

    @property
    def snapshots_received(self) -> int:
        return self._snapshots

    @property
    def skipped_documents(self) -> int:
        """Malformed documents dropped across all snapshots."""
        return self._skipped_documents

    @property
    def store(self) -> ListingStore:
        return self._store

    def start(self) -> None:
        """Subscribe to the feed. Calling start() while running does nothing."""
        if self._token is not None:
            return
        token = object()
        self._token = token
        logger.info(
            f"Subscribing to listing feed (order_by={self._query.order_by}, "
            f"descending={self._query.descending}, limit={self._query.limit})"
        )
        self._subscription = self._feed.subscribe(
            self._query,
            lambda documents: self._on_snapshot(token, documents),
            lambda error: self._on_error(token, error),
        )

    def stop(self) -> None:
        """Unsubscribe and cancel any deferred-write replay. Idempotent."""
        self._token = None
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
            logger.info("Unsubscribed from listing feed")
        if self._flush_task is not None and not self._flush_task.done():
            self._flush_task.cancel()
        self._flush_task = None

    async def wait_for_snapshot(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until the first snapshot has been applied.

        Returns:
            True if a snapshot arrived, False on timeout
        """
        try:
            await asyncio.wait_for(self._first_snapshot.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    def active_listings(self, now: Optional[int] = None) -> list[Listing]:
        """Active, unexpired listings in canonical order."""
        return active_listings(self._store.listings(), self._clock() if now is None else now)

    # -------------------------------------------------------------------------
    # Feed callbacks
    # -------------------------------------------------------------------------

    def _on_snapshot(self, token: object, documents: list[dict[str, Any]]) -> None:
        if token is not self._token:
            return

        listings: list[Listing] = []
        for document in documents:
            try:
                listings.append(parse_listing(document))
            except PydanticValidationError as e:
                self._skipped_documents += 1
                logger.warning(
                    f"Skipping malformed listing document {document.get('id', '<no id>')}: "
                    f"{e.error_count()} validation errors"
                )

        self._store.apply_remote_snapshot(listings)
        self._snapshots += 1
        self._first_snapshot.set()
        logger.debug(f"Applied snapshot #{self._snapshots} with {len(listings)} listings")

        if self._lifecycle is not None and self._lifecycle.has_pending:
            self._schedule_flush()

    def _on_error(self, token: object, error: Exception) -> None:
        if token is not self._token:
            return
        self._store.mark_stale(error)

    def _schedule_flush(self) -> None:
        if self._flush_task is not None and not self._flush_task.done():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; deferred writes stay queued")
            return
        self._flush_task = loop.create_task(self._lifecycle.flush_pending())
        self._flush_task.add_done_callback(self._on_flush_done)

    @staticmethod
    def _on_flush_done(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Replaying deferred listing writes failed: {error}")
