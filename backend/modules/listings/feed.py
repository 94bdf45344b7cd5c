"""
In-memory listing feed.

Implements IListingFeed without a network: snapshots are delivered
synchronously on subscribe and after every write. Used as the offline
fallback when Supabase is not configured, and by tests, which can take the
feed offline or make it reject writes.
"""

import copy
import logging
import uuid
from typing import Any, Callable, Iterable, Optional

from .exceptions import RemoteRejectedError, RemoteUnavailableError
from .interfaces import ErrorCallback, SnapshotCallback
from .models import FeedQuery

logger = logging.getLogger(__name__)


class FeedSubscription:
    """Subscription handle whose unsubscribe runs its cancel hook at most once."""

    def __init__(self, on_cancel: Optional[Callable[[], None]] = None):
        self._active = True
        self._on_cancel = on_cancel

    @property
    def active(self) -> bool:
        return self._active

    def set_cancel_hook(self, on_cancel: Callable[[], None]) -> None:
        """Attach the hook run by the first unsubscribe."""
        self._on_cancel = on_cancel

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        if self._on_cancel is not None:
            self._on_cancel()
            self._on_cancel = None


class _Subscriber:
    def __init__(
        self,
        query: FeedQuery,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
        subscription: FeedSubscription,
    ):
        self.query = query
        self.on_snapshot = on_snapshot
        self.on_error = on_error
        self.subscription = subscription


def order_documents(documents: Iterable[dict[str, Any]], query: FeedQuery) -> list[dict[str, Any]]:
    """Apply a feed query's ordering and limit to raw documents."""
    ordered = sorted(documents, key=lambda doc: str(doc.get("id", "")))
    ordered.sort(key=lambda doc: doc.get(query.order_by) or 0, reverse=query.descending)
    return ordered[: query.limit]


class InMemoryListingFeed:
    """Listing feed backed by a dict, with failure injection."""

    def __init__(
        self,
        documents: Optional[Iterable[dict[str, Any]]] = None,
        collection: str = "listings",
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self._collection = collection
        self._documents: dict[str, dict[str, Any]] = {}
        self._subscribers: list[_Subscriber] = []
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex)
        self._online = True
        self._reject_reason: Optional[str] = None
        for document in documents or []:
            self.seed(document)

    # -------------------------------------------------------------------------
    # Test and offline controls
    # -------------------------------------------------------------------------

    def seed(self, document: dict[str, Any]) -> None:
        """Store a document (which must carry an id) without notifying subscribers."""
        if not document.get("id"):
            raise ValueError("Seeded documents need an id")
        self._documents[document["id"]] = copy.deepcopy(document)

    def set_online(self, online: bool) -> None:
        """
        Simulate connectivity changes.

        Going offline reports an error to subscribers; coming back online
        delivers a fresh snapshot.
        """
        if online == self._online:
            return
        self._online = online
        if online:
            self.publish()
        else:
            self.emit_error(RemoteUnavailableError("subscribe", "connection lost"))

    def reject_writes(self, reason: Optional[str]) -> None:
        """Make every write fail permanently with reason; None restores normal writes."""
        self._reject_reason = reason

    def emit_error(self, error: Exception) -> None:
        for subscriber in self._live_subscribers():
            subscriber.on_error(error)

    def publish(self) -> None:
        """Deliver the current snapshot to every live subscriber."""
        if not self._online:
            return
        for subscriber in self._live_subscribers():
            subscriber.on_snapshot(self.snapshot(subscriber.query))

    def snapshot(self, query: FeedQuery) -> list[dict[str, Any]]:
        return [copy.deepcopy(doc) for doc in order_documents(self._documents.values(), query)]

    @property
    def documents(self) -> dict[str, dict[str, Any]]:
        return copy.deepcopy(self._documents)

    @property
    def subscriber_count(self) -> int:
        return len(self._live_subscribers())

    # -------------------------------------------------------------------------
    # IListingFeed
    # -------------------------------------------------------------------------

    def subscribe(
        self,
        query: FeedQuery,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> FeedSubscription:
        subscriber: Optional[_Subscriber] = None

        def cancel() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        subscription = FeedSubscription(on_cancel=cancel)
        subscriber = _Subscriber(query, on_snapshot, on_error, subscription)
        self._subscribers.append(subscriber)

        if self._online:
            on_snapshot(self.snapshot(query))
        else:
            on_error(RemoteUnavailableError("subscribe", "offline"))
        return subscription

    async def write(self, collection: str, document: dict[str, Any]) -> str:
        self._check_writable("write")
        if collection != self._collection:
            raise RemoteRejectedError("write", f"unknown collection: {collection}")
        document_id = self._id_factory()
        self._documents[document_id] = {**copy.deepcopy(document), "id": document_id}
        logger.debug(f"Stored document {document_id} in {collection}")
        self.publish()
        return document_id

    async def update(self, listing_id: str, patch: dict[str, Any]) -> None:
        self._check_writable("update")
        if listing_id not in self._documents:
            raise RemoteRejectedError("update", f"document not found: {listing_id}")
        self._documents[listing_id].update(copy.deepcopy(patch))
        self.publish()

    async def delete(self, listing_id: str) -> None:
        self._check_writable("delete")
        self._documents.pop(listing_id, None)
        self.publish()

    def _check_writable(self, operation: str) -> None:
        if not self._online:
            raise RemoteUnavailableError(operation, "offline")
        if self._reject_reason is not None:
            raise RemoteRejectedError(operation, self._reject_reason)

    def _live_subscribers(self) -> list[_Subscriber]:
        return [s for s in self._subscribers if s.subscription.active]
