"""
Supabase-backed listing feed.

Encapsulates all Supabase queries for the ``listings`` table. Columns use the
same camelCase names as the listing documents. Snapshots are produced by
polling: each poll fetches the full ordered result set and delivers it when
it differs from the previous one. Supabase client calls are blocking and run
in a worker thread so the event loop stays responsive.
"""

import asyncio
import logging
from typing import Any

from supabase import Client

from shared.repository import BaseRepository

from .exceptions import RemoteRejectedError, RemoteUnavailableError
from .feed import FeedSubscription
from .interfaces import ErrorCallback, SnapshotCallback
from .models import FeedQuery

logger = logging.getLogger(__name__)


class SupabaseListingFeed(BaseRepository[dict[str, Any]]):
    """
    IListingFeed over a Supabase table.

    Note: This repository does NOT perform authorization checks.
    The lifecycle controller verifies ownership before any write.
    """

    def __init__(self, db: Client, table: str = "listings", poll_interval: float = 5.0) -> None:
        super().__init__(db, table)
        self._poll_interval = poll_interval

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    def fetch_snapshot(self, query: FeedQuery) -> list[dict[str, Any]]:
        """
        Fetch one full snapshot.

        Raises:
            RemoteUnavailableError: If Supabase cannot be reached
            RemoteRejectedError: If the query is refused
        """
        result = self._run(
            "subscribe",
            lambda: self._query()
            .select("*")
            .order(query.order_by, desc=query.descending)
            .limit(query.limit)
            .execute(),
        )
        return [self._map_row(row) for row in result.data or []]

    def subscribe(
        self,
        query: FeedQuery,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> FeedSubscription:
        """
        Start polling for snapshots. Must be called with a running event loop.
        """
        loop = asyncio.get_running_loop()
        subscription = FeedSubscription()
        task = loop.create_task(self._poll(query, on_snapshot, on_error, subscription))
        task.add_done_callback(lambda done: self._poll_stopped(done, on_error, subscription))
        subscription.set_cancel_hook(task.cancel)
        return subscription

    async def _poll(
        self,
        query: FeedQuery,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
        subscription: FeedSubscription,
    ) -> None:
        previous: list[dict[str, Any]] | None = None
        while subscription.active:
            try:
                documents = await asyncio.to_thread(self.fetch_snapshot, query)
            except (RemoteUnavailableError, RemoteRejectedError) as e:
                if subscription.active:
                    _notify(on_error, e)
                previous = None
            else:
                if subscription.active and documents != previous:
                    _notify(on_snapshot, documents)
                    previous = documents
            await asyncio.sleep(self._poll_interval)

    @staticmethod
    def _poll_stopped(
        task: asyncio.Task,
        on_error: ErrorCallback,
        subscription: FeedSubscription,
    ) -> None:
        """Report a polling task that died on something other than cancellation."""
        if task.cancelled() or task.exception() is None:
            return
        error = task.exception()
        logger.error(f"Listing poll stopped: {error!r}", exc_info=error)
        if subscription.active:
            _notify(on_error, RemoteRejectedError("subscribe", str(error)))

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def write(self, collection: str, document: dict[str, Any]) -> str:
        result = await asyncio.to_thread(
            self._run,
            "write",
            lambda: self._query(collection).insert(document).execute(),
        )
        if not result.data:
            raise RemoteRejectedError("write", "insert returned no row")
        document_id = str(result.data[0]["id"])
        logger.debug(f"Inserted listing {document_id} into {collection}")
        return document_id

    async def update(self, listing_id: str, patch: dict[str, Any]) -> None:
        await asyncio.to_thread(
            self._run,
            "update",
            lambda: self._query().update(patch).eq("id", listing_id).execute(),
        )

    async def delete(self, listing_id: str) -> None:
        await asyncio.to_thread(
            self._run,
            "delete",
            lambda: self._query().delete().eq("id", listing_id).execute(),
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def rejected(self, operation: str, reason: str) -> Exception:
        return RemoteRejectedError(operation, reason)

    def unavailable(self, operation: str, reason: str) -> Exception:
        return RemoteUnavailableError(operation, reason)

    @staticmethod
    def _map_row(row: dict[str, Any]) -> dict[str, Any]:
        """Map a table row to a listing document."""
        return {key: value for key, value in row.items() if value is not None} | {"id": str(row["id"])}


def _notify(callback, payload) -> None:
    """Invoke a subscriber callback; a failing subscriber must not end the poll."""
    try:
        callback(payload)
    except Exception:
        logger.exception("Listing feed subscriber raised")
