"""
Listings module interfaces.

The remote feed is an external collaborator: the board consumes it through
IListingFeed and never depends on a concrete store. This enables testing with
the in-memory feed and running offline when Supabase is not configured.
"""

from typing import Any, Callable, Protocol, runtime_checkable

from .models import FeedQuery

SnapshotCallback = Callable[[list[dict[str, Any]]], None]
ErrorCallback = Callable[[Exception], None]


@runtime_checkable
class IFeedSubscription(Protocol):
    """Handle for a live feed subscription."""

    @property
    def active(self) -> bool:
        """Whether callbacks may still be delivered."""
        ...

    def unsubscribe(self) -> None:
        """
        Stop delivery. Idempotent; no callback fires after this returns.
        """
        ...


@runtime_checkable
class IListingFeed(Protocol):
    """
    Interface for the remote listing store.

    Snapshots are full, ordered result sets (not deltas). Each document is a
    dict with the store-assigned ``id`` plus the camelCase listing fields.
    """

    def subscribe(
        self,
        query: FeedQuery,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> IFeedSubscription:
        """
        Start receiving snapshots for query.

        Args:
            query: Ordering and limit for each snapshot
            on_snapshot: Called with every full snapshot
            on_error: Called when the feed fails; delivery may resume later

        Returns:
            Subscription handle
        """
        ...

    async def write(self, collection: str, document: dict[str, Any]) -> str:
        """
        Create a document.

        Returns:
            The store-assigned document ID

        Raises:
            RemoteUnavailableError: If the store cannot be reached
            RemoteRejectedError: If the store refuses the write
        """
        ...

    async def update(self, listing_id: str, patch: dict[str, Any]) -> None:
        """
        Merge patch into an existing document.

        Raises:
            RemoteUnavailableError: If the store cannot be reached
            RemoteRejectedError: If the store refuses the write
        """
        ...

    async def delete(self, listing_id: str) -> None:
        """
        Delete a document.

        Raises:
            RemoteUnavailableError: If the store cannot be reached
            RemoteRejectedError: If the store refuses the delete
        """
        ...
