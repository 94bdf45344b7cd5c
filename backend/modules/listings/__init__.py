"""
Listings module.

Keeps the board's canonical listing set in sync with the remote feed and is
the single authority for listing mutations.

Public API:
- ListingStore / merge_and_deduplicate: canonical set and merge rule
- active_listings: view-time expiry filter
- LifecycleController / TRANSITIONS: mutations and the status state machine
- ListingSyncService: remote feed subscription
- IListingFeed, InMemoryListingFeed, SupabaseListingFeed: remote feed port and adapters
- RecentlyViewed, queries: read-only consumers
- Listing exceptions: ListingForbiddenError, InvalidTransitionError, etc.
"""

from .interfaces import IListingFeed, IFeedSubscription
from .models import (
    Listing,
    TruckListing,
    CargoListing,
    ListingKind,
    ListingStatus,
    ListingOrigin,
    TruckType,
    Currency,
    ListingPatch,
    FeedQuery,
    parse_listing,
)
from .store import ListingStore, merge_and_deduplicate, canonical_order
from .expiry import active_listings, is_visible
from .lifecycle import LifecycleController, TRANSITIONS, allowed_transitions, is_terminal
from .feed import InMemoryListingFeed, FeedSubscription
from .sync import ListingSyncService
from .history import RecentlyViewed
from .exceptions import (
    ListingError,
    ListingNotFoundError,
    ListingForbiddenError,
    InvalidTransitionError,
    ListingValidationError,
    RemoteUnavailableError,
    RemoteRejectedError,
    ListingWriteFailedError,
)

__all__ = [
    # Interfaces
    "IListingFeed",
    "IFeedSubscription",
    # Models
    "Listing",
    "TruckListing",
    "CargoListing",
    "ListingKind",
    "ListingStatus",
    "ListingOrigin",
    "TruckType",
    "Currency",
    "ListingPatch",
    "FeedQuery",
    "parse_listing",
    # Components
    "ListingStore",
    "merge_and_deduplicate",
    "canonical_order",
    "active_listings",
    "is_visible",
    "LifecycleController",
    "TRANSITIONS",
    "allowed_transitions",
    "is_terminal",
    "InMemoryListingFeed",
    "FeedSubscription",
    "ListingSyncService",
    "RecentlyViewed",
    # Exceptions
    "ListingError",
    "ListingNotFoundError",
    "ListingForbiddenError",
    "InvalidTransitionError",
    "ListingValidationError",
    "RemoteUnavailableError",
    "RemoteRejectedError",
    "ListingWriteFailedError",
]
