"""
Active-listing projection.

Expiry is computed at view time: a listing whose deadline has passed drops
out of the active view while its stored status stays ``active``. Recompute on
demand; "now" keeps moving, so results must not be cached across time.
"""

from typing import Iterable, Optional

from shared.clock import now_ms

from .models import Listing, ListingStatus


def is_visible(listing: Listing, now: int) -> bool:
    """Active and either without a deadline or not yet past it."""
    if listing.status != ListingStatus.ACTIVE:
        return False
    return listing.expires_at is None or listing.expires_at > now


def active_listings(listings: Iterable[Listing], now: Optional[int] = None) -> list[Listing]:
    """
    Filter listings down to the active, visible subset.

    Args:
        listings: Listings in canonical order
        now: Current time in ms (defaults to the wall clock)

    Returns:
        Visible listings, in the order given
    """
    if now is None:
        now = now_ms()
    return [listing for listing in listings if is_visible(listing, now)]
