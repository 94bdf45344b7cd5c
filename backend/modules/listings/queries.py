"""
Read-only listing queries used by the board views.

All functions take listings in canonical order (normally the output of
active_listings) and preserve that order.
"""

from typing import Iterable, Optional

from pydantic import BaseModel, Field

from .models import Listing, ListingKind, ListingStatus


class ProfileStats(BaseModel):
    """Counters shown on an owner's profile."""

    total: int = Field(default=0, description="Listings created by the owner")
    active: int = Field(default=0, description="Listings still in the active status")
    closed: int = Field(default=0, description="Listings marked fulfilled")


def search(
    listings: Iterable[Listing],
    kind: ListingKind | str | None = None,
    from_query: str = "",
    to_query: str = "",
) -> list[Listing]:
    """
    Listings whose route matches both queries.

    Matching is a case-insensitive substring test on each city; an empty
    query matches everything. With no kind, both kinds are searched.
    """
    kind = ListingKind(kind) if kind else None
    from_query = from_query.strip().lower()
    to_query = to_query.strip().lower()
    return [
        listing
        for listing in listings
        if (kind is None or listing.kind == kind)
        and from_query in listing.from_city.lower()
        and to_query in listing.to_city.lower()
    ]


def urgent(listings: Iterable[Listing], limit: Optional[int] = 5) -> list[Listing]:
    """Urgent listings for the home screen, newest first."""
    found = [listing for listing in listings if listing.urgent]
    return found if limit is None else found[:limit]


def owned_by(listings: Iterable[Listing], identity_id: Optional[str]) -> list[Listing]:
    """Listings created by identity_id. Nobody owns legacy entries without a creator."""
    if not identity_id:
        return []
    return [listing for listing in listings if listing.creator_id == identity_id]


def profile_stats(listings: Iterable[Listing], identity_id: Optional[str]) -> ProfileStats:
    mine = owned_by(listings, identity_id)
    return ProfileStats(
        total=len(mine),
        active=sum(1 for listing in mine if listing.status == ListingStatus.ACTIVE),
        closed=sum(1 for listing in mine if listing.status == ListingStatus.CLOSED),
    )


def count_by_kind(listings: Iterable[Listing]) -> dict[ListingKind, int]:
    counts = {kind: 0 for kind in ListingKind}
    for listing in listings:
        counts[ListingKind(listing.kind)] += 1
    return counts


# Spoken or typed "Ташкент в Москву": origin, separator, destination
ROUTE_SEPARATOR = " в "


def parse_route_query(text: str) -> tuple[str, str]:
    """
    Split a free-text route query into (from_query, to_query).

    Text containing the separator is split at its first occurrence; anything
    else is taken as the origin query alone.
    """
    if ROUTE_SEPARATOR in text:
        from_query, _, to_query = text.partition(ROUTE_SEPARATOR)
        return from_query.strip(), to_query.strip()
    return text.strip(), ""
