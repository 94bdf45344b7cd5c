"""
Assistant interface.
"""

from typing import Optional, Protocol, runtime_checkable

from modules.listings.models import ListingKind

from .models import RouteAnalysis


@runtime_checkable
class IAssistant(Protocol):
    """
    Best-effort AI helpers for the create form.

    Implementations never raise: failures degrade to empty results.
    """

    async def suggest_cities(self, partial: str) -> list[str]:
        """Up to five city names matching partial; [] for fewer than two characters."""
        ...

    async def analyze_route(
        self,
        from_city: str,
        to_city: str,
        kind: ListingKind,
        details: Optional[str] = None,
    ) -> Optional[RouteAnalysis]:
        """Pricing and border advice for a route, or None if unavailable."""
        ...
