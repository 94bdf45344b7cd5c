"""
Assistant data models.
"""

from pydantic import BaseModel, Field


class Citation(BaseModel):
    """A web source the route analysis was grounded on."""

    model_config = {"frozen": True}

    title: str = Field(default="Source")
    uri: str = Field(default="#")


class RouteAnalysis(BaseModel):
    """Free-text advice for a route, with its sources."""

    model_config = {"frozen": True}

    text: str = Field(..., description="Advice on pricing and border conditions")
    citations: list[Citation] = Field(default_factory=list)
