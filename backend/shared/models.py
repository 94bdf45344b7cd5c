"""
Shared data models used across modules.

These models are shared infrastructure, not business logic.
Module-specific models should stay in their respective module directories.
"""

from typing import Optional
from pydantic import BaseModel, Field


class Identity(BaseModel):
    """
    The account acting on the board.

    Supplied by the identity collaborator. Anonymous identities may browse
    but cannot create or mutate listings.
    """

    id: str = Field(..., min_length=1, description="Account ID")
    is_anonymous: bool = Field(default=False, description="Whether this is a guest session")
    display_name: Optional[str] = Field(None, description="Name shown on the profile")

    model_config = {
        "frozen": True,
        "extra": "ignore",
    }
