"""
Subscription gate data models.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from modules.listings.models import ListingKind

# What the user asked to create; released once the gate is satisfied
CreateIntent = ListingKind


class GateState(str, Enum):
    """Gate flow states. Only UNLOCKED is persisted."""

    LOCKED = "locked"
    AWAITING_EXTERNAL_ACTION = "awaiting_external_action"
    VERIFYING = "verifying"      # Countdown running
    CONFIRMABLE = "confirmable"  # Countdown finished, waiting for confirm()
    UNLOCKED = "unlocked"


class GateSnapshot(BaseModel):
    """Point-in-time view of the gate for the UI."""

    model_config = {"frozen": True}

    state: GateState = Field(..., description="Current flow state")
    identity_id: Optional[str] = Field(None, description="Identity the flow runs for")
    countdown_seconds: int = Field(default=0, ge=0, description="Seconds left before confirm is allowed")
    pending_intent: Optional[CreateIntent] = Field(None, description="Stashed create request")

    @property
    def is_verifying(self) -> bool:
        return self.state == GateState.VERIFYING

    @property
    def can_confirm(self) -> bool:
        return self.state == GateState.CONFIRMABLE
