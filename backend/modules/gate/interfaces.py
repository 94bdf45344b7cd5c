"""
Subscription gate interface.

Callers wrap "start creating a listing" with ISubscriptionGate and only open
the create form once an intent is released.
"""

from typing import Optional, Protocol, runtime_checkable

from shared.models import Identity

from .models import CreateIntent, GateSnapshot


@runtime_checkable
class ISubscriptionGate(Protocol):
    """
    Interface for the one-time external-action gate.

    The gate is advisory: nothing verifies that the external action happened.
    """

    @property
    def snapshot(self) -> GateSnapshot:
        """Current flow state."""
        ...

    def is_unlocked(self, identity_id: str) -> bool:
        """Whether identity_id already passed the gate (persisted)."""
        ...

    def request_create(self, identity: Optional[Identity], intent: CreateIntent) -> Optional[CreateIntent]:
        """
        Ask to create a listing.

        Returns:
            The intent if creation may proceed now, None if the gate flow started

        Raises:
            AuthRequiredError: If identity is missing or anonymous
        """
        ...

    def user_triggered_external_action(self) -> str:
        """
        Record that the user went to perform the external action.

        Returns:
            The URL the user should be sent to

        Raises:
            InvalidGateActionError: If no gate flow is waiting for it
        """
        ...

    def confirm(self) -> CreateIntent:
        """
        Self-certify once the countdown finished.

        Returns:
            The stashed intent, released to the caller

        Raises:
            InvalidGateActionError: If the countdown has not finished
        """
        ...

    def abandon(self) -> None:
        """Close the flow without unlocking. Idempotent."""
        ...
