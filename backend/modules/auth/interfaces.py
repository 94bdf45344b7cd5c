"""
Identity provider interface.

Other modules should depend on IIdentityProvider, not the concrete session.
This enables testing with a fixed identity and swapping in a real auth client.
"""

from typing import Callable, Optional, Protocol, runtime_checkable

from shared.models import Identity

IdentityListener = Callable[[Optional[Identity]], None]


@runtime_checkable
class IIdentityProvider(Protocol):
    """
    Interface for the identity collaborator.

    Exposes who is currently acting and notifies listeners when that changes
    (sign-in, sign-out, guest session upgraded to a real account).
    """

    def current_identity(self) -> Optional[Identity]:
        """
        Get the identity currently acting.

        Returns:
            Identity if someone is signed in (possibly anonymously), None otherwise
        """
        ...

    def on_change(self, listener: IdentityListener) -> Callable[[], None]:
        """
        Register a listener for identity changes.

        Args:
            listener: Called with the new identity (or None after sign-out)

        Returns:
            A callable that removes the listener; safe to call more than once
        """
        ...
