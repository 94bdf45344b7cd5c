"""
Identity session implementation.

Keeps the current identity in memory and fans out change notifications.
"""

import logging
from typing import Callable, Optional

from shared.models import Identity

from .exceptions import AuthRequiredError
from .interfaces import IIdentityProvider, IdentityListener

logger = logging.getLogger(__name__)


class IdentitySession(IIdentityProvider):
    """In-memory identity holder used by the board components."""

    def __init__(self, identity: Optional[Identity] = None):
        self._identity = identity
        self._listeners: list[IdentityListener] = []

    def current_identity(self) -> Optional[Identity]:
        return self._identity

    def sign_in(self, identity: Identity) -> None:
        """Make identity the acting account and notify listeners."""
        if identity == self._identity:
            return
        self._identity = identity
        logger.info(f"Identity changed: {identity.id} (anonymous={identity.is_anonymous})")
        self._notify()

    def sign_out(self) -> None:
        """Clear the acting account and notify listeners."""
        if self._identity is None:
            return
        logger.info(f"Identity signed out: {self._identity.id}")
        self._identity = None
        self._notify()

    def on_change(self, listener: IdentityListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._identity)


def require_identity(provider: IIdentityProvider, action: str) -> Identity:
    """
    Return the current identity, or raise if it cannot perform action.

    Raises:
        AuthRequiredError: If nobody is signed in or the session is anonymous
    """
    identity = provider.current_identity()
    if identity is None:
        raise AuthRequiredError(action)
    if identity.is_anonymous:
        raise AuthRequiredError(action, identity_id=identity.id)
    return identity
