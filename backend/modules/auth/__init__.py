"""
Authentication module.

Tracks the acting identity. Token handling belongs to the auth client that
feeds this session and is not part of the board.

Public API:
- IIdentityProvider: Interface for identity lookups
- IdentitySession: In-memory identity holder
- require_identity: Guard for actions needing a non-anonymous identity
- AuthRequiredError
"""

from .interfaces import IIdentityProvider, IdentityListener
from .service import IdentitySession, require_identity
from .exceptions import AuthRequiredError

__all__ = [
    # Interface
    "IIdentityProvider",
    "IdentityListener",
    # Implementation
    "IdentitySession",
    "require_identity",
    # Exceptions
    "AuthRequiredError",
]
