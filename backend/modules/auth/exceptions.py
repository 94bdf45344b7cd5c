"""
Authentication module exceptions.

Raised when an action needs a signed-in, non-anonymous identity. Callers
recover by prompting the user to sign in.
"""

from typing import Optional

from shared.exceptions import AuthenticationError


class AuthRequiredError(AuthenticationError):
    """Raised when an action is attempted without a non-anonymous identity."""

    def __init__(self, action: str, identity_id: Optional[str] = None):
        super().__init__(
            f"Authentication required to {action}",
            code="AUTH_REQUIRED",
            details={"action": action},
        )
        if identity_id:
            self.details["identity_id"] = identity_id
