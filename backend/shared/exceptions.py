"""
Base exception classes for the Freight Board backend.

Each module defines its own exceptions on top of these categories. Callers
match on the category (not-found, validation, conflict, auth, external) and
show ``message`` to the user; ``details`` carries the structured context.

External failures say whether retrying can help: the listing engine keeps
serving cached data and queues writes for retryable ones, and gives up on
the rest.
"""

from typing import Optional, Any


class BoardError(Exception):
    """
    Base exception for all Freight Board errors.

    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Error code, message and details for display or logging."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(BoardError):
    """A listing or other record is not known locally."""


class ValidationError(BoardError):
    """Caller input was rejected before anything was written."""


class ConflictError(BoardError):
    """The operation is not allowed in the current state of its target."""


class AuthenticationError(BoardError):
    """Authentication required or failed (missing or anonymous identity)."""


class AuthorizationError(BoardError):
    """Authorization failed (caller does not own the resource)."""


class ExternalServiceError(BoardError):
    """
    A remote dependency (listing store, language model) failed.

    ``retryable`` is True for transport-level failures that may succeed
    later, False when the service answered and refused.
    """

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        retryable: bool = False,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.retryable = retryable
        self.details["service"] = service
