"""
Listings module exceptions.

Validation and authorization errors are raised to the caller for user-facing
feedback. Remote errors are raised by feed adapters; the lifecycle controller
absorbs the transient ones and only surfaces permanent rejections.
"""

from typing import Any, Optional

from shared.exceptions import (
    BoardError,
    NotFoundError,
    ValidationError,
    ConflictError,
    AuthorizationError,
    ExternalServiceError,
)


class ListingError(BoardError):
    """Base exception for listing-related errors."""

    pass


class ListingNotFoundError(NotFoundError):
    """Raised when a listing is not in the canonical set."""

    def __init__(self, listing_id: str):
        super().__init__(
            f"Listing not found: {listing_id}",
            code="LISTING_NOT_FOUND",
            details={"listing_id": listing_id},
        )


class ListingForbiddenError(AuthorizationError):
    """Raised when someone other than the owner tries to mutate a listing."""

    def __init__(self, listing_id: str, identity_id: str):
        super().__init__(
            f"Only the owner can modify listing: {listing_id}",
            code="FORBIDDEN",
            details={"listing_id": listing_id, "identity_id": identity_id},
        )


class InvalidTransitionError(ConflictError):
    """Raised when a status change is not allowed by the transition table."""

    def __init__(self, listing_id: str, current: str, target: str, allowed: Optional[list[str]] = None):
        allowed = allowed or []
        super().__init__(
            f"Invalid listing transition: {current} -> {target}. "
            f"Allowed from {current}: [{', '.join(allowed)}]",
            code="INVALID_TRANSITION",
            details={
                "listing_id": listing_id,
                "current": current,
                "target": target,
                "allowed": allowed,
            },
        )
        self.current = current
        self.target = target


class ListingValidationError(ValidationError):
    """Raised when listing input is missing or malformed. No write is attempted."""

    def __init__(self, message: str, errors: Optional[list[dict[str, Any]]] = None):
        super().__init__(
            message,
            code="LISTING_VALIDATION_FAILED",
            details={"errors": errors or []},
        )
        self.errors = errors or []


class RemoteUnavailableError(ExternalServiceError):
    """
    Raised by a feed adapter when the remote store cannot be reached.

    Transient: the board keeps serving the last known state and keeps
    optimistic writes locally until connectivity returns.
    """

    def __init__(self, operation: str, reason: str = ""):
        message = f"Remote store unavailable during {operation}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message,
            service="listing_feed",
            code="REMOTE_UNAVAILABLE",
            details={"operation": operation, "reason": reason},
            retryable=True,
        )
        self.operation = operation


class RemoteRejectedError(ExternalServiceError):
    """Raised by a feed adapter when the remote store refuses a write."""

    def __init__(self, operation: str, reason: str = ""):
        super().__init__(
            f"Remote store rejected {operation}: {reason}" if reason else f"Remote store rejected {operation}",
            service="listing_feed",
            code="REMOTE_REJECTED",
            details={"operation": operation, "reason": reason},
        )
        self.operation = operation


class ListingWriteFailedError(ListingError):
    """
    Raised when a write could not even be applied optimistically.

    Distinct from a slow write: the local change has been rolled back.
    """

    def __init__(self, operation: str, listing_id: str, reason: str = ""):
        super().__init__(
            f"Listing {operation} failed for {listing_id}" + (f": {reason}" if reason else ""),
            code="LISTING_WRITE_FAILED",
            details={"operation": operation, "listing_id": listing_id, "reason": reason},
        )
