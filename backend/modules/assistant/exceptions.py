"""
Assistant exceptions.
"""

from shared.exceptions import ExternalServiceError


class AIUnavailableError(ExternalServiceError):
    """Raised when the language model cannot be used or returns nothing usable."""

    def __init__(self, operation: str, reason: str = ""):
        message = f"AI {operation} unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message,
            service="gemini",
            code="AI_UNAVAILABLE",
            details={"operation": operation, "reason": reason},
            retryable=True,
        )
        self.operation = operation
