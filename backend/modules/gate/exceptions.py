"""
Subscription gate exceptions.
"""

from shared.exceptions import BoardError, ConflictError


class GateError(BoardError):
    """Base exception for gate errors."""

    pass


class InvalidGateActionError(GateError, ConflictError):
    """Raised when a gate action is not allowed in the current state."""

    def __init__(self, action: str, state: str):
        super().__init__(
            f"Cannot {action} while the gate is {state}",
            code="INVALID_GATE_ACTION",
            details={"action": action, "state": state},
        )
        self.action = action
        self.state = state
