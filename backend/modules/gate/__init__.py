"""
Subscription gate module.

One-time, advisory gate in front of listing creation: the user performs an
external action, waits out a short countdown and confirms. The unlock is
remembered per identity.

Public API:
- ISubscriptionGate: Interface for the gate
- SubscriptionGate: Implementation with an asyncio countdown
- GateState, GateSnapshot, CreateIntent: Models
- GateError, InvalidGateActionError: Exceptions
"""

from .interfaces import ISubscriptionGate
from .service import SubscriptionGate, DEFAULT_COUNTDOWN_SECONDS
from .models import CreateIntent, GateSnapshot, GateState
from .exceptions import GateError, InvalidGateActionError

__all__ = [
    # Interface
    "ISubscriptionGate",
    # Implementation
    "SubscriptionGate",
    "DEFAULT_COUNTDOWN_SECONDS",
    # Models
    "CreateIntent",
    "GateSnapshot",
    "GateState",
    # Exceptions
    "GateError",
    "InvalidGateActionError",
]
