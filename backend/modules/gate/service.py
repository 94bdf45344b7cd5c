"""
Subscription gate implementation.

Gates "create a listing" behind a one-time external action (opening a
channel link) followed by a self-paced countdown and a self-certified
confirmation. The unlock is persisted per identity, so each identity passes
the gate once. Every other state lives in memory and is reset when the flow
is abandoned.

This is an honor-system growth gate, not a security boundary: nothing checks
that the external action actually happened.
"""

import asyncio
import logging
from typing import Optional

from modules.auth.exceptions import AuthRequiredError
from shared.models import Identity
from shared.storage import IKeyValueStore

from .exceptions import InvalidGateActionError
from .interfaces import ISubscriptionGate
from .models import CreateIntent, GateSnapshot, GateState

logger = logging.getLogger(__name__)

DEFAULT_COUNTDOWN_SECONDS = 8

_RETRIGGERABLE = (GateState.AWAITING_EXTERNAL_ACTION, GateState.VERIFYING, GateState.CONFIRMABLE)


class SubscriptionGate(ISubscriptionGate):
    """
    Gate state machine:

        LOCKED -> AWAITING_EXTERNAL_ACTION -> VERIFYING -> CONFIRMABLE -> UNLOCKED

    When an event loop is running, the countdown advances by itself once per
    tick_interval seconds. Without one (or with auto_tick=False) the caller
    drives it with tick().
    """

    def __init__(
        self,
        storage: IKeyValueStore,
        countdown_seconds: int = DEFAULT_COUNTDOWN_SECONDS,
        tick_interval: float = 1.0,
        external_url: str = "",
        auto_tick: bool = True,
    ):
        if countdown_seconds < 0:
            raise ValueError("Countdown cannot be negative")
        self._storage = storage
        self._countdown_seconds = countdown_seconds
        self._tick_interval = tick_interval
        self._external_url = external_url
        self._auto_tick = auto_tick

        self._state = GateState.LOCKED
        self._identity_id: Optional[str] = None
        self._countdown = 0
        self._pending: Optional[CreateIntent] = None
        self._timer: Optional[asyncio.Task] = None
        self._generation = 0

    @staticmethod
    def _key(identity_id: str) -> str:
        return f"gate:subscribed:{identity_id}"

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def snapshot(self) -> GateSnapshot:
        return GateSnapshot(
            state=self._state,
            identity_id=self._identity_id,
            countdown_seconds=self._countdown,
            pending_intent=self._pending,
        )

    def is_unlocked(self, identity_id: str) -> bool:
        return self._storage.get(self._key(identity_id)) is True

    # -------------------------------------------------------------------------
    # Flow
    # -------------------------------------------------------------------------

    def request_create(self, identity: Optional[Identity], intent: CreateIntent | str) -> Optional[CreateIntent]:
        if identity is None:
            raise AuthRequiredError("create a listing")
        if identity.is_anonymous:
            raise AuthRequiredError("create a listing", identity_id=identity.id)
        intent = CreateIntent(intent)

        self._cancel_timer()
        self._identity_id = identity.id
        self._countdown = 0

        if self.is_unlocked(identity.id):
            self._state = GateState.UNLOCKED
            self._pending = None
            logger.debug(f"Gate already unlocked for {identity.id}, releasing {intent.value}")
            return intent

        self._state = GateState.AWAITING_EXTERNAL_ACTION
        self._pending = intent
        logger.info(f"Gate flow started for {identity.id} (intent={intent.value})")
        return None

    def user_triggered_external_action(self) -> str:
        if self._state not in _RETRIGGERABLE:
            raise InvalidGateActionError("start verification", self._state.value)

        self._state = GateState.VERIFYING
        self._countdown = self._countdown_seconds
        if self._countdown == 0:
            self._state = GateState.CONFIRMABLE
        else:
            self._start_timer()
        logger.debug(f"Gate verification started for {self._identity_id} ({self._countdown}s)")
        return self._external_url

    def tick(self) -> GateSnapshot:
        """Advance the countdown by one step. Ignored outside VERIFYING."""
        if self._state == GateState.VERIFYING:
            self._countdown = max(0, self._countdown - 1)
            if self._countdown == 0:
                self._state = GateState.CONFIRMABLE
                logger.debug(f"Gate confirmable for {self._identity_id}")
        return self.snapshot

    def confirm(self) -> CreateIntent:
        if self._state != GateState.CONFIRMABLE or self._identity_id is None or self._pending is None:
            raise InvalidGateActionError("confirm", self._state.value)

        self._storage.set(self._key(self._identity_id), True)
        intent = self._pending
        self._pending = None
        self._state = GateState.UNLOCKED
        self._cancel_timer()
        logger.info(f"Gate unlocked for {self._identity_id}, releasing {intent.value}")
        return intent

    def abandon(self) -> None:
        if self._state == GateState.UNLOCKED:
            return
        self._cancel_timer()
        if self._state != GateState.LOCKED:
            logger.debug(f"Gate flow abandoned in {self._state.value} for {self._identity_id}")
        self._state = GateState.LOCKED
        self._identity_id = None
        self._countdown = 0
        self._pending = None

    def on_identity_change(self, identity: Optional[Identity]) -> None:
        """Drop an in-progress flow when someone else signs in or the user signs out."""
        if identity is None or identity.id != self._identity_id:
            self.abandon()
            if self._state == GateState.UNLOCKED:
                self._state = GateState.LOCKED
                self._identity_id = None

    # -------------------------------------------------------------------------
    # Countdown timer
    # -------------------------------------------------------------------------

    def _start_timer(self) -> None:
        self._cancel_timer()
        if not self._auto_tick:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; gate countdown advances via tick()")
            return
        self._timer = loop.create_task(self._run_countdown(self._generation))

    async def _run_countdown(self, generation: int) -> None:
        while self._state == GateState.VERIFYING and generation == self._generation:
            await asyncio.sleep(self._tick_interval)
            if generation != self._generation:
                return
            self.tick()

    def _cancel_timer(self) -> None:
        # Bumping the generation silences a timer that is already past its sleep
        self._generation += 1
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None
