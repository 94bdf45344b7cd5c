"""End-to-end board flow through the service container."""

import asyncio

import pytest

from core.container import ServiceContainer
from modules.gate.models import GateState
from modules.listings.models import ListingKind, ListingOrigin, ListingStatus
from shared.config import Settings
from shared.models import Identity

SEVENTY_TWO_HOURS_MS = 259_200_000


async def settle(rounds: int = 10) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def container():
    settings = Settings(
        supabase_url="",
        supabase_anon_key="",
        supabase_service_role_key="",
        state_file="",
        google_api_key="",
        gate_countdown_seconds=3,
        gate_tick_interval=0.01,
    )
    container = ServiceContainer(settings)
    yield container
    container.reset()


class TestBoardFlow:
    @pytest.mark.asyncio
    async def test_gate_create_sync_and_expiry(self, container):
        alice = Identity(id="alice")
        container.identity.sign_in(alice)
        sync = container.sync
        sync.start()
        assert await sync.wait_for_snapshot(timeout=1) is True

        gate = container.gate
        assert gate.request_create(alice, ListingKind.CARGO) is None
        gate.user_triggered_external_action()
        for _ in range(100):
            if gate.snapshot.can_confirm:
                break
            await asyncio.sleep(0.01)
        intent = gate.confirm()
        assert gate.state == GateState.UNLOCKED

        listing = await container.lifecycle.create(
            {"kind": intent.value, "from_city": "Tashkent", "to_city": "Almaty", "weight": 12, "cargo_type": "Cotton"}
        )
        await settle()

        assert listing.origin == ListingOrigin.REMOTE
        assert listing.creator_id == "alice"
        assert listing.expires_at == listing.created_at + SEVENTY_TWO_HOURS_MS
        assert [item.id for item in container.store.listings()] == [listing.id]
        assert listing.id in container.feed.documents

        assert [item.id for item in sync.active_listings(now=listing.created_at + 1)] == [listing.id]
        assert sync.active_listings(now=listing.expires_at) == []
        assert container.store.get(listing.id).status == ListingStatus.ACTIVE

        # unlocked identities skip the gate next time
        assert gate.request_create(alice, ListingKind.TRUCK) == ListingKind.TRUCK

    @pytest.mark.asyncio
    async def test_offline_create_is_published_on_reconnect(self, container):
        container.identity.sign_in(Identity(id="alice"))
        sync = container.sync
        sync.start()
        container.feed.set_online(False)

        listing = await container.lifecycle.create(
            {"kind": "truck", "from_city": "Osh", "to_city": "Bishkek", "capacity": 10}
        )
        assert listing.origin == ListingOrigin.LOCAL
        assert container.store.is_stale is True

        container.feed.set_online(True)
        await settle()

        assert container.lifecycle.has_pending is False
        assert len(container.feed.documents) == 1
        remote_id = next(iter(container.feed.documents))
        assert [item.id for item in container.store.listings()] == [remote_id]
        assert container.store.is_stale is False
