"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules.
"""

import itertools

import pytest

from core.container import reset_container
from modules.auth.service import IdentitySession
from modules.listings.feed import InMemoryListingFeed
from modules.listings.lifecycle import LifecycleController
from modules.listings.store import ListingStore
from shared.models import Identity

from factories import FakeClock


@pytest.fixture(autouse=True)
def reset_container_singleton():
    """Reset the service container before and after each test."""
    reset_container()
    yield
    reset_container()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def owner() -> Identity:
    return Identity(id="owner-1", display_name="Aziz")


@pytest.fixture
def stranger() -> Identity:
    return Identity(id="stranger-2")


@pytest.fixture
def session(owner: Identity) -> IdentitySession:
    """Identity session signed in as the owner."""
    return IdentitySession(owner)


@pytest.fixture
def feed() -> InMemoryListingFeed:
    counter = itertools.count(1)
    return InMemoryListingFeed(id_factory=lambda: f"remote-{next(counter)}")


@pytest.fixture
def store() -> ListingStore:
    return ListingStore()


@pytest.fixture
def lifecycle(
    store: ListingStore,
    feed: InMemoryListingFeed,
    session: IdentitySession,
    clock: FakeClock,
) -> LifecycleController:
    counter = itertools.count(1)
    return LifecycleController(
        store=store,
        feed=feed,
        identity=session,
        clock=clock,
        id_factory=lambda: f"local-{next(counter)}",
    )
