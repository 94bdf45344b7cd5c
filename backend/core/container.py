"""
Service container.

Wires together all module implementations. Each module exposes its service
through an interface, and this file creates the concrete implementations.
Nothing in the modules reaches for a global client; everything they need is
passed in here.

Swapping the remote store means changing the feed property below.
"""

from typing import TYPE_CHECKING, Optional

from shared.config import Settings, get_settings

# Type checking imports for interfaces (avoids circular imports)
if TYPE_CHECKING:
    from modules.assistant.interfaces import IAssistant
    from modules.auth.service import IdentitySession
    from modules.gate.service import SubscriptionGate
    from modules.listings.history import RecentlyViewed
    from modules.listings.interfaces import IListingFeed
    from modules.listings.lifecycle import LifecycleController
    from modules.listings.store import ListingStore
    from modules.listings.sync import ListingSyncService
    from shared.storage import IKeyValueStore


class ServiceContainer:
    """
    Container for all service instances.

    Services are created lazily on first access and cached within the
    container. Use reset() to stop background work and drop every instance.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings
        self._identity: "IdentitySession | None" = None
        self._kv_store: "IKeyValueStore | None" = None
        self._feed: "IListingFeed | None" = None
        self._store: "ListingStore | None" = None
        self._lifecycle: "LifecycleController | None" = None
        self._sync: "ListingSyncService | None" = None
        self._gate: "SubscriptionGate | None" = None
        self._history: "RecentlyViewed | None" = None
        self._assistant: "IAssistant | None" = None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def identity(self) -> "IdentitySession":
        """Get the identity session."""
        if self._identity is None:
            from modules.auth.service import IdentitySession
            self._identity = IdentitySession()
        return self._identity

    @property
    def kv_store(self) -> "IKeyValueStore":
        """Get the local key-value store (JSON file if configured, else memory)."""
        if self._kv_store is None:
            from shared.storage import InMemoryKeyValueStore, JsonFileKeyValueStore
            if self.settings.state_file:
                self._kv_store = JsonFileKeyValueStore(self.settings.state_file)
            else:
                self._kv_store = InMemoryKeyValueStore()
        return self._kv_store

    @property
    def feed(self) -> "IListingFeed":
        """Get the remote listing feed (Supabase if configured, else in-memory)."""
        if self._feed is None:
            if self.settings.supabase_configured:
                from modules.listings.repository import SupabaseListingFeed
                from shared.database import get_supabase_client
                self._feed = SupabaseListingFeed(
                    get_supabase_client(self.settings),
                    table=self.settings.listings_table,
                    poll_interval=self.settings.feed_poll_interval,
                )
            else:
                from modules.listings.feed import InMemoryListingFeed
                self._feed = InMemoryListingFeed(collection=self.settings.listings_table)
        return self._feed

    @property
    def store(self) -> "ListingStore":
        """Get the canonical listing store."""
        if self._store is None:
            from modules.listings.store import ListingStore
            self._store = ListingStore()
        return self._store

    @property
    def lifecycle(self) -> "LifecycleController":
        """Get the lifecycle controller."""
        if self._lifecycle is None:
            from modules.listings.lifecycle import LifecycleController
            self._lifecycle = LifecycleController(
                store=self.store,
                feed=self.feed,
                identity=self.identity,
                collection=self.settings.listings_table,
                ttl_ms=self.settings.listing_ttl_ms,
            )
        return self._lifecycle

    @property
    def sync(self) -> "ListingSyncService":
        """Get the feed synchronization service."""
        if self._sync is None:
            from modules.listings.models import FeedQuery
            from modules.listings.sync import ListingSyncService
            self._sync = ListingSyncService(
                store=self.store,
                feed=self.feed,
                lifecycle=self.lifecycle,
                query=FeedQuery(limit=self.settings.feed_limit),
            )
        return self._sync

    @property
    def gate(self) -> "SubscriptionGate":
        """Get the subscription gate, abandoning its flow on identity changes."""
        if self._gate is None:
            from modules.gate.service import SubscriptionGate
            self._gate = SubscriptionGate(
                storage=self.kv_store,
                countdown_seconds=self.settings.gate_countdown_seconds,
                tick_interval=self.settings.gate_tick_interval,
                external_url=self.settings.gate_external_url,
            )
            self.identity.on_change(self._gate.on_identity_change)
        return self._gate

    @property
    def history(self) -> "RecentlyViewed":
        """Get the recently-viewed history."""
        if self._history is None:
            from modules.listings.history import RecentlyViewed
            self._history = RecentlyViewed(self.kv_store, limit=self.settings.recent_history_limit)
        return self._history

    @property
    def assistant(self) -> "IAssistant":
        """Get the AI assistant."""
        if self._assistant is None:
            from modules.assistant.service import GeminiAssistant
            self._assistant = GeminiAssistant(
                api_key=self.settings.google_api_key,
                fast_model=self.settings.ai_fast_model,
                search_model=self.settings.ai_search_model,
                timeout=self.settings.ai_timeout_seconds,
                max_retries=self.settings.ai_max_retries,
            )
        return self._assistant

    def reset(self) -> None:
        """
        Stop background work and reset all cached services.

        This is primarily for testing - allows tests to get fresh
        service instances with different settings.
        """
        if self._sync is not None:
            self._sync.stop()
        if self._gate is not None:
            self._gate.abandon()
        self._identity = None
        self._kv_store = None
        self._feed = None
        self._store = None
        self._lifecycle = None
        self._sync = None
        self._gate = None
        self._history = None
        self._assistant = None


# Module-level container singleton
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the singleton service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """
    Reset the service container.

    The next call to get_container() creates a fresh container with new
    service instances. Primarily used for testing.
    """
    global _container
    if _container is not None:
        _container.reset()
    _container = None
