"""
Listing lifecycle controller.

The only component allowed to mutate listings: it validates input, enforces
ownership and the status transition table, stamps timestamps, applies the
change to the ListingStore first and then asks the remote feed to persist it.

Remote failure policy:
- transient (RemoteUnavailableError): the local change stands and the write
  is queued; flush_pending() replays the queue once the feed is reachable.
- permanent (RemoteRejectedError): creates and edits are rolled back and
  ListingWriteFailedError is raised. Deletes stay applied locally.
"""

import logging
import uuid
from typing import Any, Callable, Mapping, Optional

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from modules.auth.interfaces import IIdentityProvider
from modules.auth.service import require_identity
from shared.clock import Clock, hours_to_ms, now_ms
from shared.models import Identity

from .exceptions import (
    InvalidTransitionError,
    ListingForbiddenError,
    ListingNotFoundError,
    ListingValidationError,
    ListingWriteFailedError,
    RemoteRejectedError,
    RemoteUnavailableError,
)
from .interfaces import IListingFeed
from .models import (
    CARGO_FIELDS,
    CREATE_INPUT_ADAPTER,
    TRUCK_FIELDS,
    CargoListing,
    CreateCargoInput,
    CreateListingInput,
    CreateTruckInput,
    Listing,
    ListingOrigin,
    ListingPatch,
    ListingStatus,
    TruckListing,
    kind_fields,
    strip_empty,
)
from .store import ListingStore

logger = logging.getLogger(__name__)

DEFAULT_TTL_MS = hours_to_ms(72)

# Valid transitions: {from_status: {allowed_to_statuses}}
TRANSITIONS: dict[ListingStatus, frozenset[ListingStatus]] = {
    ListingStatus.DRAFT: frozenset({ListingStatus.ACTIVE}),
    ListingStatus.ACTIVE: frozenset({
        ListingStatus.ACTIVE,  # no-op edit, only updated_at moves
        ListingStatus.IN_PROGRESS,
        ListingStatus.CLOSED,
        ListingStatus.CANCELLED,
    }),
    ListingStatus.IN_PROGRESS: frozenset({ListingStatus.CLOSED, ListingStatus.CANCELLED}),
    # Terminal statuses: no outgoing transitions
    ListingStatus.CLOSED: frozenset(),
    ListingStatus.CANCELLED: frozenset(),
}


def allowed_transitions(status: ListingStatus) -> frozenset[ListingStatus]:
    """Statuses reachable from status."""
    return TRANSITIONS.get(status, frozenset())


def is_terminal(status: ListingStatus) -> bool:
    return not allowed_transitions(status)


def _error_list(error: PydanticValidationError) -> list[dict[str, Any]]:
    return [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in error.errors()
    ]


class LifecycleController:
    """
    Applies create/edit/status/delete operations to listings.

    The caller's identity is read from the injected identity provider on
    every call; anonymous sessions cannot mutate anything.
    """

    def __init__(
        self,
        store: ListingStore,
        feed: IListingFeed,
        identity: IIdentityProvider,
        collection: str = "listings",
        ttl_ms: int = DEFAULT_TTL_MS,
        clock: Clock = now_ms,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self._store = store
        self._feed = feed
        self._identity = identity
        self._collection = collection
        self._ttl_ms = ttl_ms
        self._clock = clock
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex)

        # Deferred writes, replayed by flush_pending()
        self._pending_creates: dict[str, dict[str, Any]] = {}
        self._pending_updates: dict[str, dict[str, Any]] = {}
        self._pending_deletes: set[str] = set()

        # Creates whose remote write has not answered yet, keyed by local id
        self._in_flight: set[str] = set()
        self._in_flight_edits: dict[str, dict[str, Any]] = {}
        self._tombstones: set[str] = set()

    @property
    def has_pending(self) -> bool:
        """Whether any write is waiting for the remote store."""
        return bool(self._pending_creates or self._pending_updates or self._pending_deletes)

    @property
    def pending_creates(self) -> frozenset[str]:
        return frozenset(self._pending_creates)

    # -------------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------------

    async def create(self, data: Mapping[str, Any] | BaseModel) -> Listing:
        """
        Create and publish a listing.

        Args:
            data: Listing fields (attribute or camelCase names) including ``kind``

        Returns:
            The listing with its server-assigned id, or the optimistic entry
            (origin LOCAL, client id) when the write had to be deferred

        Raises:
            AuthRequiredError: If the caller is missing or anonymous
            ListingValidationError: If required fields are missing or malformed
            ListingWriteFailedError: If the remote store rejected the write
        """
        identity = require_identity(self._identity, "create a listing")
        listing_input = self._validate_create(data)

        now = self._clock()
        expires_at = listing_input.expires_at or now + self._ttl_ms
        if expires_at <= now:
            raise ListingValidationError(
                "Expiry must be in the future",
                errors=[{"field": "expires_at", "message": "must be later than the creation time"}],
            )

        fields = listing_input.model_dump(exclude_none=True, exclude={"expires_at"})
        stamps = {
            "id": self._id_factory(),
            "creator_id": identity.id,
            "status": ListingStatus.ACTIVE,
            "created_at": now,
            "updated_at": now,
            "expires_at": expires_at,
            "origin": ListingOrigin.LOCAL,
        }
        match listing_input:
            case CreateTruckInput():
                listing: Listing = TruckListing(**fields, **stamps)
            case CreateCargoInput():
                listing = CargoListing(**fields, **stamps)

        self._store.add_optimistic(listing)
        logger.debug(f"Optimistic {listing.kind} listing {listing.id} added for {identity.id}")
        return await self._write_created(listing, listing.to_document())

    def _validate_create(self, data: Mapping[str, Any] | BaseModel) -> CreateListingInput:
        if isinstance(data, BaseModel):
            data = data.model_dump(exclude_none=True)
        try:
            return CREATE_INPUT_ADAPTER.validate_python(strip_empty(data))
        except PydanticValidationError as e:
            errors = _error_list(e)
            fields = ", ".join(err["field"] for err in errors)
            raise ListingValidationError(f"Invalid listing: {fields}", errors=errors)

    async def _write_created(self, listing: Listing, document: dict[str, Any]) -> Listing:
        local_id = listing.id
        self._in_flight.add(local_id)
        try:
            remote_id = await self._feed.write(self._collection, document)
        except RemoteUnavailableError as e:
            self._in_flight.discard(local_id)
            return self._defer_create(listing, e)
        except RemoteRejectedError as e:
            self._in_flight.discard(local_id)
            self._pending_creates.pop(local_id, None)
            self._in_flight_edits.pop(local_id, None)
            self._tombstones.discard(local_id)
            self._store.discard_optimistic(local_id)
            raise ListingWriteFailedError("create", local_id, e.message)

        self._in_flight.discard(local_id)
        self._pending_creates.pop(local_id, None)
        edits = self._in_flight_edits.pop(local_id, None)

        if local_id in self._tombstones:
            # Deleted while the write was in flight: remove what was just stored
            self._tombstones.discard(local_id)
            self._store.remove(remote_id)
            logger.info(f"Listing {local_id} was deleted during its create, removing {remote_id}")
            await self._delete_remote(remote_id)
            return listing.model_copy(update={"id": remote_id})

        # Edits made during the write are already in the local entry
        current = self._store.get(local_id) or listing
        confirmed = self._store.confirm_optimistic(local_id, current.model_copy(update={"id": remote_id}))
        logger.info(f"Listing {remote_id} created (was {local_id})")

        if edits:
            await self._send_update(remote_id, edits)
            return self._store.get(remote_id) or confirmed
        return confirmed

    def _defer_create(self, listing: Listing, error: RemoteUnavailableError) -> Listing:
        local_id = listing.id
        self._in_flight_edits.pop(local_id, None)
        if local_id in self._tombstones:
            self._tombstones.discard(local_id)
            self._pending_creates.pop(local_id, None)
            logger.info(f"Create of deleted listing {local_id} dropped: {error.message}")
            return listing

        # Queue the entry as it is now, including edits made during the write
        current = self._store.get(local_id) or listing
        self._pending_creates[local_id] = current.to_document()
        logger.warning(f"Create of {local_id} deferred, keeping optimistic entry: {error.message}")
        return current

    # -------------------------------------------------------------------------
    # Edit & status
    # -------------------------------------------------------------------------

    async def edit(self, listing_id: str, patch: ListingPatch | Mapping[str, Any]) -> Listing:
        """
        Update listing fields.

        Raises:
            AuthRequiredError: If the caller is missing or anonymous
            ListingNotFoundError: If the listing is unknown
            ListingForbiddenError: If the caller does not own the listing
            ListingValidationError: If the patch is malformed or targets the other kind's fields
            ListingWriteFailedError: If the remote store rejected the update
        """
        identity = require_identity(self._identity, "edit a listing")
        current = self._get_owned(listing_id, identity)
        changes = self._validate_patch(current, patch)
        if not changes:
            return current

        updated_at = self._next_stamp(current)
        expires_at = changes.get("expires_at")
        if expires_at is not None and expires_at <= updated_at:
            raise ListingValidationError(
                "Expiry must be in the future",
                errors=[{"field": "expires_at", "message": "must be later than now"}],
            )

        updated = current.model_copy(update={**changes, "updated_at": updated_at})
        remote_patch = updated.model_dump(
            mode="json",
            by_alias=True,
            include=set(changes) | {"updated_at"},
        )
        await self._apply_update("edit", current, updated, remote_patch)
        return updated

    async def change_status(self, listing_id: str, new_status: ListingStatus | str) -> Listing:
        """
        Move a listing to another status.

        Raises:
            AuthRequiredError: If the caller is missing or anonymous
            ListingNotFoundError: If the listing is unknown
            ListingForbiddenError: If the caller does not own the listing
            InvalidTransitionError: If the move is not in the transition table
            ListingWriteFailedError: If the remote store rejected the update
        """
        identity = require_identity(self._identity, "change listing status")
        current = self._get_owned(listing_id, identity)
        try:
            target = ListingStatus(new_status)
        except ValueError:
            raise ListingValidationError(
                f"Unknown status: {new_status}",
                errors=[{"field": "status", "message": f"unknown status {new_status!r}"}],
            )

        allowed = allowed_transitions(current.status)
        if target not in allowed:
            raise InvalidTransitionError(
                listing_id,
                current.status.value,
                target.value,
                sorted(status.value for status in allowed),
            )

        updated = current.model_copy(update={"status": target, "updated_at": self._next_stamp(current)})
        remote_patch = {"status": target.value, "updatedAt": updated.updated_at}
        await self._apply_update("status change", current, updated, remote_patch)
        logger.info(f"Listing {listing_id}: {current.status.value} -> {target.value}")
        return updated

    def _validate_patch(self, current: Listing, patch: ListingPatch | Mapping[str, Any]) -> dict[str, Any]:
        if not isinstance(patch, ListingPatch):
            try:
                patch = ListingPatch.model_validate(strip_empty(patch))
            except PydanticValidationError as e:
                errors = _error_list(e)
                raise ListingValidationError(
                    f"Invalid listing patch: {', '.join(err['field'] for err in errors)}",
                    errors=errors,
                )
        changes = patch.changes()

        variant_fields = TRUCK_FIELDS | CARGO_FIELDS
        own_fields = kind_fields(current.kind)
        misplaced = sorted(field for field in changes if field in variant_fields and field not in own_fields)
        if misplaced:
            raise ListingValidationError(
                f"Fields not valid for a {current.kind} listing: {', '.join(misplaced)}",
                errors=[{"field": field, "message": f"not a {current.kind} field"} for field in misplaced],
            )
        return changes

    async def _apply_update(
        self,
        operation: str,
        previous: Listing,
        updated: Listing,
        remote_patch: dict[str, Any],
    ) -> None:
        listing_id = updated.id
        self._store.upsert(updated)

        if listing_id in self._in_flight:
            # The server id is not known yet: replay against it once the create lands
            self._in_flight_edits.setdefault(listing_id, {}).update(remote_patch)
            logger.debug(f"{operation.capitalize()} of {listing_id} waits for its create")
            return

        if listing_id in self._pending_creates:
            # Not in the remote store yet: fold the change into the queued create
            self._pending_creates[listing_id] = updated.to_document()
            return

        try:
            await self._feed.update(listing_id, remote_patch)
        except RemoteUnavailableError as e:
            self._pending_updates.setdefault(listing_id, {}).update(remote_patch)
            logger.warning(f"{operation.capitalize()} of {listing_id} deferred: {e.message}")
        except RemoteRejectedError as e:
            self._store.upsert(previous)
            raise ListingWriteFailedError(operation, listing_id, e.message)

    # -------------------------------------------------------------------------
    # Delete
    # -------------------------------------------------------------------------

    async def delete(self, listing_id: str) -> None:
        """
        Remove a listing locally, then from the remote store.

        Confirmation with the user is the caller's job. A remote failure does
        not bring the listing back locally; the next snapshot reconciles.

        Raises:
            AuthRequiredError: If the caller is missing or anonymous
            ListingNotFoundError: If the listing is unknown
            ListingForbiddenError: If the caller does not own the listing
        """
        identity = require_identity(self._identity, "delete a listing")
        self._get_owned(listing_id, identity)
        self._store.remove(listing_id)
        self._pending_updates.pop(listing_id, None)

        if listing_id in self._in_flight:
            self._tombstones.add(listing_id)
            self._in_flight_edits.pop(listing_id, None)
            self._pending_creates.pop(listing_id, None)
            logger.info(f"Listing {listing_id} deleted before its create finished")
            return

        if self._pending_creates.pop(listing_id, None) is not None:
            logger.info(f"Dropped queued create for deleted listing {listing_id}")
            return

        await self._delete_remote(listing_id)

    async def _delete_remote(self, listing_id: str) -> None:
        try:
            await self._feed.delete(listing_id)
        except RemoteUnavailableError as e:
            self._pending_deletes.add(listing_id)
            logger.warning(f"Delete of {listing_id} deferred: {e.message}")
        except RemoteRejectedError as e:
            logger.error(f"Remote store rejected delete of {listing_id}: {e.message}")
        else:
            logger.info(f"Listing {listing_id} deleted")

    async def _send_update(self, listing_id: str, patch: dict[str, Any]) -> None:
        """Send changes made while the listing's create was in flight."""
        try:
            await self._feed.update(listing_id, patch)
        except RemoteUnavailableError as e:
            self._pending_updates.setdefault(listing_id, {}).update(patch)
            logger.warning(f"Update of {listing_id} deferred: {e.message}")
        except RemoteRejectedError as e:
            # The local entry keeps the change until a snapshot replaces it
            logger.error(f"Remote store rejected update of {listing_id}: {e.message}")

    # -------------------------------------------------------------------------
    # Deferred writes
    # -------------------------------------------------------------------------

    async def flush_pending(self) -> int:
        """
        Replay queued writes in order: creates, updates, deletes.

        Stops at the first transient failure; everything not yet replayed
        stays queued. Rejected writes are dropped and logged.

        Returns:
            Number of writes that reached the remote store
        """
        flushed = 0

        for local_id in list(self._pending_creates):
            if local_id in self._in_flight:
                continue
            listing = self._store.get(local_id)
            document = self._pending_creates.get(local_id)
            if listing is None or document is None:
                self._pending_creates.pop(local_id, None)
                continue
            try:
                result = await self._write_created(listing, document)
            except ListingWriteFailedError as e:
                logger.error(f"Dropped queued create: {e.message}")
                continue
            if result.id == local_id:
                return flushed
            flushed += 1

        for listing_id in list(self._pending_updates):
            patch = self._pending_updates[listing_id]
            try:
                await self._feed.update(listing_id, patch)
            except RemoteUnavailableError:
                return flushed
            except RemoteRejectedError as e:
                logger.error(f"Dropped queued update of {listing_id}: {e.message}")
            else:
                flushed += 1
            self._pending_updates.pop(listing_id, None)

        for listing_id in list(self._pending_deletes):
            try:
                await self._feed.delete(listing_id)
            except RemoteUnavailableError:
                return flushed
            except RemoteRejectedError as e:
                logger.error(f"Dropped queued delete of {listing_id}: {e.message}")
            else:
                flushed += 1
            self._pending_deletes.discard(listing_id)

        if flushed:
            logger.info(f"Flushed {flushed} deferred listing writes")
        return flushed

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _get_owned(self, listing_id: str, identity: Identity) -> Listing:
        listing = self._store.get(listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)
        if not listing.creator_id or listing.creator_id != identity.id:
            raise ListingForbiddenError(listing_id, identity.id)
        return listing

    def _next_stamp(self, current: Listing) -> int:
        # updated_at never moves backwards and never precedes created_at
        return max(self._clock(), current.updated_at, current.created_at)
