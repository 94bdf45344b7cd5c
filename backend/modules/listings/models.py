"""
Listings module data models.

A listing is either a truck availability posting or a cargo shipment posting.
Both share a route/scheduling base and are modelled as a discriminated union
keyed by ``kind``. Attribute names are snake_case; remote documents use the
camelCase aliases (``fromCity``, ``createdAt``, ...).
"""

from enum import Enum
from typing import Annotated, Any, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator
from pydantic.alias_generators import to_camel


class ListingKind(str, Enum):
    """Listing variant discriminant."""

    TRUCK = "truck"  # Carrier offering capacity
    CARGO = "cargo"  # Shipper looking for a truck


class ListingStatus(str, Enum):
    """Stored listing status. Expiry is computed at view time, never stored."""

    DRAFT = "draft"
    ACTIVE = "active"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"        # Fulfilled by the owner
    CANCELLED = "cancelled"  # Withdrawn by the owner or the system


class ListingOrigin(str, Enum):
    """Where an in-memory entry came from. Never written to the remote store."""

    LOCAL = "local"    # Optimistic placeholder, not yet seen in a snapshot
    REMOTE = "remote"  # Delivered by the remote feed


class TruckType(str, Enum):
    """Truck body types."""

    TENT = "TENT"
    CONTAINER = "CONTAINER"
    REF = "REF"
    BOARD = "BOARD"
    MEGA = "MEGA"
    PLATFORM = "PLATFORM"
    TANKER = "TANKER"

    @property
    def label(self) -> str:
        """Display label used by the board UI."""
        return _TRUCK_TYPE_LABELS[self]

    @classmethod
    def _missing_(cls, value: object) -> Optional["TruckType"]:
        # Older documents store the display label, and forms may send lowercase names
        if isinstance(value, str):
            for member in cls:
                if value == member.label or value.upper() == member.value:
                    return member
        return None


_TRUCK_TYPE_LABELS = {
    TruckType.TENT: "Тент",
    TruckType.CONTAINER: "Контейнер",
    TruckType.REF: "Рефрижератор",
    TruckType.BOARD: "Борт",
    TruckType.MEGA: "Мега",
    TruckType.PLATFORM: "Площадка",
    TruckType.TANKER: "Бензовоз",
}


class Currency(str, Enum):
    """Price currencies accepted on cargo listings."""

    RUB = "RUB"
    USD = "USD"
    UZS = "UZS"
    EUR = "EUR"
    KZT = "KZT"
    KGS = "KGS"


TRUCK_FIELDS = frozenset({"truck_type", "capacity", "is_empty"})
CARGO_FIELDS = frozenset({
    "weight",
    "volume",
    "cargo_type",
    "price",
    "currency",
    "has_prepayment",
    "needed_truck_types",
    "tags",
})


# -----------------------------------------------------------------------------
# Stored listings
# -----------------------------------------------------------------------------


class BaseListing(BaseModel):
    """Fields shared by both listing kinds."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    id: str = Field(..., min_length=1, description="Listing ID assigned by the store")
    creator_id: Optional[str] = Field(None, description="Owning account; None for legacy entries")
    status: ListingStatus = Field(default=ListingStatus.ACTIVE, description="Stored status")

    # Timestamps, milliseconds since epoch
    created_at: int = Field(..., description="Creation time")
    updated_at: int = Field(..., description="Last modification time")
    expires_at: Optional[int] = Field(None, description="Visibility deadline; None for legacy entries")

    # Route & scheduling
    from_city: str = Field(..., description="Loading city")
    to_city: str = Field(..., description="Unloading city")
    date: str = Field(default="", description="Loading date as entered")
    urgent: bool = Field(default=False, description="Highlighted as urgent")
    comment: Optional[str] = Field(None, description="Free-form notes")

    # Scheduling and handling details; free-form in older documents
    urgency: Optional[str] = Field(None, description="Urgency level: urgent, today, tomorrow or planned")
    urgency_text: Optional[str] = Field(None, description="Urgency label as shown when posted")
    loading_method: Optional[str] = Field(None, description="Loading side: back, side, top or full")
    has_adr: Optional[bool] = Field(None, description="Dangerous goods (ADR) permitted")
    has_tir: Optional[bool] = Field(None, description="TIR carnet available")
    temp_regime: Optional[str] = Field(None, description="Required temperature regime")

    # Contact info
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    telegram_handle: Optional[str] = None

    origin: ListingOrigin = Field(default=ListingOrigin.REMOTE, exclude=True)

    @model_validator(mode="before")
    @classmethod
    def _default_updated_at(cls, data: Any) -> Any:
        # Legacy documents may only carry createdAt
        if isinstance(data, Mapping):
            has_updated = "updatedAt" in data or "updated_at" in data
            created = data.get("createdAt", data.get("created_at"))
            if not has_updated and created is not None:
                data = {**data, "updated_at": created}
        return data

    @property
    def is_local(self) -> bool:
        return self.origin == ListingOrigin.LOCAL

    def to_document(self) -> dict[str, Any]:
        """
        Serialize for the remote store.

        Sparse: optional fields that are unset are omitted rather than written
        as nulls. The id is carried by the store, not the document body.
        """
        return self.model_dump(mode="json", by_alias=True, exclude_none=True, exclude={"id"})


class TruckListing(BaseListing):
    """A carrier's truck availability posting."""

    kind: Literal["truck"] = "truck"
    truck_type: TruckType = Field(default=TruckType.TENT, description="Truck body type")
    capacity: float = Field(default=0, ge=0, description="Capacity in tons")
    is_empty: bool = Field(default=True, description="Truck is empty and can load now")


class CargoListing(BaseListing):
    """A shipper's cargo posting."""

    kind: Literal["cargo"] = "cargo"
    weight: float = Field(default=0, ge=0, description="Weight in tons")
    volume: Optional[float] = Field(None, ge=0, description="Volume in m3")
    cargo_type: str = Field(default="", description="What is being shipped")
    price: Optional[float] = Field(None, ge=0, description="Offered price")
    currency: Currency = Field(default=Currency.UZS, description="Price currency")
    has_prepayment: Optional[bool] = Field(None, description="Advance payment offered")
    needed_truck_types: Optional[list[str]] = Field(None, description="Acceptable truck types")
    tags: Optional[list[str]] = Field(None, description="Transport tags")


Listing = Annotated[Union[TruckListing, CargoListing], Field(discriminator="kind")]

_LISTING_ADAPTER: TypeAdapter[Listing] = TypeAdapter(Listing)


def parse_listing(document: Mapping[str, Any], origin: ListingOrigin = ListingOrigin.REMOTE) -> Listing:
    """
    Build a listing from a remote document.

    Raises:
        pydantic.ValidationError: If the document is malformed
    """
    listing = _LISTING_ADAPTER.validate_python(dict(document))
    if listing.origin != origin:
        listing = listing.model_copy(update={"origin": origin})
    return listing


def kind_fields(kind: ListingKind | str) -> frozenset[str]:
    """Variant-specific field names for a listing kind."""
    match ListingKind(kind):
        case ListingKind.TRUCK:
            return TRUCK_FIELDS
        case ListingKind.CARGO:
            return CARGO_FIELDS


# -----------------------------------------------------------------------------
# Inputs
# -----------------------------------------------------------------------------


class _ListingInput(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
    )

    from_city: str = Field(..., min_length=1)
    to_city: str = Field(..., min_length=1)
    date: str = ""
    urgent: bool = False
    comment: Optional[str] = None
    urgency: Optional[str] = None
    urgency_text: Optional[str] = None
    loading_method: Optional[str] = None
    has_adr: Optional[bool] = None
    has_tir: Optional[bool] = None
    temp_regime: Optional[str] = None
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    telegram_handle: Optional[str] = None
    expires_at: Optional[int] = Field(None, gt=0, description="Overrides the default expiry")


class CreateTruckInput(_ListingInput):
    """Validated input for a new truck listing."""

    kind: Literal["truck"]
    truck_type: TruckType = TruckType.TENT
    capacity: float = Field(..., gt=0, allow_inf_nan=False)
    is_empty: bool = True


class CreateCargoInput(_ListingInput):
    """Validated input for a new cargo listing."""

    kind: Literal["cargo"]
    weight: float = Field(..., gt=0, allow_inf_nan=False)
    volume: Optional[float] = Field(None, gt=0, allow_inf_nan=False)
    cargo_type: str = Field(..., min_length=1)
    price: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    currency: Currency = Currency.UZS
    has_prepayment: Optional[bool] = None
    needed_truck_types: Optional[list[str]] = None
    tags: Optional[list[str]] = None


CreateListingInput = Annotated[Union[CreateTruckInput, CreateCargoInput], Field(discriminator="kind")]

CREATE_INPUT_ADAPTER: TypeAdapter[CreateListingInput] = TypeAdapter(CreateListingInput)


class ListingPatch(BaseModel):
    """
    Editable listing fields.

    Identity, kind, ownership, creation time and status are not editable here;
    status moves go through the lifecycle controller's transition table.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        str_strip_whitespace=True,
    )

    from_city: Optional[str] = Field(None, min_length=1)
    to_city: Optional[str] = Field(None, min_length=1)
    date: Optional[str] = None
    urgent: Optional[bool] = None
    comment: Optional[str] = None
    urgency: Optional[str] = None
    urgency_text: Optional[str] = None
    loading_method: Optional[str] = None
    has_adr: Optional[bool] = None
    has_tir: Optional[bool] = None
    temp_regime: Optional[str] = None
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    telegram_handle: Optional[str] = None
    expires_at: Optional[int] = Field(None, gt=0)

    truck_type: Optional[TruckType] = None
    capacity: Optional[float] = Field(None, gt=0, allow_inf_nan=False)
    is_empty: Optional[bool] = None

    weight: Optional[float] = Field(None, gt=0, allow_inf_nan=False)
    volume: Optional[float] = Field(None, gt=0, allow_inf_nan=False)
    cargo_type: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    currency: Optional[Currency] = None
    has_prepayment: Optional[bool] = None
    needed_truck_types: Optional[list[str]] = None
    tags: Optional[list[str]] = None

    def changes(self) -> dict[str, Any]:
        """Fields the caller actually set, by attribute name."""
        return self.model_dump(exclude_none=True)


class FeedQuery(BaseModel):
    """Subscription query sent to the remote feed."""

    model_config = {"frozen": True}

    order_by: str = Field(default="createdAt", description="Document field to order by")
    descending: bool = Field(default=True, description="Newest first")
    limit: int = Field(default=100, ge=1, description="Maximum documents per snapshot")


def strip_empty(data: Mapping[str, Any]) -> dict[str, Any]:
    """Drop None and blank-string values so they are never written."""
    cleaned: dict[str, Any] = {}
    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        cleaned[key] = value
    return cleaned
