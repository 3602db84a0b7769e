from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class TravelMode(str, Enum):
    FLIGHT = "Flight"
    TRAIN = "Train"
    BUS = "Bus"


class Budget(str, Enum):
    LUXURY = "Luxury"
    MEDIUM = "Medium"
    BUDGET = "Budget-friendly"


class Intent(str, Enum):
    BOOK_TRIP = "book_trip"
    BOOK_HOTEL = "book_hotel"
    BOOK_CAR = "book_car"
    DISPLAY_TRIP = "display_trip"
    CANCEL_TRIP = "cancel_trip"
    GREET = "greet"
    GENERAL_QUERY = "general_query"
    ERROR = "error"
    UNKNOWN = "unknown"


class Slot(str, Enum):
    FROM = "from"
    TO = "to"
    DATE = "date"
    MODE = "mode"
    BUDGET = "budget"
    GROUP_SIZE = "groupSize"
    RETURN_DATE = "returnDate"


class WireModel(BaseModel):
    """Immutable model that speaks camelCase JSON to the caller."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---------------------------
# Offers
# ---------------------------
class BaseTransportOffer(WireModel):
    id: str
    origin: str
    destination: str
    date: Optional[str] = None
    departure_time: Optional[str] = None
    arrival_time: Optional[str] = None
    duration: Optional[str] = None
    price: float
    currency: str = "INR"
    deeplink: Optional[str] = None


class FlightOffer(BaseTransportOffer):
    kind: Literal["flight"] = "flight"
    airline: Optional[str] = None
    flight_number: Optional[str] = None
    stops: int = 0


class TrainOffer(BaseTransportOffer):
    kind: Literal["train"] = "train"
    train_name: Optional[str] = None
    train_number: Optional[str] = None
    travel_class: Optional[str] = None


class BusOffer(BaseTransportOffer):
    kind: Literal["bus"] = "bus"
    operator: Optional[str] = None
    bus_type: Optional[str] = None


TransportOffer = Annotated[
    Union[FlightOffer, TrainOffer, BusOffer],
    Field(discriminator="kind"),
]


class HotelOffer(WireModel):
    id: str
    name: str
    price: float
    currency: str = "INR"
    rating: Optional[float] = None
    location: Optional[str] = None
    address: Optional[str] = None
    amenities: list[str] = Field(default_factory=list)
    category: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    deeplink: Optional[str] = None


class CabQuote(WireModel):
    provider: str
    name: str
    price: float
    estimated_time: Optional[str] = None
    details: Optional[str] = None
    deeplink: Optional[str] = None


class CabLeg(WireModel):
    name: str
    price: float
    details: str


# ---------------------------
# Plan
# ---------------------------
class TripPlanData(WireModel):
    transport: Optional[TransportOffer] = None
    transport_type: Optional[Literal["flight", "train", "bus"]] = None
    hotel: HotelOffer
    cab_to_station: Optional[CabLeg] = None
    cab_to_hotel: Optional[CabLeg] = None
    cab_options_to_station: Optional[list[CabQuote]] = None
    cab_options_to_hotel: Optional[list[CabQuote]] = None
    group_size: int
    total: float
    return_trip: bool = False
    return_date: Optional[str] = None
    return_transport: Optional[TransportOffer] = None


# outbound field, return field per offer kind
LEG_FIELDS: dict[str, tuple[str, str]] = {
    "flight": ("flight", "return_flight"),
    "train": ("train", "return_train"),
    "bus": ("bus", "return_bus"),
}

MODE_KINDS: dict[TravelMode, str] = {
    TravelMode.FLIGHT: "flight",
    TravelMode.TRAIN: "train",
    TravelMode.BUS: "bus",
}


def mode_kind(mode: Optional[str]) -> Optional[str]:
    """Offer kind for a context mode, None when the mode names no known transport."""
    try:
        return MODE_KINDS[TravelMode(mode)]
    except ValueError:
        return None


# ---------------------------
# Conversation state
# ---------------------------
class TripContext(WireModel):
    origin: Optional[str] = Field(default=None, alias="from")
    destination: Optional[str] = Field(default=None, alias="to")
    date: Optional[str] = None
    mode: Optional[str] = None
    budget: Optional[str] = None
    group_size: Optional[int] = None
    return_trip: Optional[bool] = None
    return_date: Optional[str] = None
    trip_duration: Optional[int] = None
    is_hotel_only: Optional[bool] = None
    ask: Optional[Slot] = None

    flight: Optional[FlightOffer] = None
    train: Optional[TrainOffer] = None
    bus: Optional[BusOffer] = None
    return_flight: Optional[FlightOffer] = None
    return_train: Optional[TrainOffer] = None
    return_bus: Optional[BusOffer] = None
    hotel: Optional[HotelOffer] = None

    last_planned_trip: Optional[TripPlanData] = None
    booking_reference: Optional[str] = None

    @field_validator("ask", mode="before")
    @classmethod
    def _unknown_ask_is_none(cls, v):
        if v is None or isinstance(v, Slot):
            return v
        try:
            return Slot(v)
        except ValueError:
            return None

    def evolve(self, **changes: Any) -> "TripContext":
        return self.model_copy(update=changes)

    def outbound_leg(self):
        for kind in ("flight", "train", "bus"):
            leg = getattr(self, kind)
            if leg is not None:
                return leg
        return None

    def return_leg(self):
        outbound = self.outbound_leg()
        if outbound is None:
            return None
        return getattr(self, LEG_FIELDS[outbound.kind][1])

    @property
    def hotel_only(self) -> bool:
        return bool(self.is_hotel_only)

    @property
    def return_leg_pending(self) -> bool:
        return bool(self.return_trip) and self.outbound_leg() is not None and self.return_leg() is None


class ParsedIntent(WireModel):
    intent: Intent = Intent.UNKNOWN
    origin: Optional[str] = Field(default=None, alias="from")
    destination: Optional[str] = Field(default=None, alias="to")
    date: Optional[str] = None
    budget: Optional[str] = None
    mode: Optional[str] = None
    group_size: Optional[int] = None
    return_trip: Optional[bool] = None
    return_date: Optional[str] = None
    message: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def _null_strings(cls, v):
        if isinstance(v, str) and v.strip().lower() in {"null", "none", ""}:
            return None
        return v

    @field_validator("intent", mode="before")
    @classmethod
    def _known_intent(cls, v):
        try:
            return Intent(v)
        except ValueError:
            return Intent.UNKNOWN

    @field_validator("group_size", mode="before")
    @classmethod
    def _numeric_group_size(cls, v):
        if v is None or isinstance(v, int):
            return v
        try:
            return int(float(v))
        except (TypeError, ValueError):
            return None


class TurnResult(WireModel):
    message: str
    context: TripContext
    success: Optional[bool] = None
    assistant_follow_up: Optional[bool] = None
    ask: Optional[Slot] = None
    data: Optional[Union[TripPlanData, dict[str, Any]]] = None

    @classmethod
    def follow_up(cls, context: TripContext, message: str, ask: Optional[Slot] = None,
                  data=None) -> "TurnResult":
        return cls(message=message, context=context, assistant_follow_up=True, ask=ask, data=data)

    @classmethod
    def ok(cls, context: TripContext, message: str, data=None) -> "TurnResult":
        return cls(message=message, context=context, success=True, data=data)

    @classmethod
    def failure(cls, context: TripContext, message: str) -> "TurnResult":
        return cls(message=message, context=context, success=False)


# ---------------------------
# Booking
# ---------------------------
class Traveler(WireModel):
    name: str = "Guest Traveler"
    email: Optional[str] = None
    phone: Optional[str] = None


class BookingRequest(WireModel):
    transport_type: Optional[str] = None
    transport_id: Optional[str] = None
    return_transport_id: Optional[str] = None
    hotel_id: str
    traveler: Traveler
    group_size: int
    total: float
    currency: str = "INR"
    plan: TripPlanData
    context: TripContext


class BookingResult(WireModel):
    success: bool
    booking_id: Optional[str] = None
    message: Optional[str] = None
