import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

from dataclasses_json import config, dataclass_json


class DraftError(Exception):
    """Base class for trip draft errors."""


class DraftValidationError(DraftError, ValueError):
    """Trip data that can never be accepted (bad dates, negative price...)."""


class DraftActionError(DraftError):
    """A wizard transition that was refused; the draft stays unchanged."""


class MissingStartDateError(DraftActionError):
    pass


class ItineraryError(DraftActionError):
    pass


class HotelConflictError(DraftActionError):
    """The new hotel stay overlaps existing ones and replacement was not confirmed."""

    def __init__(self, conflicts):
        self.conflicts = list(conflicts)
        super().__init__(
            "You already have a hotel booked for some of these dates. "
            "Confirm to replace the existing booking."
        )


def parse_date(value) -> Optional[date]:
    """Parse a YYYY-MM-DD string (or a longer ISO timestamp). Empty → None."""
    if not value:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise DraftValidationError(f"Invalid date: {value!r}")


def add_days(value: str, days: int) -> str:
    return (parse_date(value) + timedelta(days=days)).isoformat()


def to_travelers(value) -> int:
    """Traveler count as a positive int; accepts "2" and 2.0 from JSON."""
    try:
        count = float(value)
    except (TypeError, ValueError):
        raise DraftValidationError(f"number_of_travelers must be a positive integer, got {value!r}")
    if isinstance(value, bool) or not count.is_integer() or count < 1:
        raise DraftValidationError(f"number_of_travelers must be a positive integer, got {value!r}")
    return int(count)


def to_amount(value) -> float:
    if value is None or value == "":
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise DraftValidationError(f"budget_amount must be a number, got {value!r}")
    if isinstance(value, bool) or not math.isfinite(amount):
        raise DraftValidationError(f"budget_amount must be a number, got {value!r}")
    if amount < 0:
        raise DraftValidationError("budget_amount cannot be negative")
    return amount


@dataclass_json
@dataclass
class ItineraryStop:
    id: str
    name: str
    day: int
    date: str = ""
    type: str = "destination"
    coordinates: Optional[dict] = None

    @property
    def removable(self) -> bool:
        return self.type == "custom"


@dataclass_json
@dataclass
class TripComponent:
    id: str
    title: str
    component_type: str = ""
    price: float = 0.0
    currency: str = "USD"
    status: str = "planned"
    booking_date: str = ""

    def cost(self) -> float:
        return float(self.price or 0)

    def service_date(self) -> Optional[date]:
        """Calendar day the component is used on, if it has one."""
        return None

    def overlaps(self, other: "TripComponent") -> bool:
        return False


@dataclass_json
@dataclass
class FlightComponent(TripComponent):
    component_type: str = "flight"
    flight_type: str = "outbound"
    departure_date: str = ""
    flight_details: dict = field(default_factory=dict)

    def service_date(self) -> Optional[date]:
        if self.departure_date:
            return parse_date(self.departure_date)
        # Amadeus offers keep the departure deep inside the first segment
        itineraries = self.flight_details.get("itineraries") or [{}]
        segments = itineraries[0].get("segments") or [{}]
        return parse_date(segments[0].get("departure", {}).get("at", ""))


@dataclass_json
@dataclass
class HotelComponent(TripComponent):
    component_type: str = "hotel"
    check_in_date: str = ""
    check_out_date: str = ""
    nights: int = 0
    room_quantity: int = 1
    adults_per_room: int = 1
    hotel_details: dict = field(default_factory=dict)

    def __post_init__(self):
        start, end = self.stay_interval()
        if start and end:
            self.nights = (end - start).days

    def stay_interval(self):
        return parse_date(self.check_in_date), parse_date(self.check_out_date)

    def service_date(self) -> Optional[date]:
        return parse_date(self.check_in_date)

    def covers(self, day: date) -> bool:
        start, end = self.stay_interval()
        return bool(start and end and start <= day < end)

    def overlaps(self, other: TripComponent) -> bool:
        if not isinstance(other, HotelComponent):
            return False
        new_start, new_end = self.stay_interval()
        existing_start, existing_end = other.stay_interval()
        if None in (new_start, new_end, existing_start, existing_end):
            return False
        # Half-open stays: checking out the day another stay checks in is fine
        return new_start < existing_end and new_end > existing_start


@dataclass_json
@dataclass
class ActivityComponent(TripComponent):
    component_type: str = "activity"
    activity_date: str = ""
    activity_time: str = ""
    duration: str = ""
    location: str = ""
    activity_details: dict = field(default_factory=dict)

    def service_date(self) -> Optional[date]:
        return parse_date(self.activity_date)


@dataclass_json
@dataclass
class PoiComponent(ActivityComponent):
    component_type: str = "poi"


@dataclass_json
@dataclass
class GuideComponent(TripComponent):
    component_type: str = "guide"
    location: str = ""
    guide_details: dict = field(default_factory=dict)


COMPONENT_TYPES = {
    "flight": FlightComponent,
    "hotel": HotelComponent,
    "activity": ActivityComponent,
    "poi": PoiComponent,
    "guide": GuideComponent,
}


def component_from_dict(data: dict) -> TripComponent:
    """Decode one component, picking the variant from its component_type tag."""
    if isinstance(data, TripComponent):
        return data
    kind = (data or {}).get("component_type")
    variant = COMPONENT_TYPES.get(kind)
    if variant is None:
        raise DraftValidationError(f"Unknown component type: {kind!r}")
    try:
        price = float(data.get("price") or 0)
    except (TypeError, ValueError):
        raise DraftValidationError(f"Invalid price: {data.get('price')!r}")
    if price < 0:
        raise DraftValidationError("Component price cannot be negative")
    if not data.get("id") or not data.get("title"):
        raise DraftValidationError("Components need an id and a title")
    return variant.from_dict({**data, "price": price})


def _decode_components(raw) -> list:
    return [component_from_dict(c) for c in raw or []]


def _decode_stops(raw) -> list:
    return [s if isinstance(s, ItineraryStop) else ItineraryStop.from_dict(s) for s in raw or []]


@dataclass_json
@dataclass
class RoutePlanning:
    itinerary: list[ItineraryStop] = field(
        default_factory=list, metadata=config(decoder=_decode_stops)
    )


@dataclass_json
@dataclass
class TripDraft:
    title: str = ""
    destinations: str = ""
    start_date: str = ""
    end_date: str = ""
    budget_amount: float = 0.0
    currency: str = "USD"
    number_of_travelers: int = 1
    components: list[TripComponent] = field(
        default_factory=list, metadata=config(decoder=_decode_components)
    )
    route_planning: RoutePlanning = field(
        default_factory=RoutePlanning, metadata=config(field_name="routePlanning")
    )
    id: Optional[str] = None
    status: str = "draft"
    last_saved: str = ""

    @property
    def itinerary(self) -> list[ItineraryStop]:
        return self.route_planning.itinerary

    def components_of(self, component_type: str) -> list[TripComponent]:
        return [c for c in self.components if c.component_type == component_type]

    def trip_days(self) -> int:
        """Calendar days covered by the trip, both ends included."""
        start, end = parse_date(self.start_date), parse_date(self.end_date)
        if not start or not end:
            return 0
        return (end - start).days + 1

    def validate(self) -> "TripDraft":
        """Check the trip-level fields; numeric fields are coerced in place."""
        start, end = parse_date(self.start_date), parse_date(self.end_date)
        if start and end and end < start:
            raise DraftValidationError("End date cannot be before the start date")
        self.number_of_travelers = to_travelers(self.number_of_travelers)
        if not self.currency or len(self.currency) != 3:
            raise DraftValidationError("currency must be a 3-letter code")
        self.budget_amount = to_amount(self.budget_amount)
        return self
