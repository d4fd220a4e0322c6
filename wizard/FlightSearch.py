import logging
import os

from amadeus import Client, ResponseError

from mock_data import generate_mock_flights, get_airport_for_city
from TripDraft import DraftValidationError, FlightComponent, parse_date

try:
    from .lookups import provider_error_from
except ImportError:
    from lookups import provider_error_from

logger = logging.getLogger(__name__)

_amadeus = Client(
    client_id=os.getenv("AMADEUS_CLIENT_ID", ""),
    client_secret=os.getenv("AMADEUS_CLIENT_SECRET", ""),
)

_has_credentials = bool(os.getenv("AMADEUS_CLIENT_ID"))


def airport_code(place: str) -> str:
    place = place.strip()
    if len(place) == 3 and place.isalpha() and place.isupper():
        return place
    return get_airport_for_city(place)


def search_flights(
    origin: str, destination: str, departure_date: str, return_date: str = "", adults: int = 1
) -> list:
    """Search for flights via the Amadeus Flight Offers Search API.
    origin and destination may be IATA airport codes (e.g. LHR, JFK) or city names.
    Dates must be YYYY-MM-DD format. Pass an empty string for return_date on one-way trips.
    """
    if not origin or not destination or not departure_date:
        raise DraftValidationError("origin, destination and departure date are required")
    depart, back = parse_date(departure_date), parse_date(return_date)
    if back and back < depart:
        raise DraftValidationError("Return date cannot be before the departure date")

    origin, destination = airport_code(origin), airport_code(destination)
    if not _has_credentials:
        return generate_mock_flights(
            origin, destination, departure_date,
            return_date=return_date or None,
            num_travelers=adults,
        )
    try:
        params = {
            "originLocationCode": origin,
            "destinationLocationCode": destination,
            "departureDate": departure_date,
            "adults": adults,
            "currencyCode": "USD",
            "max": 10,
        }
        if return_date:
            params["returnDate"] = return_date
        return _amadeus.shopping.flight_offers_search.get(**params).data
    except ResponseError as e:
        logger.warning("Amadeus flight search %s-%s failed: %s", origin, destination, e)
        raise provider_error_from(e, "Flight search")


def to_component(offer: dict, flight_type: str = "outbound") -> FlightComponent:
    """Normalize one Amadeus offer or mock flight into a FlightComponent."""
    if "itineraries" in offer:
        segments = offer["itineraries"][0]["segments"]
        first, last = segments[0], segments[-1]
        origin = first["departure"]["iataCode"]
        destination = last["arrival"]["iataCode"]
        departure_date = first["departure"]["at"][:10]
        price = offer.get("price", {})
        return FlightComponent(
            id=f"flight-{origin}-{destination}-{departure_date}-{offer['id']}",
            title=f"{first['carrierCode']}{first['number']} {origin} to {destination}",
            price=float(price.get("grandTotal") or price.get("total") or 0),
            currency=price.get("currency", "USD"),
            flight_type=flight_type,
            departure_date=departure_date,
            flight_details=offer,
        )

    departure_date = offer["departure_datetime"][:10]
    origin, destination = offer["from_airport"], offer["to_airport"]
    return FlightComponent(
        id=f"flight-{origin}-{destination}-{departure_date}-{offer['id']}",
        title=f"{offer['airline']} {offer['flight_number']} {origin} to {destination}",
        price=float(offer["price"]),
        currency=offer.get("currency", "USD"),
        flight_type=offer.get("flight_type", flight_type),
        departure_date=departure_date,
        flight_details=offer,
    )


def search(origin, destination, departure_date, return_date="", adults=1) -> list[FlightComponent]:
    offers = search_flights(origin, destination, departure_date, return_date, adults)
    # Amadeus round trips come back as one offer holding both itineraries
    flight_type = "round_trip" if return_date else "outbound"
    return [to_component(offer, flight_type) for offer in offers]
