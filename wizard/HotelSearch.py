import logging
import os
import re

from amadeus import Client, ResponseError

from mock_data import generate_mock_accommodations, get_city_code, search_mock_cities
from TripDraft import DraftValidationError, HotelComponent, parse_date

try:
    from .lookups import ProviderError, provider_error_from
except ImportError:
    from lookups import ProviderError, provider_error_from

logger = logging.getLogger(__name__)

_amadeus = Client(
    client_id=os.getenv("AMADEUS_CLIENT_ID", ""),
    client_secret=os.getenv("AMADEUS_CLIENT_SECRET", ""),
)

_has_credentials = bool(os.getenv("AMADEUS_CLIENT_ID"))

MAX_HOTEL_IDS = 20


def status() -> dict:
    return {
        "provider": "amadeus" if _has_credentials else "mock",
        "configured": _has_credentials,
    }


def search_cities(keyword: str) -> list:
    """City autocomplete for the hotel step. Needs at least two characters."""
    keyword = (keyword or "").strip()
    if len(keyword) < 2:
        raise ProviderError("Search query must be at least 2 characters", status_code=400)
    if not _has_credentials:
        return search_mock_cities(keyword)
    try:
        response = _amadeus.reference_data.locations.cities.get(keyword=keyword)
    except ResponseError as e:
        logger.warning("Amadeus city search %r failed: %s", keyword, e)
        raise provider_error_from(e, "City search")
    return [
        {
            "name": city.get("name", ""),
            "country": city.get("address", {}).get("countryCode", ""),
            "iata_code": city.get("iataCode", ""),
        }
        for city in response.data
    ]


def _check_stay(city, check_in, check_out):
    if not city or not check_in or not check_out:
        raise DraftValidationError("City, check-in and check-out dates are required")
    if parse_date(check_in) >= parse_date(check_out):
        raise DraftValidationError("Check-out date must be after check-in date")


def search_hotels(city: str, check_in: str, check_out: str, adults: int = 1, rooms: int = 1) -> list:
    """Search for hotels via the Amadeus Hotel Search API.
    city may be an IATA city code (e.g. LON, PAR, NYC) or a city name.
    Dates must be YYYY-MM-DD format.
    """
    _check_stay(city, check_in, check_out)
    if not _has_credentials:
        return generate_mock_accommodations(city, check_in, check_out, num_guests=adults)

    city_code = city if re.fullmatch(r"[A-Z]{3}", city) else get_city_code(city)
    try:
        # Step 1: get hotel IDs in the city
        hotels_resp = _amadeus.reference_data.locations.hotels.by_city.get(
            cityCode=city_code,
            hotelSource="ALL",
        )
        hotel_ids = [h["hotelId"] for h in hotels_resp.data[:MAX_HOTEL_IDS]]
        if not hotel_ids:
            return []

        # Step 2: fetch live offers for those hotels
        offers_resp = _amadeus.shopping.hotel_offers_search.get(
            hotelIds=hotel_ids,
            checkInDate=check_in,
            checkOutDate=check_out,
            adults=adults,
            roomQuantity=rooms,
            currencyCode="USD",
        )
        return offers_resp.data
    except ResponseError as e:
        logger.warning("Amadeus hotel search in %s failed: %s", city_code, e)
        raise provider_error_from(e, "Hotel search")


def to_component(result: dict, check_in: str, check_out: str, rooms: int = 1, adults: int = 1) -> HotelComponent:
    """Normalize an Amadeus hotel offer or a mock hotel into a HotelComponent."""
    if "hotel" in result:
        hotel = result["hotel"]
        offer = (result.get("offers") or [{}])[0]
        price = offer.get("price", {})
        return HotelComponent(
            id=f"hotel-{hotel['hotelId']}-{check_in}",
            title=hotel.get("name", hotel["hotelId"]),
            price=float(price.get("total") or 0),
            currency=price.get("currency", "USD"),
            check_in_date=check_in,
            check_out_date=check_out,
            room_quantity=rooms,
            adults_per_room=adults,
            hotel_details=result,
        )

    slug = re.sub(r"[^a-z0-9]+", "-", result.get("city", "").lower()).strip("-")
    return HotelComponent(
        id=f"hotel-{slug}-{result['id']}-{check_in}",
        title=result["name"],
        price=float(result["total_price"]),
        currency=result.get("currency", "USD"),
        check_in_date=check_in,
        check_out_date=check_out,
        room_quantity=rooms,
        adults_per_room=adults,
        hotel_details=result,
    )


def search(city, check_in, check_out, adults=1, rooms=1) -> list[HotelComponent]:
    results = search_hotels(city, check_in, check_out, adults, rooms)
    return [to_component(r, check_in, check_out, rooms, adults) for r in results]
