import logging
import os

from amadeus import Client, ResponseError

from mock_data import (
    CITY_COORDINATES,
    generate_mock_activities,
    generate_mock_guides,
    generate_mock_pois,
)
from TripDraft import ActivityComponent, DraftValidationError, GuideComponent, PoiComponent

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

SEARCH_RADIUS_KM = 20


def _city_name(city: str) -> str:
    # "Kyoto, Japan" -> "Kyoto"
    return city.split(",")[0].strip()


def search_activities(city: str, activity_date: str = "", preferences=None) -> list:
    """Tours and activities around a city (Amadeus Tours & Activities API)."""
    if not city or not city.strip():
        raise DraftValidationError("city is required")
    city = _city_name(city)
    coordinates = CITY_COORDINATES.get(city)
    if not _has_credentials or coordinates is None:
        if _has_credentials:
            logger.warning("No coordinates for %s, serving mock activities", city)
        return generate_mock_activities(city, activity_date, preferences)
    latitude, longitude = coordinates
    try:
        return _amadeus.shopping.activities.get(
            latitude=latitude, longitude=longitude, radius=SEARCH_RADIUS_KM
        ).data
    except ResponseError as e:
        logger.warning("Amadeus activity search around %s failed: %s", city, e)
        raise provider_error_from(e, "Activity search")


def to_component(activity: dict, activity_date: str = "", city: str = "") -> ActivityComponent:
    # Amadeus nests amount and currency under price
    if isinstance(activity.get("price"), dict):
        price = activity.get("price") or {}
        return ActivityComponent(
            id=f"activity-{activity['id']}",
            title=activity.get("name", "Activity"),
            price=float(price.get("amount") or 0),
            currency=price.get("currencyCode", "USD"),
            activity_date=activity_date,
            duration=activity.get("minimumDuration", ""),
            location=city,
            activity_details=activity,
        )
    return ActivityComponent(
        id=f"activity-{activity['location'].lower().replace(' ', '-')}-{activity['id']}",
        title=activity["name"],
        price=float(activity["price"]),
        currency=activity.get("currency", "USD"),
        activity_date=activity_date or activity.get("activity_date", ""),
        duration=activity.get("duration", ""),
        location=activity.get("location", city),
        activity_details=activity,
    )


def search(city, activity_date="", preferences=None) -> list[ActivityComponent]:
    results = search_activities(city, activity_date, preferences)
    return [to_component(a, activity_date, _city_name(city)) for a in results]


def search_pois(city: str, activity_date: str = "") -> list[PoiComponent]:
    """Free points of interest; these come from static city data."""
    city = _city_name(city)
    return [
        PoiComponent(
            id=f"poi-{city.lower().replace(' ', '-')}-{poi['id']}",
            title=poi["name"],
            price=float(poi["price"]),
            currency=poi["currency"],
            activity_date=activity_date,
            location=poi["location"],
            activity_details=poi,
        )
        for poi in generate_mock_pois(city)
    ]


def search_guides(city: str) -> list[GuideComponent]:
    city = _city_name(city)
    if not city:
        raise DraftValidationError("city is required")
    return [
        GuideComponent(
            id=f"guide-{city.lower().replace(' ', '-')}-{guide['id']}",
            title=f"Local guide: {guide['name']}",
            price=float(guide["price"]),
            currency=guide["currency"],
            location=guide["location"],
            guide_details={
                "name": guide["name"],
                "languages": guide["languages"],
                "specialties": guide["specialties"],
                "rating": guide["rating"],
            },
        )
        for guide in generate_mock_guides(city)
    ]
