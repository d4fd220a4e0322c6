"""
Turns the free-text destinations field into the initial route.

The result is only a starting point: the route planning step lets the user
reorder, rename, re-date and add stops, so a wrong guess is always fixable.
"""

from __future__ import annotations

from TripDraft import ItineraryStop, add_days

MULTI_DESTINATION_SEPARATOR = ";;"


def split_destinations(text: str) -> list[str]:
    """Resolve a destinations string into an ordered list of stop names.

    "Tokyo, Japan;; Kyoto, Japan"  -> ["Tokyo, Japan", "Kyoto, Japan"]
    "Tokyo, Japan"                 -> ["Tokyo"]
    "Tokyo, Japan, Kyoto, Japan"   -> ["Tokyo", "Kyoto"]
    "Tokyo"                        -> ["Tokyo"]
    """
    if not text:
        return []

    if MULTI_DESTINATION_SEPARATOR in text:
        names = [part.strip() for part in text.split(MULTI_DESTINATION_SEPARATOR)]
    else:
        parts = [part.strip() for part in text.split(",")]
        if len(parts) == 2:
            names = [parts[0]]
        elif len(parts) > 2:
            # Assumes strict "City, Country, City, Country" alternation
            names = parts[::2]
        else:
            names = parts

    return [name for name in names if name]


def parse_destinations(text: str, start_date: str = "") -> list[ItineraryStop]:
    """Build one destination stop per parsed city, dated from start_date."""
    return [
        ItineraryStop(
            id=f"dest-{index}",
            name=name,
            day=index + 1,
            date=add_days(start_date, index) if start_date else "",
            type="destination",
        )
        for index, name in enumerate(split_destinations(text))
    ]
