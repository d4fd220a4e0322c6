"""
Route planning operations on the list of itinerary stops.

Every function returns a new list and leaves its input untouched. The one
invariant they all keep: stop ``day`` numbers are 1..N in list order.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import date
from typing import Optional

from TripDraft import (
    DraftValidationError,
    ItineraryError,
    ItineraryStop,
    MissingStartDateError,
    add_days,
    parse_date,
)


def renumber(stops: list[ItineraryStop]) -> list[ItineraryStop]:
    return [replace(stop, day=index + 1) for index, stop in enumerate(stops)]


def _index_of(stops: list[ItineraryStop], stop_id: str) -> int:
    for index, stop in enumerate(stops):
        if stop.id == stop_id:
            return index
    raise ItineraryError(f"Stop {stop_id!r} is not on the route")


def reorder(stops: list[ItineraryStop], from_index: int, to_index: int) -> list[ItineraryStop]:
    """Move the stop at from_index so it ends up at to_index."""
    count = len(stops)
    if not (0 <= from_index < count and 0 <= to_index < count):
        raise ItineraryError(f"Cannot move stop {from_index} to {to_index} on a {count}-stop route")
    items = list(stops)
    moved = items.pop(from_index)
    items.insert(to_index, moved)
    return renumber(items)


def auto_assign_dates(stops: list[ItineraryStop], start_date: str) -> list[ItineraryStop]:
    """Give each stop consecutive dates from the trip start, overwriting edits."""
    if not start_date:
        raise MissingStartDateError("Please set trip start date in Core Details first.")
    parse_date(start_date)
    return [
        replace(stop, day=index + 1, date=add_days(start_date, index))
        for index, stop in enumerate(stops)
    ]


def _check_in_trip(new_date: str, start_date: str, end_date: str) -> None:
    day = parse_date(new_date)
    start, end = parse_date(start_date), parse_date(end_date)
    if day and start and end and not (start <= day <= end):
        raise ItineraryError(f"{new_date} is outside the trip dates ({start_date} to {end_date})")


def update_stop_date(
    stops: list[ItineraryStop],
    stop_id: str,
    new_date: str,
    start_date: str = "",
    end_date: str = "",
) -> list[ItineraryStop]:
    """Re-date a single stop. Several stops may share a day."""
    index = _index_of(stops, stop_id)
    if new_date:
        try:
            _check_in_trip(new_date, start_date, end_date)
        except DraftValidationError as exc:
            raise ItineraryError(str(exc))
    items = list(stops)
    items[index] = replace(items[index], date=new_date or "")
    return items


def rename_stop(stops: list[ItineraryStop], stop_id: str, name: str) -> list[ItineraryStop]:
    if not name or not name.strip():
        raise ItineraryError("Destination name cannot be empty")
    index = _index_of(stops, stop_id)
    items = list(stops)
    items[index] = replace(items[index], name=name.strip())
    return items


def add_custom_stop(
    stops: list[ItineraryStop],
    start_date: str = "",
    name: str = "New Destination",
    today: Optional[date] = None,
) -> list[ItineraryStop]:
    """Append a user-defined stop dated the day after the current last stop."""
    last = stops[-1] if stops else None
    if last and last.date:
        next_date = add_days(last.date, 1)
    else:
        next_date = start_date or (today or date.today()).isoformat()
    new_stop = ItineraryStop(
        id=f"custom-{uuid.uuid4().hex[:8]}",
        name=name or "New Destination",
        day=len(stops) + 1,
        date=next_date,
        type="custom",
    )
    return list(stops) + [new_stop]


def remove_stop(stops: list[ItineraryStop], stop_id: str) -> list[ItineraryStop]:
    """Drop a user-added stop; parsed destinations can only be edited."""
    index = _index_of(stops, stop_id)
    if not stops[index].removable:
        raise ItineraryError("Parsed destinations can't be removed, only edited")
    return renumber(stops[:index] + stops[index + 1:])


def stops_outside_trip(stops: list[ItineraryStop], start_date: str, end_date: str) -> list[str]:
    """Ids of dated stops that fall outside [start_date, end_date]."""
    start, end = parse_date(start_date), parse_date(end_date)
    if not start or not end:
        return []
    outside = []
    for stop in stops:
        day = parse_date(stop.date)
        if day and not (start <= day <= end):
            outside.append(stop.id)
    return outside
