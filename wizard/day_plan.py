"""
Day-by-day view of a trip draft for the review step, plus its iCal export.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from dataclasses_json import dataclass_json
from icalendar import Calendar, Event as ICalEvent

from TripDraft import (
    ActivityComponent,
    FlightComponent,
    GuideComponent,
    HotelComponent,
    TripDraft,
    parse_date,
)


@dataclass_json
@dataclass
class DayPlan:
    day: int
    date: str
    stops: list = field(default_factory=list)
    flights: list = field(default_factory=list)
    check_in: Optional[dict] = None
    staying_at: Optional[dict] = None
    activities: list = field(default_factory=list)
    guides: list = field(default_factory=list)


def build_day_plan(draft: TripDraft) -> list[DayPlan]:
    """One entry per calendar day from start_date to end_date, both included."""
    start, end = parse_date(draft.start_date), parse_date(draft.end_date)
    if not start or not end:
        return []

    guides = [c.to_dict() for c in draft.components if isinstance(c, GuideComponent)]
    plan = []
    for offset in range((end - start).days + 1):
        day = start + timedelta(days=offset)
        entry = DayPlan(day=offset + 1, date=day.isoformat(), guides=guides)
        entry.stops = [s.to_dict() for s in draft.itinerary if parse_date(s.date) == day]
        for component in draft.components:
            if isinstance(component, HotelComponent):
                if component.service_date() == day:
                    entry.check_in = component.to_dict()
                if component.covers(day):
                    entry.staying_at = component.to_dict()
            elif isinstance(component, FlightComponent):
                if component.service_date() == day:
                    entry.flights.append(component.to_dict())
            elif isinstance(component, ActivityComponent):
                if component.service_date() == day:
                    entry.activities.append(component.to_dict())
        entry.activities.sort(key=lambda a: a.get("activity_time") or "")
        plan.append(entry)
    return plan


def _activity_start(component: ActivityComponent, day):
    start = datetime.combine(day, datetime.min.time()).replace(hour=9)
    try:
        hour, minute = component.activity_time.split(":")[:2]
        return start.replace(hour=int(hour), minute=int(minute))
    except (ValueError, AttributeError):
        return start


def trip_calendar(draft: TripDraft) -> bytes:
    """Render the draft as an .ics calendar."""
    cal = Calendar()
    cal.add("prodid", "-//Trip Draft Wizard//EN")
    cal.add("version", "2.0")
    cal.add("calscale", "GREGORIAN")
    cal.add("x-wr-calname", draft.title or "Trip")

    for stop in draft.itinerary:
        day = parse_date(stop.date)
        if not day:
            continue
        ev = ICalEvent()
        ev.add("summary", f"Day {stop.day}: {stop.name}")
        ev.add("dtstart", day)
        ev.add("dtend", day + timedelta(days=1))
        ev.add("uid", f"{stop.id}@trip-draft")
        cal.add_component(ev)

    for component in draft.components:
        day = component.service_date()
        if not day:
            continue
        ev = ICalEvent()
        ev.add("summary", component.title)
        if isinstance(component, HotelComponent):
            ev.add("dtstart", day)
            ev.add("dtend", parse_date(component.check_out_date))
        elif isinstance(component, ActivityComponent):
            ev_start = _activity_start(component, day)
            ev.add("dtstart", ev_start)
            ev.add("dtend", ev_start + timedelta(minutes=60))
            if component.location:
                ev.add("location", component.location)
        else:
            ev.add("dtstart", day)
            ev.add("dtend", day + timedelta(days=1))
        ev.add("uid", f"{component.id}@trip-draft")
        cal.add_component(ev)

    return cal.to_ical()
