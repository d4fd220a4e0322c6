"""
Adding, editing and removing trip components.

Only hotels can clash: two stays may not overlap unless the user confirms the
replacement, in which case every overlapping stay goes out as the new one
comes in. Flights, activities, POIs and guides can pile up on the same day.
"""

from __future__ import annotations

import logging
from typing import Optional

from TripDraft import (
    DraftActionError,
    DraftValidationError,
    HotelComponent,
    HotelConflictError,
    TripComponent,
)

logger = logging.getLogger(__name__)


def _check_hotel_dates(hotel: HotelComponent) -> None:
    check_in, check_out = hotel.stay_interval()
    if not check_in or not check_out:
        raise DraftValidationError("Please select check-in and check-out dates for this hotel.")
    if check_out <= check_in:
        raise DraftValidationError("Check-out date must be after check-in date")


def find_conflicts(components: list[TripComponent], new: TripComponent) -> list[TripComponent]:
    return [existing for existing in components if new.overlaps(existing)]


def add_component(
    components: list[TripComponent],
    new: TripComponent,
    confirm_replace: bool = False,
) -> list[TripComponent]:
    """Return the component list with ``new`` added.

    Raises HotelConflictError when ``new`` is a hotel overlapping existing
    stays and ``confirm_replace`` is false; nothing changes in that case.
    """
    if isinstance(new, HotelComponent):
        _check_hotel_dates(new)
    if any(c.id == new.id for c in components):
        raise DraftActionError(f"Component {new.id!r} is already part of this trip")

    conflicts = find_conflicts(components, new)
    if conflicts and not confirm_replace:
        raise HotelConflictError(conflicts)
    if conflicts:
        logger.info(
            "Replacing %d overlapping hotel(s) with %s",
            len(conflicts), new.id,
        )
    replaced = {c.id for c in conflicts}
    return [c for c in components if c.id not in replaced] + [new]


def remove_component(components: list[TripComponent], component_id: str) -> list[TripComponent]:
    remaining = [c for c in components if c.id != component_id]
    if len(remaining) == len(components):
        raise DraftActionError(f"Component {component_id!r} is not part of this trip")
    return remaining


def clear_components(
    components: list[TripComponent], component_type: Optional[str] = None
) -> list[TripComponent]:
    """Drop every component, or every component of one type."""
    if component_type is None:
        return []
    return [c for c in components if c.component_type != component_type]


def replace_component(
    components: list[TripComponent],
    component_id: str,
    updated: TripComponent,
    confirm_replace: bool = False,
) -> list[TripComponent]:
    """Edit flow: take the old component out and put the updated one in."""
    without_old = remove_component(components, component_id)
    return add_component(without_old, updated, confirm_replace=confirm_replace)
