"""
Trip draft reducer.

Every change the wizard makes to a draft is one of the typed actions below.
``reduce(draft, action)`` returns a new draft and never mutates its input,
so each transition can be inspected and tested on its own. Refused
transitions raise a DraftActionError subclass.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Optional

from TripDraft import (
    DraftActionError,
    DraftValidationError,
    TripComponent,
    TripDraft,
    component_from_dict,
    parse_date,
    to_amount,
    to_travelers,
)

try:
    from . import conflicts, itinerary
    from .destination_parser import parse_destinations
except ImportError:
    import conflicts  # type: ignore
    import itinerary  # type: ignore
    from destination_parser import parse_destinations  # type: ignore


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

@dataclass
class AddComponent:
    component: TripComponent
    confirm_replace: bool = False
    type: ClassVar[str] = "ADD_COMPONENT"


@dataclass
class RemoveComponent:
    component_id: str
    type: ClassVar[str] = "REMOVE_COMPONENT"


@dataclass
class ClearComponents:
    component_type: Optional[str] = None
    type: ClassVar[str] = "CLEAR_COMPONENTS"


@dataclass
class ReplaceComponent:
    component_id: str
    component: TripComponent
    confirm_replace: bool = False
    type: ClassVar[str] = "REPLACE_COMPONENT"


@dataclass
class ReorderStop:
    from_index: int
    to_index: int
    type: ClassVar[str] = "REORDER_STOP"


@dataclass
class SetDates:
    start_date: str = ""
    end_date: str = ""
    type: ClassVar[str] = "SET_DATES"


@dataclass
class UpdateDetails:
    changes: dict = field(default_factory=dict)
    type: ClassVar[str] = "UPDATE_DETAILS"

    EDITABLE: ClassVar[frozenset] = frozenset({
        "title", "destinations", "budget_amount", "currency", "number_of_travelers",
    })


@dataclass
class ParseDestinations:
    """Rebuild the route from the destinations text (replaces current stops)."""
    type: ClassVar[str] = "PARSE_DESTINATIONS"


@dataclass
class AddStop:
    name: str = "New Destination"
    type: ClassVar[str] = "ADD_STOP"


@dataclass
class RenameStop:
    stop_id: str
    name: str
    type: ClassVar[str] = "RENAME_STOP"


@dataclass
class SetStopDate:
    stop_id: str
    date: str = ""
    type: ClassVar[str] = "SET_STOP_DATE"


@dataclass
class RemoveStop:
    stop_id: str
    type: ClassVar[str] = "REMOVE_STOP"


@dataclass
class AutoAssignDates:
    type: ClassVar[str] = "AUTO_ASSIGN_DATES"


ACTIONS = {
    cls.type: cls
    for cls in (
        AddComponent, RemoveComponent, ClearComponents, ReplaceComponent,
        ReorderStop, SetDates, UpdateDetails, ParseDestinations, AddStop,
        RenameStop, SetStopDate, RemoveStop, AutoAssignDates,
    )
}


def action_from_dict(payload: dict) -> Any:
    """Build an action from its JSON form, e.g. {"type": "REORDER_STOP", "from_index": 0, "to_index": 2}."""
    payload = dict(payload or {})
    action_cls = ACTIONS.get(payload.pop("type", None))
    if action_cls is None:
        raise DraftValidationError(f"Unknown action type. Expected one of: {', '.join(sorted(ACTIONS))}")
    if "component" in payload:
        payload["component"] = component_from_dict(payload["component"])
    accepted = {f.name for f in fields(action_cls)}
    try:
        return action_cls(**{k: v for k, v in payload.items() if k in accepted})
    except TypeError as exc:
        raise DraftValidationError(f"Invalid {action_cls.type} payload: {exc}")


# ---------------------------------------------------------------------------
# Handlers: each receives a private copy of the draft
# ---------------------------------------------------------------------------

def _add_component(draft: TripDraft, action: AddComponent) -> None:
    draft.components = conflicts.add_component(
        draft.components, action.component, confirm_replace=action.confirm_replace
    )


def _remove_component(draft: TripDraft, action: RemoveComponent) -> None:
    draft.components = conflicts.remove_component(draft.components, action.component_id)


def _clear_components(draft: TripDraft, action: ClearComponents) -> None:
    draft.components = conflicts.clear_components(draft.components, action.component_type)


def _replace_component(draft: TripDraft, action: ReplaceComponent) -> None:
    draft.components = conflicts.replace_component(
        draft.components, action.component_id, action.component,
        confirm_replace=action.confirm_replace,
    )


def _reorder_stop(draft: TripDraft, action: ReorderStop) -> None:
    draft.route_planning.itinerary = itinerary.reorder(
        draft.itinerary, action.from_index, action.to_index
    )


def _set_dates(draft: TripDraft, action: SetDates) -> None:
    start, end = parse_date(action.start_date), parse_date(action.end_date)
    if start and end and end < start:
        raise DraftValidationError("End date cannot be before the start date")
    draft.start_date = action.start_date or ""
    draft.end_date = action.end_date or ""


def _update_details(draft: TripDraft, action: UpdateDetails) -> None:
    unknown = set(action.changes) - UpdateDetails.EDITABLE
    if unknown:
        raise DraftValidationError(f"Cannot update: {', '.join(sorted(unknown))}")
    changes = dict(action.changes)
    if "number_of_travelers" in changes:
        changes["number_of_travelers"] = to_travelers(changes["number_of_travelers"])
    if "budget_amount" in changes:
        changes["budget_amount"] = to_amount(changes["budget_amount"])
    for name, value in changes.items():
        setattr(draft, name, value)
    draft.validate()


def _parse_destinations(draft: TripDraft, action: ParseDestinations) -> None:
    draft.route_planning.itinerary = parse_destinations(draft.destinations, draft.start_date)


def _add_stop(draft: TripDraft, action: AddStop) -> None:
    draft.route_planning.itinerary = itinerary.add_custom_stop(
        draft.itinerary, draft.start_date, name=action.name
    )


def _rename_stop(draft: TripDraft, action: RenameStop) -> None:
    draft.route_planning.itinerary = itinerary.rename_stop(draft.itinerary, action.stop_id, action.name)


def _set_stop_date(draft: TripDraft, action: SetStopDate) -> None:
    draft.route_planning.itinerary = itinerary.update_stop_date(
        draft.itinerary, action.stop_id, action.date, draft.start_date, draft.end_date
    )


def _remove_stop(draft: TripDraft, action: RemoveStop) -> None:
    draft.route_planning.itinerary = itinerary.remove_stop(draft.itinerary, action.stop_id)


def _auto_assign_dates(draft: TripDraft, action: AutoAssignDates) -> None:
    draft.route_planning.itinerary = itinerary.auto_assign_dates(draft.itinerary, draft.start_date)


_HANDLERS = {
    AddComponent: _add_component,
    RemoveComponent: _remove_component,
    ClearComponents: _clear_components,
    ReplaceComponent: _replace_component,
    ReorderStop: _reorder_stop,
    SetDates: _set_dates,
    UpdateDetails: _update_details,
    ParseDestinations: _parse_destinations,
    AddStop: _add_stop,
    RenameStop: _rename_stop,
    SetStopDate: _set_stop_date,
    RemoveStop: _remove_stop,
    AutoAssignDates: _auto_assign_dates,
}


def reduce(draft: TripDraft, action) -> TripDraft:
    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise DraftActionError(f"Unsupported action: {action!r}")
    next_draft = copy.deepcopy(draft)
    handler(next_draft, action)
    return next_draft
