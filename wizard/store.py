"""
In-memory owner of one trip draft while the wizard edits it.

The store is the only place that applies reducer actions. A refused
transition never escapes as an exception: it becomes a warning Notice and the
draft stays exactly as it was.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from TripDraft import DraftActionError, DraftValidationError, HotelConflictError, HotelComponent, TripDraft

try:
    from . import reducer
    from .costs import CostSummary, cost_summary
    from .itinerary import stops_outside_trip
except ImportError:
    import reducer  # type: ignore
    from costs import CostSummary, cost_summary  # type: ignore
    from itinerary import stops_outside_trip  # type: ignore

logger = logging.getLogger(__name__)


@dataclass
class Notice:
    level: str  # "success" | "warning" | "error"
    message: str


_SUCCESS_MESSAGES = {
    "REMOVE_COMPONENT": "Removed from your trip",
    "CLEAR_COMPONENTS": "Cleared selection",
    "REPLACE_COMPONENT": "Updated your trip",
    "PARSE_DESTINATIONS": "Route built from your destinations",
    "ADD_STOP": "Destination added",
    "REMOVE_STOP": "Destination removed",
    "AUTO_ASSIGN_DATES": "Dates automatically assigned based on trip start date",
}

# Actions after which dated stops may no longer fit the trip window
_DATE_CHECKED = ("AUTO_ASSIGN_DATES", "SET_DATES")


class DraftStore:
    def __init__(self, draft: Optional[TripDraft] = None):
        self.draft = draft or TripDraft()
        self.notices: list[Notice] = []
        self.history: list[str] = []
        # Set by the last refused ADD/REPLACE so a caller can ask the user to confirm
        self.pending_conflict: Optional[HotelConflictError] = None

    def notify(self, level: str, message: str) -> None:
        self.notices.append(Notice(level, message))

    def dispatch(self, action) -> bool:
        """Apply one action. Returns False (draft untouched) when it is refused."""
        before = self.draft
        try:
            after = reducer.reduce(before, action)
        except HotelConflictError as exc:
            self.pending_conflict = exc
            logger.info("%s refused: %d overlapping hotel(s)", action.type, len(exc.conflicts))
            self.notify("warning", str(exc))
            return False
        except (DraftActionError, DraftValidationError) as exc:
            logger.info("%s refused: %s", action.type, exc)
            self.notify("warning", str(exc))
            return False

        self.pending_conflict = None
        self.draft = after
        self.history.append(action.type)
        self._report(action, before, after)
        return True

    def _report(self, action, before: TripDraft, after: TripDraft) -> None:
        if action.type in ("ADD_COMPONENT", "REPLACE_COMPONENT"):
            new = action.component
            added = 1 if action.type == "ADD_COMPONENT" else 0
            dropped = len(before.components) + added - len(after.components)
            if isinstance(new, HotelComponent) and dropped > 0:
                self.notify("success", f"Hotel updated! Replaced {dropped} existing booking(s).")
            elif action.type == "ADD_COMPONENT":
                self.notify("success", f"{new.title} added to trip")
            else:
                self.notify("success", _SUCCESS_MESSAGES[action.type])
        elif action.type in _SUCCESS_MESSAGES:
            self.notify("success", _SUCCESS_MESSAGES[action.type])

        if action.type in _DATE_CHECKED:
            outside = stops_outside_trip(after.itinerary, after.start_date, after.end_date)
            if outside:
                self.notify(
                    "warning",
                    f"{len(outside)} stop(s) fall outside the trip dates; "
                    "change the trip dates or adjust those stops.",
                )

    def cost_summary(self) -> CostSummary:
        return cost_summary(
            self.draft.components, self.draft.number_of_travelers, self.draft.currency
        )

    def drain_notices(self) -> list[Notice]:
        notices, self.notices = self.notices, []
        return notices
