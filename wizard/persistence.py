"""
Keeps the backend copy of a trip draft in sync with the wizard.

Saves are wholesale and unconditional: the full draft is sent every time and
whatever arrives last wins. Nothing is applied optimistically, so a failed
call only produces an error notice; the in-memory draft is never touched.
"""

from __future__ import annotations

import logging
import os
import time
from datetime import datetime
from typing import Optional

import requests

from TripDraft import TripDraft

try:
    from .store import Notice
except ImportError:
    from store import Notice

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 15


class DraftPersistence:
    def __init__(self, base_url: Optional[str] = None, token: Optional[str] = None,
                 session: Optional[requests.Session] = None):
        base_url = base_url if base_url is not None else os.getenv("TRIP_API_URL", "")
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"
        self.notices: list[Notice] = []

    def _fail(self, message: str) -> bool:
        self.notices.append(Notice("error", message))
        return False

    def _payload(self, draft: TripDraft) -> dict:
        data = draft.to_dict(encode_json=True)
        for key in ("id", "status", "last_saved"):
            data.pop(key, None)
        return data

    def create_trip(self, draft: TripDraft) -> bool:
        """Give the draft an id, once. Safe to call before every step."""
        if draft.id:
            return True
        if not draft.title or not draft.title.strip():
            self.notices.append(Notice("warning", "Please provide a trip title to start."))
            return False

        if not self.base_url:
            draft.id = f"demo-trip-{int(time.time() * 1000)}"
            logger.info("No trip API configured, using local id %s", draft.id)
            return True

        try:
            response = self.session.post(
                f"{self.base_url}/api/trips/custom",
                json=self._payload(draft),
                timeout=REQUEST_TIMEOUT,
            )
            response.raise_for_status()
            trip_id = response.json()["trip"]["id"]
        except (requests.RequestException, KeyError, ValueError) as e:
            logger.warning("Creating trip %r failed: %s", draft.title, e)
            return self._fail("Failed to create trip. Please try again.")

        draft.id = trip_id
        return True

    def save_progress(self, draft: TripDraft) -> bool:
        """Send the whole draft to the backend; creates the trip first if needed."""
        if not self.create_trip(draft):
            return False

        if self.base_url:
            try:
                response = self.session.put(
                    f"{self.base_url}/api/trips/custom/{draft.id}",
                    json=self._payload(draft),
                    timeout=REQUEST_TIMEOUT,
                )
                response.raise_for_status()
            except requests.RequestException as e:
                logger.warning("Saving trip %s failed: %s", draft.id, e)
                return self._fail("Failed to save trip progress. Your changes are kept locally.")

        draft.last_saved = datetime.now().isoformat(timespec="seconds")
        return True
