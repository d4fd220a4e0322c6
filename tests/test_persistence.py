"""
Unit tests for wizard/persistence.py

The HTTP session is a MagicMock so calls can be inspected without a backend.
"""
from unittest.mock import MagicMock

import pytest
import requests

from persistence import DraftPersistence
from TripDraft import TripDraft


def _session(trip_id="trip-42"):
    session = MagicMock()
    session.headers = {}
    session.post.return_value.json.return_value = {"success": True, "trip": {"id": trip_id}}
    return session


class TestLocalMode:

    def test_demo_id(self, draft):
        persistence = DraftPersistence(base_url="")
        assert persistence.create_trip(draft)
        assert draft.id.startswith("demo-trip-")

    def test_create_is_idempotent(self, draft):
        persistence = DraftPersistence(base_url="")
        persistence.create_trip(draft)
        first_id = draft.id
        assert persistence.create_trip(draft)
        assert draft.id == first_id

    def test_title_required(self):
        draft = TripDraft(title="  ")
        persistence = DraftPersistence(base_url="")
        assert persistence.create_trip(draft) is False
        assert draft.id is None
        assert persistence.notices[-1].message == "Please provide a trip title to start."

    def test_save_stamps_last_saved(self, draft):
        persistence = DraftPersistence(base_url="")
        assert persistence.save_progress(draft)
        assert draft.last_saved


class TestBackend:

    def test_create_posts_draft(self, draft):
        session = _session()
        persistence = DraftPersistence(base_url="http://api.local/", token="tok", session=session)
        assert persistence.create_trip(draft)
        assert draft.id == "trip-42"
        assert session.headers["Authorization"] == "Bearer tok"

        url = session.post.call_args.args[0]
        body = session.post.call_args.kwargs["json"]
        assert url == "http://api.local/api/trips/custom"
        assert body["title"] == "Japan Trip"
        assert "id" not in body and "status" not in body

    def test_save_creates_then_puts(self, draft):
        session = _session()
        persistence = DraftPersistence(base_url="http://api.local", session=session)
        assert persistence.save_progress(draft)
        session.post.assert_called_once()
        assert session.put.call_args.args[0] == "http://api.local/api/trips/custom/trip-42"

        persistence.save_progress(draft)
        session.post.assert_called_once()
        assert session.put.call_count == 2

    def test_failed_create_leaves_draft_alone(self, draft):
        session = _session()
        session.post.side_effect = requests.ConnectionError("refused")
        persistence = DraftPersistence(base_url="http://api.local", session=session)
        assert persistence.save_progress(draft) is False
        assert draft.id is None
        assert draft.last_saved == ""
        assert persistence.notices[-1].level == "error"
        assert persistence.notices[-1].message == "Failed to create trip. Please try again."
        session.put.assert_not_called()

    def test_unexpected_create_response(self, draft):
        session = _session()
        session.post.return_value.json.return_value = {"success": False}
        persistence = DraftPersistence(base_url="http://api.local", session=session)
        assert persistence.create_trip(draft) is False

    def test_failed_save_keeps_local_changes(self, draft):
        session = _session()
        session.put.return_value.raise_for_status.side_effect = requests.HTTPError("500")
        persistence = DraftPersistence(base_url="http://api.local", session=session)
        draft.title = "Kansai"
        assert persistence.save_progress(draft) is False
        assert draft.title == "Kansai"
        assert draft.last_saved == ""
        assert "kept locally" in persistence.notices[-1].message

    @pytest.mark.parametrize("env_url, expected", [("http://env.local/", "http://env.local"), (None, "")])
    def test_base_url_from_environment(self, monkeypatch, env_url, expected):
        if env_url:
            monkeypatch.setenv("TRIP_API_URL", env_url)
        else:
            monkeypatch.delenv("TRIP_API_URL", raising=False)
        assert DraftPersistence().base_url == expected
