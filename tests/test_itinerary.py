"""
Unit tests for wizard/itinerary.py
"""
from datetime import date
from itertools import product

import pytest

import itinerary
from TripDraft import DraftValidationError, ItineraryError, MissingStartDateError


class TestReorder:

    def test_moves_stop_and_renumbers(self, stops):
        result = itinerary.reorder(stops, 0, 2)
        assert [s.name for s in result] == ["Kyoto", "Osaka", "Tokyo", "Nara"]
        assert [s.day for s in result] == [1, 2, 3, 4]

    def test_days_contiguous_for_every_move(self, stops):
        for i, j in product(range(len(stops)), repeat=2):
            result = itinerary.reorder(stops, i, j)
            assert [s.day for s in result] == list(range(1, len(stops) + 1))
            assert result[j].id == stops[i].id

    def test_keeps_dates(self, stops):
        result = itinerary.reorder(stops, 3, 0)
        assert result[0].date == "2025-09-04"

    def test_does_not_mutate_input(self, stops):
        itinerary.reorder(stops, 0, 3)
        assert [s.name for s in stops] == ["Tokyo", "Kyoto", "Osaka", "Nara"]
        assert stops[0].day == 1

    @pytest.mark.parametrize("i, j", [(-1, 0), (0, 4), (4, 0)])
    def test_out_of_bounds(self, stops, i, j):
        with pytest.raises(ItineraryError):
            itinerary.reorder(stops, i, j)


class TestAutoAssignDates:

    def test_overwrites_manual_dates(self, stops):
        edited = itinerary.update_stop_date(stops, "dest-1", "2025-09-04")
        result = itinerary.auto_assign_dates(edited, "2025-10-01")
        assert [s.date for s in result] == ["2025-10-01", "2025-10-02", "2025-10-03", "2025-10-04"]

    def test_idempotent(self, stops):
        once = itinerary.auto_assign_dates(stops, "2025-09-01")
        twice = itinerary.auto_assign_dates(once, "2025-09-01")
        assert once == twice

    def test_requires_start_date(self, stops):
        with pytest.raises(MissingStartDateError, match="Please set trip start date"):
            itinerary.auto_assign_dates(stops, "")

    def test_invalid_start_date(self, stops):
        with pytest.raises(DraftValidationError):
            itinerary.auto_assign_dates(stops, "not-a-date")


class TestUpdateStopDate:

    def test_only_touches_one_stop(self, stops):
        result = itinerary.update_stop_date(stops, "dest-2", "2025-09-01")
        assert [s.date for s in result] == ["2025-09-01", "2025-09-02", "2025-09-01", "2025-09-04"]

    def test_stops_may_share_a_day(self, stops):
        result = itinerary.update_stop_date(stops, "dest-1", "2025-09-01")
        assert result[0].date == result[1].date

    def test_rejects_date_outside_trip(self, stops):
        with pytest.raises(ItineraryError, match="outside the trip dates"):
            itinerary.update_stop_date(stops, "dest-1", "2025-09-20", "2025-09-01", "2025-09-05")

    def test_accepts_trip_boundaries(self, stops):
        result = itinerary.update_stop_date(stops, "dest-1", "2025-09-05", "2025-09-01", "2025-09-05")
        assert result[1].date == "2025-09-05"

    def test_clearing_a_date(self, stops):
        assert itinerary.update_stop_date(stops, "dest-0", "")[0].date == ""

    def test_unknown_stop(self, stops):
        with pytest.raises(ItineraryError):
            itinerary.update_stop_date(stops, "nope", "2025-09-01")


class TestCustomStops:

    def test_add_after_last_dated_stop(self, stops):
        result = itinerary.add_custom_stop(stops, "2025-09-01")
        new = result[-1]
        assert new.id.startswith("custom-")
        assert new.name == "New Destination"
        assert new.type == "custom"
        assert new.day == 5
        assert new.date == "2025-09-05"

    def test_add_to_empty_route_uses_start_date(self):
        result = itinerary.add_custom_stop([], "2025-09-01")
        assert result[0].date == "2025-09-01"
        assert result[0].day == 1

    def test_add_without_any_date_uses_today(self):
        result = itinerary.add_custom_stop([], "", today=date(2025, 3, 3))
        assert result[0].date == "2025-03-03"

    def test_remove_custom_reindexes(self, stops):
        moved = itinerary.reorder(stops, 3, 0)
        result = itinerary.remove_stop(moved, "custom-abc")
        assert [s.name for s in result] == ["Tokyo", "Kyoto", "Osaka"]
        assert [s.day for s in result] == [1, 2, 3]

    def test_parsed_destination_cannot_be_removed(self, stops):
        with pytest.raises(ItineraryError, match="can't be removed"):
            itinerary.remove_stop(stops, "dest-0")

    def test_rename(self, stops):
        result = itinerary.rename_stop(stops, "dest-0", "  Tokyo, Japan ")
        assert result[0].name == "Tokyo, Japan"

    def test_rename_rejects_blank(self, stops):
        with pytest.raises(ItineraryError):
            itinerary.rename_stop(stops, "dest-0", "   ")


def test_stops_outside_trip(stops):
    assert itinerary.stops_outside_trip(stops, "2025-09-01", "2025-09-03") == ["custom-abc"]
    assert itinerary.stops_outside_trip(stops, "2025-09-01", "") == []
