"""
Unit tests for wizard/FlightSearch.py

The Amadeus client is patched at the module level; with _has_credentials
False the search goes to the seeded mock data instead.
"""
import pytest
from unittest.mock import MagicMock, patch

from amadeus import ResponseError

import FlightSearch as fs
from lookups import ProviderError
from TripDraft import DraftValidationError, FlightComponent


AMADEUS_OFFER = {
    "id": "1",
    "itineraries": [{
        "segments": [
            {
                "departure": {"iataCode": "LHR", "at": "2026-06-01T08:15:00"},
                "arrival": {"iataCode": "FRA", "at": "2026-06-01T10:45:00"},
                "carrierCode": "LH",
                "number": "901",
            },
            {
                "departure": {"iataCode": "FRA", "at": "2026-06-01T12:00:00"},
                "arrival": {"iataCode": "CDG", "at": "2026-06-01T13:10:00"},
                "carrierCode": "LH",
                "number": "1026",
            },
        ],
    }],
    "price": {"currency": "EUR", "total": "210.00", "grandTotal": "231.40"},
}


def _response_error(status_code):
    response = MagicMock()
    response.status_code = status_code
    return ResponseError(response)


class TestSearchFlightsMockFallback:
    """Without AMADEUS_CLIENT_ID the search falls back to mock data."""

    def test_returns_mock_data(self):
        with patch("FlightSearch._has_credentials", False), \
             patch("FlightSearch.generate_mock_flights", return_value=[{"id": "m1"}]) as mock_gen:
            result = fs.search_flights("LHR", "CDG", "2026-06-01", "2026-06-08", 2)
            assert result == [{"id": "m1"}]
            mock_gen.assert_called_once_with(
                "LHR", "CDG", "2026-06-01",
                return_date="2026-06-08",
                num_travelers=2,
            )

    def test_city_names_become_airport_codes(self):
        with patch("FlightSearch._has_credentials", False), \
             patch("FlightSearch.generate_mock_flights", return_value=[]) as mock_gen:
            fs.search_flights("London", "Paris", "2026-06-01", "", 1)
            mock_gen.assert_called_once_with(
                "LHR", "CDG", "2026-06-01",
                return_date=None,
                num_travelers=1,
            )

    def test_mock_results_are_deterministic(self):
        with patch("FlightSearch._has_credentials", False):
            first = fs.search_flights("LHR", "CDG", "2026-06-01", "2026-06-08", 1)
            second = fs.search_flights("LHR", "CDG", "2026-06-01", "2026-06-08", 1)
        assert first == second
        assert {f["flight_type"] for f in first} == {"outbound", "return"}


class TestSearchFlightsValidation:

    def test_missing_fields(self):
        with pytest.raises(DraftValidationError, match="required"):
            fs.search_flights("LHR", "", "2026-06-01")

    def test_return_before_departure(self):
        with pytest.raises(DraftValidationError, match="Return date"):
            fs.search_flights("LHR", "CDG", "2026-06-08", "2026-06-01")

    def test_malformed_date(self):
        with pytest.raises(DraftValidationError):
            fs.search_flights("LHR", "CDG", "01/06/2026")


class TestSearchFlightsAmadeus:
    """With credentials present the Amadeus API is called."""

    def test_calls_amadeus_with_correct_params(self):
        mock_resp = MagicMock()
        mock_resp.data = [AMADEUS_OFFER]

        with patch("FlightSearch._has_credentials", True), \
             patch.object(fs._amadeus.shopping.flight_offers_search, "get", return_value=mock_resp) as mock_get:
            result = fs.search_flights("LHR", "CDG", "2026-06-01", "2026-06-08", 2)

            mock_get.assert_called_once_with(
                originLocationCode="LHR",
                destinationLocationCode="CDG",
                departureDate="2026-06-01",
                returnDate="2026-06-08",
                adults=2,
                currencyCode="USD",
                max=10,
            )
            assert result == [AMADEUS_OFFER]

    def test_omits_return_date_for_one_way(self):
        mock_resp = MagicMock()
        mock_resp.data = []

        with patch("FlightSearch._has_credentials", True), \
             patch.object(fs._amadeus.shopping.flight_offers_search, "get", return_value=mock_resp) as mock_get:
            fs.search_flights("LHR", "CDG", "2026-06-01", "", 1)
            assert "returnDate" not in mock_get.call_args.kwargs

    def test_rate_limit_maps_to_429(self):
        with patch("FlightSearch._has_credentials", True), \
             patch.object(
                 fs._amadeus.shopping.flight_offers_search, "get",
                 side_effect=_response_error(429),
             ):
            with pytest.raises(ProviderError) as excinfo:
                fs.search_flights("LHR", "CDG", "2026-06-01")
        assert excinfo.value.status_code == 429

    def test_other_errors_map_to_502(self):
        with patch("FlightSearch._has_credentials", True), \
             patch.object(
                 fs._amadeus.shopping.flight_offers_search, "get",
                 side_effect=_response_error(500),
             ):
            with pytest.raises(ProviderError) as excinfo:
                fs.search_flights("LHR", "CDG", "2026-06-01")
        assert excinfo.value.status_code == 502


class TestToComponent:

    def test_amadeus_offer(self):
        component = fs.to_component(AMADEUS_OFFER, "round_trip")
        assert isinstance(component, FlightComponent)
        assert component.id == "flight-LHR-CDG-2026-06-01-1"
        assert component.title == "LH901 LHR to CDG"
        assert component.price == 231.40
        assert component.currency == "EUR"
        assert component.flight_type == "round_trip"
        assert component.service_date().isoformat() == "2026-06-01"

    def test_mock_flight(self):
        offer = {
            "id": "flight_return_0",
            "flight_type": "return",
            "airline": "Japan Airlines",
            "flight_number": "JL123",
            "from_airport": "NRT",
            "to_airport": "LHR",
            "departure_datetime": "2026-06-08T09:30:00",
            "price": 640,
            "currency": "USD",
        }
        component = fs.to_component(offer)
        assert component.id == "flight-NRT-LHR-2026-06-08-flight_return_0"
        assert component.title == "Japan Airlines JL123 NRT to LHR"
        assert component.flight_type == "return"
        assert component.departure_date == "2026-06-08"
        assert component.price == 640.0

    def test_search_normalizes_everything(self):
        with patch("FlightSearch._has_credentials", False):
            components = fs.search("Tokyo", "London", "2026-06-01", "2026-06-08")
        assert len(components) == 6
        assert all(isinstance(c, FlightComponent) for c in components)
        assert len({c.id for c in components}) == 6
