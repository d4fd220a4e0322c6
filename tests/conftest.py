import sys
import os
import tempfile
import pytest

# Project root — needed for TripDraft, mock_data, database, main.
_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
# wizard/ subdir — imported directly so reducer, FlightSearch, lookups etc.
# can be imported by name in tests without going through the package.
_wizard_dir = os.path.join(_root, "wizard")
for _p in (_root, _wizard_dir):
    if _p not in sys.path:
        sys.path.insert(0, _p)

# Tests run against mock providers and a throwaway SQLite file; these must be
# set before database/main are imported.
_db_dir = tempfile.mkdtemp(prefix="trip-drafts-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_db_dir, 'test.db')}"
for _var in ("AMADEUS_CLIENT_ID", "AMADEUS_CLIENT_SECRET", "STRIPE_SECRET_KEY",
             "TRIP_API_URL", "VISA_API_URL"):
    os.environ.pop(_var, None)

from TripDraft import HotelComponent, ItineraryStop, TripComponent, TripDraft


def _hotel(hotel_id, check_in, check_out, price=100.0):
    return HotelComponent(
        id=hotel_id,
        title=f"Hotel {hotel_id}",
        price=price,
        check_in_date=check_in,
        check_out_date=check_out,
    )


@pytest.fixture
def draft():
    return TripDraft(
        title="Japan Trip",
        destinations="Tokyo, Japan;; Kyoto, Japan",
        start_date="2025-09-01",
        end_date="2025-09-05",
        budget_amount=3000,
        currency="USD",
        number_of_travelers=2,
    )


@pytest.fixture
def stops():
    return [
        ItineraryStop(id="dest-0", name="Tokyo", day=1, date="2025-09-01"),
        ItineraryStop(id="dest-1", name="Kyoto", day=2, date="2025-09-02"),
        ItineraryStop(id="dest-2", name="Osaka", day=3, date="2025-09-03"),
        ItineraryStop(id="custom-abc", name="Nara", day=4, date="2025-09-04", type="custom"),
    ]


@pytest.fixture
def make_hotel():
    return _hotel


@pytest.fixture
def hotel():
    return _hotel("h1", "2025-07-01", "2025-07-03")


@pytest.fixture
def priced_components():
    return [
        TripComponent(id="c1", title="Flight", component_type="flight", price=100),
        TripComponent(id="c2", title="Hotel", component_type="hotel", price=250.50),
        TripComponent(id="c3", title="Temple", component_type="poi", price=0),
    ]
