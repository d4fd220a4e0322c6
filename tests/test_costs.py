"""
Unit tests for wizard/costs.py
"""
from datetime import date, datetime

import pytest

import costs
from TripDraft import TripComponent


class TestCostSummary:

    def test_total_and_per_person(self, priced_components):
        summary = costs.cost_summary(priced_components, number_of_travelers=2)
        assert summary.total == 350.50
        assert summary.cost_per_person == 175.25

    def test_breakdown_by_type(self, priced_components):
        summary = costs.cost_summary(priced_components, 2)
        assert summary.breakdown == {"flight": 100.0, "hotel": 250.5, "poi": 0.0}

    def test_zero_travelers_falls_back_to_total(self, priced_components):
        summary = costs.cost_summary(priced_components, number_of_travelers=0)
        assert summary.cost_per_person == summary.total

    def test_booked_and_planned_both_count(self):
        items = [
            TripComponent(id="a", title="A", component_type="activity", price=10, status="booked"),
            TripComponent(id="b", title="B", component_type="activity", price=5, status="planned"),
        ]
        assert costs.cost_summary(items).total == 15

    def test_empty(self):
        summary = costs.cost_summary([], 3, "EUR")
        assert summary.total == 0
        assert summary.currency == "EUR"

    def test_serializes(self, priced_components):
        data = costs.cost_summary(priced_components, 2).to_dict()
        assert data["total"] == 350.5
        assert data["number_of_travelers"] == 2


class TestPricingRules:

    RULES = [
        {"rule_type": "flight", "route_pattern": "MAD-*", "markup_type": "fixed", "markup_value": 20},
        {"rule_type": "flight", "route_pattern": "*", "markup_type": "percentage", "markup_value": 5},
        {"rule_type": "hotel", "route_pattern": "", "markup_type": "percentage", "markup_value": 10},
    ]

    def test_first_matching_rule_wins(self):
        assert costs.price_with_rules(100, self.RULES, "flight", "MAD-BCN") == 120
        assert costs.price_with_rules(100, self.RULES, "flight", "LHR-CDG") == 105

    def test_empty_pattern_matches_everything(self):
        assert costs.price_with_rules(200, self.RULES, "hotel", "PAR") == 220

    def test_no_rule_keeps_price(self):
        assert costs.price_with_rules(99.999, [], "flight", "LHR-CDG") == 100.0

    def test_inactive_and_expired_rules_skipped(self):
        rules = [
            {"rule_type": "flight", "route_pattern": "*", "markup_type": "fixed",
             "markup_value": 50, "is_active": False},
            {"rule_type": "flight", "route_pattern": "*", "markup_type": "fixed",
             "markup_value": 30, "valid_to": "2025-01-31"},
            {"rule_type": "flight", "route_pattern": "*", "markup_type": "fixed",
             "markup_value": 10, "valid_from": "2025-01-01"},
        ]
        assert costs.price_with_rules(100, rules, "flight", "X-Y", on_date=date(2025, 2, 1)) == 110

    def test_pattern_is_case_insensitive(self):
        rule = costs.matching_rule(self.RULES, "flight", "mad-bcn")
        assert rule["markup_type"] == "fixed"


class TestBooking:

    def test_platform_fee_is_ten_percent(self):
        assert costs.platform_fee(350.5) == 35.05
        assert costs.booking_total(350.5) == 385.55

    def test_reference_format(self):
        reference = costs.generate_booking_reference(datetime(2025, 9, 1, 12, 0))
        assert reference.startswith("ACN-20250901-")
        assert costs.is_valid_booking_reference(reference)

    @pytest.mark.parametrize("value", ["", "ACN-2025-ABCDEF", "XYZ-20250901-ABCDEF", None])
    def test_invalid_references(self, value):
        assert not costs.is_valid_booking_reference(value)
