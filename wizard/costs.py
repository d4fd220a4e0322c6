"""
Trip cost summary, pricing markups, platform fees and booking references.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from fnmatch import fnmatchcase
from typing import Iterable, Optional

from dataclasses_json import dataclass_json

from TripDraft import TripComponent, parse_date

BOOKING_REFERENCE_PREFIX = "ACN"
PLATFORM_FEE_PERCENTAGE = 0.10

_REFERENCE_PATTERN = re.compile(rf"^{BOOKING_REFERENCE_PREFIX}-\d{{8}}-[A-Z0-9]{{6}}$")


@dataclass_json
@dataclass
class CostSummary:
    total: float
    cost_per_person: float
    currency: str
    number_of_travelers: int
    breakdown: dict = field(default_factory=dict)


def cost_summary(
    components: Iterable[TripComponent],
    number_of_travelers: int = 1,
    currency: str = "USD",
) -> CostSummary:
    """Sum every component price, whatever its type or status."""
    total = 0.0
    breakdown: dict[str, float] = {}
    for component in components:
        amount = component.cost()
        total += amount
        breakdown[component.component_type] = breakdown.get(component.component_type, 0.0) + amount

    travelers = number_of_travelers or 0
    per_person = total / travelers if travelers > 0 else total
    return CostSummary(
        total=round(total, 2),
        cost_per_person=round(per_person, 2),
        currency=currency or "USD",
        number_of_travelers=travelers,
        breakdown={k: round(v, 2) for k, v in breakdown.items()},
    )


# ---------------------------------------------------------------------------
# Pricing rules
# ---------------------------------------------------------------------------

def _rule_field(rule, name, default=None):
    if isinstance(rule, dict):
        return rule.get(name, default)
    return getattr(rule, name, default)


def matching_rule(rules, rule_type: str, route: str, on_date: Optional[date] = None):
    """First active rule of ``rule_type`` whose route pattern matches ``route``.

    Patterns are shell-style globs over routes such as "MAD-BCN" ("MAD-*").
    An empty pattern matches every route.
    """
    on_date = on_date or date.today()
    for rule in rules:
        if _rule_field(rule, "rule_type") != rule_type:
            continue
        if not _rule_field(rule, "is_active", True):
            continue
        valid_from = parse_date(_rule_field(rule, "valid_from"))
        valid_to = parse_date(_rule_field(rule, "valid_to"))
        if (valid_from and on_date < valid_from) or (valid_to and on_date > valid_to):
            continue
        pattern = _rule_field(rule, "route_pattern") or "*"
        if fnmatchcase(route.upper(), pattern.upper()):
            return rule
    return None


def apply_markup(price: float, rule) -> float:
    if rule is None:
        return round(price, 2)
    value = float(_rule_field(rule, "markup_value", 0) or 0)
    if _rule_field(rule, "markup_type") == "percentage":
        return round(price * (1 + value / 100), 2)
    return round(price + value, 2)


def price_with_rules(price: float, rules, rule_type: str, route: str,
                     on_date: Optional[date] = None) -> float:
    return apply_markup(price, matching_rule(rules, rule_type, route, on_date))


# ---------------------------------------------------------------------------
# Booking totals and references
# ---------------------------------------------------------------------------

def platform_fee(subtotal: float) -> float:
    return round(subtotal * PLATFORM_FEE_PERCENTAGE, 2)


def booking_total(subtotal: float, fee: Optional[float] = None) -> float:
    return round(subtotal + (platform_fee(subtotal) if fee is None else fee), 2)


def generate_booking_reference(now: Optional[datetime] = None) -> str:
    """ACN-YYYYMMDD-XXXXXX"""
    stamp = (now or datetime.now()).strftime("%Y%m%d")
    unique = uuid.uuid4().hex[:6].upper()
    return f"{BOOKING_REFERENCE_PREFIX}-{stamp}-{unique}"


def is_valid_booking_reference(reference) -> bool:
    return isinstance(reference, str) and bool(_REFERENCE_PATTERN.match(reference))
