"""
Third-party lookups used by the wizard: exchange rates, visa requirements and
cities per country.

Each capability has a live implementation (an HTTP API) and a static one
backed by the tables in mock_data. ResilientProvider retries the live one and
then falls back to the static one, so callers never write their own
try/except-and-substitute logic.
"""

from __future__ import annotations

import logging
import os
from typing import Callable

import requests

from mock_data import COUNTRY_CITIES, FALLBACK_RATES, VISA_REQUIREMENTS

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10

DEFAULT_EXCHANGE_RATE_API_URL = "https://api.exchangerate-api.com/v4/latest"
DEFAULT_CITIES_API_URL = "https://countriesnow.space/api/v0.1/countries/cities"

VISA_MESSAGES = {
    "none": "No visa needed",
    "visa_free": "Visa Free Entry",
    "visa_required": "Visa Required - Apply before travel",
    "visa_on_arrival": "Visa on Arrival Available",
    "e_visa": "Electronic Visa/ETA Required",
    "eta": "Electronic Visa/ETA Required",
    "esta": "Electronic Visa/ETA Required",
    "no_admission": "No Admission - Entry Not Permitted",
    "check_embassy": "Information not available, check with the embassy",
}


class ProviderError(Exception):
    """An upstream service failed; status_code is the HTTP status to answer with."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ProviderNotConfigured(ProviderError):
    def __init__(self, name: str):
        super().__init__(f"{name} is not configured", status_code=503)


def provider_error_from(exc: Exception, service: str) -> ProviderError:
    """Translate an upstream SDK/HTTP error into a user-facing ProviderError."""
    status = getattr(getattr(exc, "response", None), "status_code", None)
    if status == 429:
        return ProviderError(f"{service} is busy right now, please try again in a minute", 429)
    if status in (401, 403):
        return ProviderError(f"{service} rejected our credentials", 502)
    return ProviderError(f"{service} is unavailable right now", 502)


class ResilientProvider:
    """Primary-then-fallback wrapper around two implementations of one lookup."""

    def __init__(self, name: str, primary: Callable, fallback: Callable, retries: int = 2):
        self.name = name
        self.primary = primary
        self.fallback = fallback
        self.retries = retries

    def __call__(self, *args, **kwargs):
        for attempt in range(1, self.retries + 2):
            try:
                return self.primary(*args, **kwargs)
            except ProviderNotConfigured:
                logger.debug("%s: live provider not configured, using static data", self.name)
                break
            except (requests.RequestException, ProviderError, KeyError, ValueError) as exc:
                logger.warning("%s: attempt %d failed: %s", self.name, attempt, exc)

        logger.warning("%s: falling back to static data", self.name)
        try:
            return self.fallback(*args, **kwargs)
        except ProviderError:
            raise
        except (KeyError, ValueError) as exc:
            raise ProviderError(f"{self.name} is unavailable right now") from exc


# ---------------------------------------------------------------------------
# Exchange rates
# ---------------------------------------------------------------------------

def _live_rates(base: str) -> dict:
    url = os.getenv("EXCHANGE_RATE_API_URL", DEFAULT_EXCHANGE_RATE_API_URL).rstrip("/")
    response = requests.get(f"{url}/{base}", timeout=REQUEST_TIMEOUT)
    response.raise_for_status()
    rates = response.json()["rates"]
    return {"base": base, "rates": rates, "source": "live"}


def _static_rates(base: str) -> dict:
    if base not in FALLBACK_RATES:
        raise ProviderError(f"Unsupported currency: {base}", status_code=400)
    base_rate = FALLBACK_RATES[base]
    rates = {code: round(rate / base_rate, 6) for code, rate in FALLBACK_RATES.items()}
    return {"base": base, "rates": rates, "source": "static"}


_exchange_rates = ResilientProvider("exchange rates", _live_rates, _static_rates)


def get_exchange_rates(base: str = "USD") -> dict:
    return _exchange_rates((base or "USD").upper())


def convert(amount: float, from_currency: str, to_currency: str) -> dict:
    from_currency, to_currency = from_currency.upper(), to_currency.upper()
    if from_currency == to_currency:
        return {
            "amount": amount, "from": from_currency, "to": to_currency,
            "rate": 1.0, "converted": round(amount, 2), "source": "identity",
        }
    rates = get_exchange_rates(from_currency)
    rate = rates["rates"].get(to_currency)
    if rate is None:
        raise ProviderError(f"Unsupported currency: {to_currency}", status_code=400)
    return {
        "amount": amount,
        "from": from_currency,
        "to": to_currency,
        "rate": rate,
        "converted": round(amount * rate, 2),
        "source": rates["source"],
    }


# ---------------------------------------------------------------------------
# Visa requirements
# ---------------------------------------------------------------------------

def _visa_result(passport, destination, requirement, max_stay_days, source):
    message = VISA_MESSAGES.get(requirement, requirement)
    if max_stay_days:
        message += f" (Max stay: {max_stay_days} days)"
    return {
        "passport": passport,
        "destination": destination,
        "requirement": requirement,
        "max_stay_days": max_stay_days,
        "message": message,
        "source": source,
    }


def _live_visa(passport: str, destination: str) -> dict:
    url = os.getenv("VISA_API_URL")
    if not url:
        raise ProviderNotConfigured("Visa lookup")
    headers = {"Accept": "application/json"}
    api_key = os.getenv("VISA_API_KEY")
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    response = requests.get(
        f"{url.rstrip('/')}/{passport}/{destination}", headers=headers, timeout=REQUEST_TIMEOUT
    )
    response.raise_for_status()
    data = response.json()
    return _visa_result(
        passport, destination, data.get("requirement", "check_embassy"), data.get("max_stay"), "live"
    )


def _static_visa(passport: str, destination: str) -> dict:
    if passport == destination:
        return _visa_result(passport, destination, "none", None, "static")
    entry = VISA_REQUIREMENTS.get(
        (passport, destination), {"requirement": "check_embassy", "max_stay_days": None}
    )
    return _visa_result(passport, destination, entry["requirement"], entry["max_stay_days"], "static")


_visa = ResilientProvider("visa requirements", _live_visa, _static_visa)


def get_visa_requirements(passport: str, destination: str) -> dict:
    """Entry rules for a passport holder; both arguments are ISO alpha-2 codes."""
    passport, destination = passport.strip().upper(), destination.strip().upper()
    if len(passport) != 2 or len(destination) != 2:
        raise ProviderError("Country codes must be two letters (e.g. US, JP)", status_code=400)
    return _visa(passport, destination)


# ---------------------------------------------------------------------------
# Cities per country
# ---------------------------------------------------------------------------

def _live_cities(country: str) -> dict:
    url = os.getenv("CITIES_API_URL", DEFAULT_CITIES_API_URL)
    response = requests.post(url, json={"country": country}, timeout=REQUEST_TIMEOUT)
    response.raise_for_status()
    data = response.json()
    if data.get("error"):
        raise ProviderError(data.get("msg") or f"No cities found for {country}")
    return {"country": country, "cities": data["data"], "source": "live"}


def _static_cities(country: str) -> dict:
    for name, cities in COUNTRY_CITIES.items():
        if name.lower() == country.lower():
            return {"country": name, "cities": list(cities), "source": "static"}
    raise ProviderError(f"No cities known for {country}", status_code=404)


_cities = ResilientProvider("cities", _live_cities, _static_cities)


def get_cities(country: str) -> dict:
    if not country or not country.strip():
        raise ProviderError("country is required", status_code=400)
    return _cities(country.strip())

