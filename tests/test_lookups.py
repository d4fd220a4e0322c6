"""
Unit tests for wizard/lookups.py

requests is patched at the module level so no test touches the network.
"""
from unittest.mock import MagicMock, patch

import pytest
import requests

import lookups
from lookups import ProviderError, ProviderNotConfigured, ResilientProvider


def _response(payload, status_code=200):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    return resp


class TestResilientProvider:

    def test_primary_result_wins(self):
        fallback = MagicMock()
        provider = ResilientProvider("test", lambda x: x * 2, fallback)
        assert provider(21) == 42
        fallback.assert_not_called()

    def test_retries_then_falls_back(self):
        primary = MagicMock(side_effect=requests.ConnectionError("down"))
        provider = ResilientProvider("test", primary, lambda: "static", retries=2)
        assert provider() == "static"
        assert primary.call_count == 3

    def test_recovers_on_retry(self):
        primary = MagicMock(side_effect=[requests.Timeout("slow"), "live"])
        fallback = MagicMock()
        assert ResilientProvider("test", primary, fallback)() == "live"
        fallback.assert_not_called()

    def test_not_configured_skips_retries(self):
        primary = MagicMock(side_effect=ProviderNotConfigured("Thing"))
        provider = ResilientProvider("test", primary, lambda: "static", retries=5)
        assert provider() == "static"
        assert primary.call_count == 1

    def test_both_failing_raises_provider_error(self):
        provider = ResilientProvider(
            "test",
            MagicMock(side_effect=requests.ConnectionError()),
            MagicMock(side_effect=KeyError("x")),
            retries=0,
        )
        with pytest.raises(ProviderError, match="unavailable"):
            provider()


class TestExchangeRates:

    def test_live_rates(self):
        with patch("lookups.requests.get", return_value=_response({"rates": {"EUR": 0.9}})) as mock_get:
            result = lookups.get_exchange_rates("usd")
        assert result == {"base": "USD", "rates": {"EUR": 0.9}, "source": "live"}
        assert mock_get.call_args.args[0].endswith("/USD")

    def test_static_fallback(self):
        with patch("lookups.requests.get", side_effect=requests.ConnectionError()):
            result = lookups.get_exchange_rates("EUR")
        assert result["source"] == "static"
        assert result["rates"]["EUR"] == 1.0
        assert result["rates"]["USD"] == pytest.approx(1 / 0.85, rel=1e-4)

    def test_convert(self):
        with patch("lookups.requests.get", return_value=_response({"rates": {"JPY": 150.0}})):
            result = lookups.convert(10, "USD", "JPY")
        assert result["converted"] == 1500.0
        assert result["source"] == "live"

    def test_convert_same_currency_skips_lookup(self):
        with patch("lookups.requests.get") as mock_get:
            assert lookups.convert(12.345, "eur", "EUR")["converted"] == 12.35
        mock_get.assert_not_called()

    def test_unknown_currency(self):
        with patch("lookups.requests.get", side_effect=requests.ConnectionError()):
            with pytest.raises(ProviderError) as excinfo:
                lookups.convert(10, "USD", "XXX")
        assert excinfo.value.status_code == 400


class TestVisa:

    def test_static_when_not_configured(self, monkeypatch):
        monkeypatch.delenv("VISA_API_URL", raising=False)
        with patch("lookups.requests.get") as mock_get:
            result = lookups.get_visa_requirements("us", "jp")
        mock_get.assert_not_called()
        assert result["requirement"] == "visa_free"
        assert result["message"] == "Visa Free Entry (Max stay: 90 days)"
        assert result["source"] == "static"

    def test_unknown_pair(self):
        assert lookups.get_visa_requirements("FR", "BR")["requirement"] == "check_embassy"

    def test_live(self, monkeypatch):
        monkeypatch.setenv("VISA_API_URL", "https://visa.example.com/visa")
        payload = {"requirement": "visa_required"}
        with patch("lookups.requests.get", return_value=_response(payload)) as mock_get:
            result = lookups.get_visa_requirements("IN", "JP")
        assert mock_get.call_args.args[0] == "https://visa.example.com/visa/IN/JP"
        assert result["source"] == "live"
        assert result["message"] == "Visa Required - Apply before travel"

    def test_bad_codes(self):
        with pytest.raises(ProviderError) as excinfo:
            lookups.get_visa_requirements("USA", "JP")
        assert excinfo.value.status_code == 400


class TestCities:

    def test_live(self):
        payload = {"error": False, "msg": "cities retrieved", "data": ["Lisbon", "Porto"]}
        with patch("lookups.requests.post", return_value=_response(payload)) as mock_post:
            result = lookups.get_cities("Portugal")
        assert result["cities"] == ["Lisbon", "Porto"]
        assert mock_post.call_args.kwargs["json"] == {"country": "Portugal"}

    def test_fallback_on_api_error_flag(self):
        payload = {"error": True, "msg": "country not found"}
        with patch("lookups.requests.post", return_value=_response(payload)):
            result = lookups.get_cities("japan")
        assert result == {
            "country": "Japan",
            "cities": ["Tokyo", "Kyoto", "Osaka", "Sapporo", "Hiroshima", "Nara"],
            "source": "static",
        }

    def test_unknown_country(self):
        with patch("lookups.requests.post", side_effect=requests.ConnectionError()):
            with pytest.raises(ProviderError) as excinfo:
                lookups.get_cities("Atlantis")
        assert excinfo.value.status_code == 404


class TestProviderErrorFrom:

    def test_rate_limit(self):
        exc = Exception()
        exc.response = MagicMock(status_code=429)
        assert lookups.provider_error_from(exc, "Hotel search").status_code == 429

    def test_other_failures(self):
        assert lookups.provider_error_from(Exception(), "Hotel search").status_code == 502
