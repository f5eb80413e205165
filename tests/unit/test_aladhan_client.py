"""Tests for the Aladhan API client."""

from datetime import date
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from hilal.application.ports.calendar import (
    FetchError,
    InvalidLocationError,
    NetworkError,
    ParseError,
)
from hilal.infrastructure.aladhan.client import AladhanClient, calculation_method_for

BASE_URL = "https://api.aladhan.com/v1"


def _response(status_code: int, payload: Any = None, text: str | None = None) -> httpx.Response:
    request = httpx.Request("GET", BASE_URL)
    if text is not None:
        return httpx.Response(status_code, text=text, request=request)
    return httpx.Response(status_code, json=payload, request=request)


TIMINGS_PAYLOAD = {
    "code": 200,
    "status": "OK",
    "data": {
        "timings": {
            "Fajr": "05:55",
            "Sunrise": "07:22",
            "Dhuhr": "12:58",
            "Asr": "16:04",
            "Sunset": "18:27",
            "Maghrib": "18:30",
            "Isha": "19:50 (CET)",
        },
        "meta": {"timezone": "Africa/Algiers"},
    },
}

HIJRI_PAYLOAD = {
    "code": 200,
    "status": "OK",
    "data": {
        "hijri": {
            "day": "28",
            "month": {"number": 8, "en": "Shaʿbān", "ar": "شَعْبان"},
            "year": "1447",
        },
    },
}


class TestCalculationMethod:
    """Tests for calculation_method_for."""

    def test_algeria(self) -> None:
        """Test Algeria uses the Algerian ministry method."""
        assert calculation_method_for("Algeria") == 19

    def test_north_america(self) -> None:
        """Test Canada and the USA use ISNA."""
        assert calculation_method_for("Canada") == 2
        assert calculation_method_for("USA") == 2

    def test_default(self) -> None:
        """Test other countries use Muslim World League."""
        assert calculation_method_for("France") == 3

    def test_case_insensitive_substring(self) -> None:
        """Test matching ignores case and accepts longer names."""
        assert calculation_method_for("People's Democratic Republic of ALGERIA") == 19


class TestAladhanClient:
    """Tests for AladhanClient."""

    @pytest.fixture
    def http(self) -> MagicMock:
        """Return mock httpx client."""
        http = MagicMock()
        http.get = AsyncMock()
        return http

    @pytest.fixture
    def client(self, http: MagicMock) -> AladhanClient:
        """Return AladhanClient with mocked HTTP client."""
        client = AladhanClient(BASE_URL)
        client.get_client = AsyncMock(return_value=http)  # type: ignore[method-assign]
        return client

    @pytest.mark.asyncio
    async def test_fetch_prayer_times_success(self, client: AladhanClient, http: MagicMock) -> None:
        """Test timings are parsed and zone labels stripped."""
        http.get.return_value = _response(200, TIMINGS_PAYLOAD)

        result = await client.fetch_prayer_times("Algiers", "Algeria", date(2026, 2, 16))

        assert result.fajr == "05:55"
        assert result.maghrib == "18:30"
        assert result.isha == "19:50"
        assert result.timezone == "Africa/Algiers"
        call = http.get.call_args
        assert call.args[0] == f"{BASE_URL}/timingsByCity/16-02-2026"
        assert call.kwargs["params"] == {"city": "Algiers", "country": "Algeria", "method": 19}

    @pytest.mark.asyncio
    async def test_fetch_prayer_times_missing_prayer(self, client: AladhanClient, http: MagicMock) -> None:
        """Test a payload without a required prayer raises ParseError."""
        payload = {"code": 200, "data": {"timings": {"Fajr": "05:55"}}}
        http.get.return_value = _response(200, payload)

        with pytest.raises(ParseError):
            await client.fetch_prayer_times("Algiers", "Algeria", date(2026, 2, 16))

    @pytest.mark.asyncio
    async def test_fetch_prayer_times_unknown_city(self, client: AladhanClient, http: MagicMock) -> None:
        """Test a 400 on the timings endpoint means an invalid location."""
        http.get.return_value = _response(400, {"code": 400, "data": "Unable to locate city"})

        with pytest.raises(InvalidLocationError) as exc_info:
            await client.fetch_prayer_times("Atlantis", "Nowhere", date(2026, 2, 16))

        assert exc_info.value.recoverable is False

    @pytest.mark.asyncio
    async def test_body_code_not_200(self, client: AladhanClient, http: MagicMock) -> None:
        """Test an error code inside a 200 response raises ParseError."""
        http.get.return_value = _response(200, {"code": 400, "data": "bad"})

        with pytest.raises(ParseError, match="Invalid API response"):
            await client.fetch_prayer_times("Algiers", "Algeria", date(2026, 2, 16))

    @pytest.mark.asyncio
    async def test_not_json(self, client: AladhanClient, http: MagicMock) -> None:
        """Test a non-JSON body raises ParseError."""
        http.get.return_value = _response(200, text="<html>")

        with pytest.raises(ParseError):
            await client.fetch_lunar_date(date(2026, 2, 16))

    @pytest.mark.asyncio
    async def test_transport_error(self, client: AladhanClient, http: MagicMock) -> None:
        """Test connection failures raise NetworkError."""
        http.get.side_effect = httpx.ConnectError("Connection refused")

        with pytest.raises(NetworkError):
            await client.fetch_lunar_date(date(2026, 2, 16))

    @pytest.mark.asyncio
    async def test_fetch_lunar_date_success(self, client: AladhanClient, http: MagicMock) -> None:
        """Test the Hijri date is parsed."""
        http.get.return_value = _response(200, HIJRI_PAYLOAD)

        result = await client.fetch_lunar_date(date(2026, 2, 16))

        assert (result.day, result.month, result.year) == (28, 8, 1447)
        assert result.month_name == "شَعْبان"
        assert http.get.call_args.args[0] == f"{BASE_URL}/gToH/16-02-2026"

    @pytest.mark.asyncio
    async def test_fetch_lunar_date_bad_payload(self, client: AladhanClient, http: MagicMock) -> None:
        """Test a payload without the hijri block raises ParseError."""
        http.get.return_value = _response(200, {"code": 200, "data": {}})

        with pytest.raises(ParseError):
            await client.fetch_lunar_date(date(2026, 2, 16))


class TestHandleResponseError:
    """Tests for AladhanClient.handle_response_error."""

    def test_success_does_nothing(self) -> None:
        """Test a 2xx response passes."""
        AladhanClient.handle_response_error(_response(200, {}))

    def test_rate_limit(self) -> None:
        """Test 429 is a recoverable network error."""
        with pytest.raises(NetworkError, match="Rate limit"):
            AladhanClient.handle_response_error(_response(429, {}))

    def test_server_error(self) -> None:
        """Test 5xx is a recoverable network error."""
        with pytest.raises(NetworkError, match="Server error: 503"):
            AladhanClient.handle_response_error(_response(503, {}))

    def test_not_found_without_location_context(self) -> None:
        """Test a 404 outside the timings endpoint is a plain failure."""
        with pytest.raises(FetchError) as exc_info:
            AladhanClient.handle_response_error(_response(404, {}))

        assert not isinstance(exc_info.value, InvalidLocationError)
        assert exc_info.value.error_type == "http"
        assert exc_info.value.recoverable is False
