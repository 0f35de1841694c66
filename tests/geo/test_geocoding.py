from __future__ import annotations

import pytest
import requests

from src.absensi.absensi.geo.geocoding import NominatimGeocoder, is_coordinate_text, map_url


class FakeResponse:
    def __init__(self, payload=None, status=200):
        self._payload = payload
        self._status = status

    def raise_for_status(self):
        if self._status >= 400:
            raise requests.HTTPError(f"{self._status} error")

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append((url, params, headers, timeout))
        if self.error:
            raise self.error
        return self.response


@pytest.mark.parametrize(
    "value, expected",
    [
        ("-6.2000, 106.8166", True),
        ("-6.2,106.8", True),
        ("Jl. Sudirman, Jakarta", False),
        ("95.0, 10.0", False),
        ("", False),
        (None, False),
    ],
)
def test_is_coordinate_text(value, expected):
    assert is_coordinate_text(value) is expected


def test_map_url():
    assert map_url("-6.2000, 106.8166") == "https://www.google.com/maps?q=-6.2000,106.8166"
    assert map_url("Kantor Pusat") is None


def test_reverse_prefers_road_and_city():
    session = FakeSession(FakeResponse({"address": {"road": "Jalan Thamrin", "city": "Jakarta Pusat"}}))
    geocoder = NominatimGeocoder(session=session, user_agent="AbsensiTest/1.0", timeout=3)

    assert geocoder.reverse(-6.19, 106.82) == "Jalan Thamrin, Jakarta Pusat"

    _, params, headers, timeout = session.calls[0]
    assert params == {"format": "jsonv2", "lat": -6.19, "lon": 106.82}
    assert headers["User-Agent"] == "AbsensiTest/1.0"
    assert timeout == 3


def test_reverse_uses_display_name_head():
    session = FakeSession(FakeResponse({"display_name": "Monas, Gambir, Jakarta Pusat, DKI Jakarta, Indonesia"}))
    assert NominatimGeocoder(session=session).reverse(-6.17, 106.83) == "Monas, Gambir, Jakarta Pusat"


@pytest.mark.parametrize(
    "session",
    [
        FakeSession(error=requests.ConnectionError("down")),
        FakeSession(FakeResponse({}, status=503)),
        FakeSession(FakeResponse(None)),
        FakeSession(FakeResponse({})),
    ],
)
def test_reverse_falls_back_to_coordinates(session):
    assert NominatimGeocoder(session=session).reverse(-6.2, 106.8166) == "-6.2000, 106.8166"
