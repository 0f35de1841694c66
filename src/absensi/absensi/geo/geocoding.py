from __future__ import annotations

import logging
import re
from typing import Optional, Protocol

import requests

logger = logging.getLogger(__name__)

NOMINATIM_REVERSE_URL = "https://nominatim.openstreetmap.org/reverse"

# Matches the "lat, lon" fallback (and plain "lat,lon" typed by clients).
_COORDINATE_RE = re.compile(r"^\s*(-?\d{1,3}(?:\.\d+)?)\s*,\s*(-?\d{1,3}(?:\.\d+)?)\s*$")


def format_coordinates(lat: float, lon: float) -> str:
    return f"{lat:.4f}, {lon:.4f}"


def is_coordinate_text(value: Optional[str]) -> bool:
    """True when a stored location is raw coordinates rather than an address."""
    if not value:
        return False
    m = _COORDINATE_RE.match(value)
    if not m:
        return False
    lat, lon = float(m.group(1)), float(m.group(2))
    return -90 <= lat <= 90 and -180 <= lon <= 180


def map_url(value: Optional[str]) -> Optional[str]:
    """Google Maps link for coordinate locations; None for address text."""
    if not is_coordinate_text(value):
        return None
    m = _COORDINATE_RE.match(value)
    return f"https://www.google.com/maps?q={m.group(1)},{m.group(2)}"


class Geocoder(Protocol):
    def reverse(self, lat: float, lon: float) -> str:
        """Human readable address; never raises (falls back to coordinates)."""

        raise NotImplementedError


class NominatimGeocoder(Geocoder):
    def __init__(
        self,
        *,
        url: str = NOMINATIM_REVERSE_URL,
        user_agent: str = "AbsensiNH/1.0",
        timeout: float = 10,
        session: Optional[requests.Session] = None,
    ):
        self._url = url
        self._timeout = timeout
        self._session = session or requests.Session()
        self._headers = {"Accept-Language": "id-ID", "User-Agent": user_agent}

    def reverse(self, lat: float, lon: float) -> str:
        try:
            resp = self._session.get(
                self._url,
                params={"format": "jsonv2", "lat": lat, "lon": lon},
                headers=self._headers,
                timeout=self._timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("Reverse geocoding failed for %s,%s: %s", lat, lon, e)
            return format_coordinates(lat, lon)

        addr = data.get("address") or {}
        road = addr.get("road") or addr.get("pedestrian") or addr.get("suburb") or ""
        city = addr.get("city") or addr.get("town") or addr.get("municipality") or addr.get("county") or ""
        if road and city:
            return f"{road}, {city}"

        display = data.get("display_name")
        if display:
            return ",".join(display.split(",")[:3])
        return format_coordinates(lat, lon)
