"""Reverse geocoding of the vehicle position via OpenStreetMap Nominatim."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .const import NOMINATIM_URL, USER_AGENT

_LOGGER = logging.getLogger(__name__)

CACHE_PRECISION = 4  # ~10 m


def format_coordinates(latitude: float, longitude: float) -> str:
    return f"{latitude:.5f}, {longitude:.5f}"


def format_address(data: dict[str, Any]) -> str | None:
    """Build a short "street number, city" string from a Nominatim answer."""
    address = data.get("address") or {}
    street = address.get("road") or address.get("pedestrian") or address.get("path")
    if street and address.get("house_number"):
        street = f"{street} {address['house_number']}"
    city = (
        address.get("city")
        or address.get("town")
        or address.get("village")
        or address.get("municipality")
    )
    parts = [part for part in (street, city) if part]
    if parts:
        return ", ".join(parts)
    return data.get("display_name")


class ReverseGeocoder:
    """Turns coordinates into a human readable location string."""

    def __init__(self, session: httpx.AsyncClient) -> None:
        self._session = session
        self._cache: dict[tuple[float, float], str] = {}

    async def async_get_location_name(self, latitude: float, longitude: float) -> str:
        """Return a location string, falling back to plain coordinates."""
        key = (round(latitude, CACHE_PRECISION), round(longitude, CACHE_PRECISION))
        if key in self._cache:
            return self._cache[key]

        try:
            response = await self._session.get(
                NOMINATIM_URL,
                params={
                    "format": "jsonv2",
                    "lat": latitude,
                    "lon": longitude,
                    "zoom": 18,
                    "addressdetails": 1,
                },
                headers={"user-agent": USER_AGENT},
            )
            response.raise_for_status()
            name = format_address(response.json())
        except (httpx.HTTPError, ValueError) as err:
            _LOGGER.warning("Reverse geocoding failed: %s", err)
            return format_coordinates(latitude, longitude)

        if not name:
            return format_coordinates(latitude, longitude)
        self._cache = {key: name}
        return name
