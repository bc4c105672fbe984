"""Live telemetry forwarding to A Better Route Planner (ABRP)."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import httpx

from .const import ABRP_MIN_TOKEN_LENGTH, ABRP_URL

if TYPE_CHECKING:
    from .models import TelemetryRecord

_LOGGER = logging.getLogger(__name__)


class AbrpTelemetryError(Exception):
    """Exception raised when ABRP rejects a telemetry record."""


def is_configured(user_token: str | None) -> bool:
    """Return True if a usable ABRP user token is configured."""
    return bool(user_token) and len(user_token) >= ABRP_MIN_TOKEN_LENGTH


def build_payload(record: TelemetryRecord, now: datetime | None = None) -> dict[str, Any]:
    """Build the ABRP ``tlm`` payload for a telemetry record."""
    utc = int((now or datetime.now(UTC)).timestamp())
    tlm: dict[str, Any] = {
        "utc": utc,
        "lat": record.lat,
        "lon": record.lon,
        "speed": record.speed,
        "is_charging": int(record.charging),
    }
    if record.soc is not None:
        tlm["soc"] = record.soc
    return {"tlm": tlm}


class AbrpTelemetry:
    """Fire-and-forget sender for ABRP live telemetry."""

    def __init__(
        self,
        session: httpx.AsyncClient,
        user_token: str,
        api_key: str | None = None,
    ) -> None:
        self._session = session
        self._user_token = user_token
        self._api_key = api_key

    async def async_send(self, record: TelemetryRecord) -> None:
        """Send one telemetry record.

        Raises:
            AbrpTelemetryError: If ABRP answers with an error.
            httpx.RequestError: On connection problems.

        """
        params = {"token": self._user_token}
        if self._api_key:
            params["api_key"] = self._api_key

        response = await self._session.post(
            ABRP_URL, params=params, json=build_payload(record)
        )
        if response.status_code >= httpx.codes.BAD_REQUEST:
            error_msg = f"ABRP request failed: {response.status_code}"
            raise AbrpTelemetryError(error_msg)

        data = response.json()
        if data.get("status") != "ok":
            error_msg = f"ABRP rejected telemetry: {data}"
            raise AbrpTelemetryError(error_msg)
        _LOGGER.debug("Sent telemetry to ABRP: %s", record)
