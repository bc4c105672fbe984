"""Change detection for the Hyundai / Kia integration.

Maps a vehicle state onto the flat set of published properties and works
out which directional triggers a new view fires against the previous one.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict

from .const import TRIGGER_PROPERTIES
from .models import (
    Odometer,
    Thresholds,
    VehicleLocation,
    VehicleStatus,
    VehicleView,
)

_LOGGER = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.01
TEMP_CODE_BASE = 14.0
TEMP_CODE_STEP = 0.5


def decode_temperature(value: str | float | None) -> float | None:
    """Decode the vendor's climate temperature value.

    The backend reports the set point as a hex step index with an ``H``
    suffix: ``"00H"`` is 14 °C and every step adds 0.5 °C, so ``"10H"`` is
    22 °C. Plain numbers are already in °C.
    """
    if value is None:
        return None
    if isinstance(value, int | float):
        return float(value)
    code = value.strip().upper()
    try:
        if code.endswith("H"):
            return TEMP_CODE_BASE + TEMP_CODE_STEP * int(code[:-1], 16)
        return float(code)
    except ValueError:
        _LOGGER.debug("Unknown temperature code: %s", value)
        return None


def distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in km between two points, rounded to 0.1 km."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = phi2 - phi1
    d_lambda = math.radians(lon2 - lon1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return round(EARTH_RADIUS_KM * c, 1)


def is_closed_locked(status: VehicleStatus) -> bool:
    """Return True if the car is locked with every door, trunk and hood shut."""
    return (
        status.locked
        and not status.trunk_open
        and not status.hood_open
        and not any(status.doors_open.values())
    )


def _at_or_below(value: int | None, level: int) -> bool:
    return value is not None and value <= level


def derive_view(
    status: VehicleStatus,
    location: VehicleLocation,
    odometer: Odometer,
    thresholds: Thresholds,
    location_name: str,
    *,
    live_data: bool,
) -> VehicleView:
    """Derive every published property from a vehicle state."""
    alarm_battery = _at_or_below(
        status.battery_soc, thresholds.battery_alarm_level
    ) or _at_or_below(status.ev_battery_soc, thresholds.ev_battery_alarm_level)

    return VehicleView(
        battery_12v=status.battery_soc,
        battery_ev=status.ev_battery_soc,
        alarm_battery=alarm_battery,
        alarm_tire_pressure=status.tire_pressure_lamp,
        locked=status.locked,
        closed_locked=is_closed_locked(status),
        climate_control=status.air_ctrl_on,
        defrost=status.defrost,
        engine=status.engine,
        charging=status.charging,
        charger=str(status.plugged_in),
        target_temperature=decode_temperature(status.air_temp),
        odometer=odometer.value,
        range=status.range,
        speed=location.speed,
        location=location_name,
        distance=distance(
            location.latitude,
            location.longitude,
            thresholds.latitude,
            thresholds.longitude,
        ),
        latitude=location.latitude,
        longitude=location.longitude,
        live_data=live_data,
    )


def reduce(old_view: VehicleView | None, new_view: VehicleView) -> list[str]:
    """Return the directional triggers fired by moving to ``new_view``.

    Each watched boolean that changed yields ``<property>_true`` or
    ``<property>_false``. Without a previous view nothing fires.
    """
    if old_view is None:
        return []
    old, new = asdict(old_view), asdict(new_view)
    triggers = [
        f"{prop}_{'true' if new[prop] else 'false'}"
        for prop in TRIGGER_PROPERTIES
        if new[prop] != old[prop]
    ]
    if triggers:
        _LOGGER.debug("Detected transitions: %s", triggers)
    return triggers
