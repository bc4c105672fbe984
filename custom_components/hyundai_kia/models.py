"""Data models for the Hyundai / Kia integration."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .const import (
    DEFAULT_BATTERY_ALARM_LEVEL,
    DEFAULT_EV_BATTERY_ALARM_LEVEL,
    DEFAULT_POLL_INTERVAL,
    WATCHDOG_BUDGET,
)


@dataclass(frozen=True)
class VehicleInfo:
    """A vehicle registered on the account."""

    id: str
    vin: str
    name: str
    model: str | None = None


@dataclass(frozen=True, slots=True)
class VehicleStatus:
    """The subset of the vendor status record the integration reads.

    ``air_temp`` is kept as reported by the vendor (either an encoded hex
    code such as ``"10H"`` or a number); ``raw`` holds the untouched payload.
    """

    engine: bool
    locked: bool
    air_ctrl_on: bool
    defrost: bool
    trunk_open: bool
    hood_open: bool
    doors_open: dict[str, bool]
    air_temp: str | float | None
    tire_pressure_lamp: bool
    battery_soc: int | None
    ev_battery_soc: int | None
    charging: bool
    plugged_in: int
    range: float | None
    sleep_mode_check: bool
    time: datetime | str | None
    raw: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True, slots=True)
class VehicleLocation:
    """Position of the vehicle as last reported."""

    latitude: float
    longitude: float
    speed: float = 0.0


@dataclass(frozen=True, slots=True)
class Odometer:
    """Odometer reading."""

    value: float
    unit: str = "km"


@dataclass(frozen=True, slots=True)
class VehicleSnapshot:
    """The last atomically fetched full vehicle state."""

    status: VehicleStatus
    location: VehicleLocation
    odometer: Odometer
    retrieved_at: datetime


@dataclass
class PollState:
    """Mutable per-device polling state.

    Created when the config entry is set up and reset on restart.
    """

    busy: bool = False
    watchdog_counter: int = WATCHDOG_BUDGET
    last_refresh: datetime | None = None
    last_active: datetime | None = None
    live_data: bool = False
    snapshot: VehicleSnapshot | None = None
    last_status: VehicleStatus | None = None


@dataclass(frozen=True)
class Thresholds:
    """Per-device configuration consumed by the poll cycle."""

    battery_alarm_level: int = DEFAULT_BATTERY_ALARM_LEVEL
    ev_battery_alarm_level: int = DEFAULT_EV_BATTERY_ALARM_LEVEL
    poll_interval: int = DEFAULT_POLL_INTERVAL
    poll_interval_forced: int | None = None
    latitude: float = 0.0
    longitude: float = 0.0


@dataclass(frozen=True)
class CycleResult:
    """Outcome of the fetch part of one poll cycle."""

    status: VehicleStatus
    snapshot: VehicleSnapshot
    live_data: bool
    new_status: bool


@dataclass(frozen=True)
class VehicleView:
    """Published value of every observable property."""

    battery_12v: int | None
    battery_ev: int | None
    alarm_battery: bool
    alarm_tire_pressure: bool
    locked: bool
    closed_locked: bool
    climate_control: bool
    defrost: bool
    engine: bool
    charging: bool
    charger: str
    target_temperature: float | None
    odometer: float
    range: float | None
    speed: float
    location: str
    distance: float
    latitude: float
    longitude: float
    live_data: bool


@dataclass(frozen=True)
class TelemetryRecord:
    """Compact record pushed to the live telemetry service."""

    lat: float
    lon: float
    speed: float
    soc: int | None
    charging: bool
