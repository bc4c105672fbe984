"""Pytest configuration and fixtures for Hyundai / Kia tests."""

from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

import pytest

from custom_components.hyundai_kia.models import (
    Odometer,
    Thresholds,
    VehicleLocation,
    VehicleSnapshot,
    VehicleStatus,
    VehicleView,
)

SAMPLE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def create_status(**overrides: Any) -> VehicleStatus:  # noqa: ANN401
    """Create an idle, locked vehicle status with optional overrides.

    Args:
        **overrides: Field values replacing the defaults.

    Returns:
        A VehicleStatus instance.

    """
    status = VehicleStatus(
        engine=False,
        locked=True,
        air_ctrl_on=False,
        defrost=False,
        trunk_open=False,
        hood_open=False,
        doors_open={
            "front_left": False,
            "front_right": False,
            "back_left": False,
            "back_right": False,
        },
        air_temp="10H",
        tire_pressure_lamp=False,
        battery_soc=90,
        ev_battery_soc=80,
        charging=False,
        plugged_in=0,
        range=300.0,
        sleep_mode_check=False,
        time="20240501120000",
    )
    return replace(status, **overrides)


@pytest.fixture
def status_factory() -> Callable[..., VehicleStatus]:
    """Fixture providing the vehicle status factory."""
    return create_status


@pytest.fixture
def sample_location() -> VehicleLocation:
    """Fixture providing a vehicle position near the home location."""
    return VehicleLocation(latitude=52.0, longitude=4.0, speed=0.0)


@pytest.fixture
def sample_odometer() -> Odometer:
    """Fixture providing an odometer reading."""
    return Odometer(value=12345.0)


@pytest.fixture
def sample_thresholds() -> Thresholds:
    """Fixture providing thresholds with the home at the vehicle position."""
    return Thresholds(
        battery_alarm_level=70,
        ev_battery_alarm_level=20,
        poll_interval=10,
        poll_interval_forced=None,
        latitude=52.0,
        longitude=4.0,
    )


@pytest.fixture
def sample_snapshot(
    sample_location: VehicleLocation,
    sample_odometer: Odometer,
) -> VehicleSnapshot:
    """Fixture providing a full vehicle snapshot.

    Args:
        sample_location: Vehicle position fixture.
        sample_odometer: Odometer fixture.

    Returns:
        A VehicleSnapshot built from an idle status.

    """
    return VehicleSnapshot(
        status=create_status(),
        location=sample_location,
        odometer=sample_odometer,
        retrieved_at=SAMPLE_TIME,
    )


@pytest.fixture
def sample_view() -> VehicleView:
    """Fixture providing a published view of an idle vehicle."""
    return VehicleView(
        battery_12v=90,
        battery_ev=80,
        alarm_battery=False,
        alarm_tire_pressure=False,
        locked=True,
        closed_locked=True,
        climate_control=False,
        defrost=False,
        engine=False,
        charging=False,
        charger="0",
        target_temperature=22.0,
        odometer=12345.0,
        range=300.0,
        speed=0.0,
        location="Main Street 1, Utrecht",
        distance=0.0,
        latitude=52.0,
        longitude=4.0,
        live_data=True,
    )
