"""Fetch half of a poll cycle.

Decides between the backend's cached status and a live refresh from the
car, and replaces the vehicle snapshot when live data was fetched.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from .const import ACTIVE_WINDOW
from .models import CycleResult, PollState, Thresholds, VehicleSnapshot, VehicleStatus

if TYPE_CHECKING:
    from .api import VehicleClient

_LOGGER = logging.getLogger(__name__)


def needs_forced_refresh(
    state: PollState,
    thresholds: Thresholds,
    *,
    force: bool,
    now: datetime,
) -> bool:
    """Return True if this cycle must wake the car regardless of activity."""
    if force or state.snapshot is None:
        return True
    if not thresholds.poll_interval_forced:
        return False
    if state.last_refresh is None:
        return True
    return now - state.last_refresh > timedelta(minutes=thresholds.poll_interval_forced)


def is_active(status: VehicleStatus | None, previous: VehicleStatus | None) -> bool:
    """Return True if the status shows the car in use or freshly refreshed.

    A changed status timestamp means the backend refreshed its cache on its
    own, which only happens when the car woke up.
    """
    if status is None:
        return False
    sleep_mode_check = status.sleep_mode_check or (
        previous is not None and status.time != previous.time
    )
    if sleep_mode_check:
        _LOGGER.debug("Doing sleep mode check")
    return status.engine or status.air_ctrl_on or status.defrost or sleep_mode_check


def is_recently_active(last_active: datetime | None, now: datetime) -> bool:
    if last_active is None:
        return False
    return now - last_active < timedelta(seconds=ACTIVE_WINDOW)


def is_battery_good(status: VehicleStatus | None, thresholds: Thresholds) -> bool:
    """Return True if the 12V battery allows waking the car."""
    if status is None or status.battery_soc is None:
        return True
    return status.battery_soc > thresholds.battery_alarm_level


async def async_run_cycle(
    client: VehicleClient,
    state: PollState,
    thresholds: Thresholds,
    *,
    force: bool,
    now: datetime,
) -> CycleResult:
    """Run the fetch half of one poll cycle.

    ``state`` is only updated once every fetch of the cycle succeeded, so an
    error leaves the previous snapshot and timestamps untouched.

    Raises:
        HyundaiKiaApiClientError: If any vendor call fails.

    """
    await client.async_login()

    force_refresh = needs_forced_refresh(state, thresholds, force=force, now=now)
    previous = state.last_status
    status = previous
    if force_refresh:
        _LOGGER.debug("Forcing refresh with car")
    else:
        status = await client.async_status(refresh=False)

    active = is_active(status, previous)
    recently_active = is_recently_active(state.last_active, now)
    battery_good = is_battery_good(status, thresholds)
    live_data = force_refresh or (battery_good and (active or recently_active))
    _LOGGER.debug(
        "Cycle decision: force=%s, active=%s, recently_active=%s, "
        "battery_good=%s, live_data=%s",
        force_refresh,
        active,
        recently_active,
        battery_good,
        live_data,
    )

    snapshot = state.snapshot
    if live_data:
        status = await client.async_status(refresh=True)
        location = await client.async_location()
        odometer = await client.async_odometer()
        snapshot = VehicleSnapshot(
            status=status,
            location=location,
            odometer=odometer,
            retrieved_at=now,
        )

    # A missing snapshot always forces live data, so both are set here
    state.snapshot = snapshot
    state.last_status = status
    state.live_data = live_data
    if live_data:
        state.last_refresh = now
    if active:
        state.last_active = now

    return CycleResult(
        status=status,
        snapshot=snapshot,
        live_data=live_data,
        new_status=live_data,
    )
