"""Coordinator for the Hyundai / Kia integration."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import asdict
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from homeassistant.const import (
    CONF_LATITUDE,
    CONF_LONGITUDE,
    CONF_PASSWORD,
    CONF_USERNAME,
)
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.event import async_call_later
from homeassistant.helpers.storage import Store
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed
from homeassistant.util import dt as dt_util

from . import api, detector, reconcile, watchdog
from .const import (
    ATTR_TRIGGER_TYPE,
    COMMAND_SETTLE_DELAY,
    CONF_ABRP_API_KEY,
    CONF_ABRP_TOKEN,
    CONF_BATTERY_ALARM_LEVEL,
    CONF_BRAND,
    CONF_EV_BATTERY_ALARM_LEVEL,
    CONF_PIN,
    CONF_POLL_INTERVAL,
    CONF_POLL_INTERVAL_FORCED,
    CONF_REGION,
    CONF_VIN,
    DEFAULT_BATTERY_ALARM_LEVEL,
    DEFAULT_EV_BATTERY_ALARM_LEVEL,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_TARGET_TEMPERATURE,
    DOMAIN,
    EVENT_VEHICLE_TRIGGER,
    RESTART_DELAY,
    STORE_SAVE_DELAY,
    STORE_VERSION,
)
from .detector import derive_view
from .geocode import ReverseGeocoder
from .models import CycleResult, PollState, TelemetryRecord, Thresholds, VehicleView
from .telemetry import AbrpTelemetry, is_configured
from .watchdog import PollDecision

if TYPE_CHECKING:
    from datetime import datetime

    import httpx
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import CALLBACK_TYPE, HomeAssistant

    from .api import Credentials, VehicleClient

_LOGGER = logging.getLogger(__name__)

ClientFactory = Callable[["HomeAssistant", "Credentials", str], Awaitable["VehicleClient"]]


def _setting(entry: ConfigEntry, key: str, default: Any) -> Any:  # noqa: ANN401
    """Return an option, falling back to entry data and then the default."""
    if key in entry.options:
        return entry.options[key]
    return entry.data.get(key, default)


def credentials_from_entry(entry: ConfigEntry) -> Credentials:
    """Build vendor credentials from a config entry."""
    return api.Credentials(
        username=entry.data[CONF_USERNAME],
        password=entry.data[CONF_PASSWORD],
        pin=entry.data[CONF_PIN],
        region=int(entry.data[CONF_REGION]),
        brand=int(entry.data[CONF_BRAND]),
    )


def create_view_store(hass: HomeAssistant, vin: str) -> Store[dict[str, Any]]:
    """Return the store keeping the last published view of a vehicle."""
    return Store(hass, STORE_VERSION, f"{DOMAIN}.{vin}")


def thresholds_from_entry(hass: HomeAssistant, entry: ConfigEntry) -> Thresholds:
    """Build poll thresholds from a config entry's options."""
    forced = int(_setting(entry, CONF_POLL_INTERVAL_FORCED, 0) or 0)
    return Thresholds(
        battery_alarm_level=int(
            _setting(entry, CONF_BATTERY_ALARM_LEVEL, DEFAULT_BATTERY_ALARM_LEVEL)
        ),
        ev_battery_alarm_level=int(
            _setting(
                entry, CONF_EV_BATTERY_ALARM_LEVEL, DEFAULT_EV_BATTERY_ALARM_LEVEL
            )
        ),
        poll_interval=int(_setting(entry, CONF_POLL_INTERVAL, DEFAULT_POLL_INTERVAL)),
        poll_interval_forced=forced or None,
        latitude=float(_setting(entry, CONF_LATITUDE, hass.config.latitude)),
        longitude=float(_setting(entry, CONF_LONGITUDE, hass.config.longitude)),
    )


class HyundaiKiaCoordinator(DataUpdateCoordinator[VehicleView | None]):
    """Coordinator that polls one vehicle and publishes its state.

    Scheduling is driven by ``update_interval``; every tick runs one
    reconciliation cycle guarded by the poll watchdog.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        session: httpx.AsyncClient,
        client_factory: ClientFactory = api.async_create_client,
        store: Store[dict[str, Any]] | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            hass: Home Assistant instance.
            config_entry: The vehicle's config entry.
            session: HTTP client for telemetry and geocoding.
            client_factory: Coroutine creating a logged in vehicle client.
            store: Keeps the last published view across reloads and restarts.

        """
        self.vin: str = config_entry.data[CONF_VIN]
        super().__init__(
            hass,
            _LOGGER,
            config_entry=config_entry,
            name=f"{DOMAIN}_{self.vin[-6:]}",
            update_interval=None,
        )
        self.state = PollState()
        self.thresholds = thresholds_from_entry(hass, config_entry)
        self._credentials = credentials_from_entry(config_entry)
        self._client_factory = client_factory
        self._store = store
        self._client: VehicleClient | None = None
        self._geocoder = ReverseGeocoder(session)
        self._telemetry: AbrpTelemetry | None = None
        abrp_token = _setting(config_entry, CONF_ABRP_TOKEN, "")
        if is_configured(abrp_token):
            self._telemetry = AbrpTelemetry(
                session, abrp_token, _setting(config_entry, CONF_ABRP_API_KEY, None)
            )
        _LOGGER.info("ABRP enabled: %s", self._telemetry is not None)
        self._force_next_refresh = False
        self._restart_unsub: CALLBACK_TYPE | None = None
        self.data = None

    @property
    def client(self) -> VehicleClient | None:
        """Return the current vehicle session, if any."""
        return self._client

    async def async_connect(self) -> VehicleClient:
        """Establish a new vehicle session.

        Raises:
            HyundaiKiaApiClientError: If login fails or the vehicle is gone.

        """
        _LOGGER.debug("Connecting to vehicle %s", self.vin[-6:])
        self._client = await self._client_factory(
            self.hass, self._credentials, self.vin
        )
        return self._client

    async def async_restore(self) -> None:
        """Seed the published view with the one stored before the last unload."""
        if self._store is None or (stored := await self._store.async_load()) is None:
            return
        try:
            self.data = VehicleView(**stored)
        except TypeError:
            _LOGGER.warning("Discarding stored view of %s in an old format", self.vin[-6:])
            return
        _LOGGER.debug("Restored last published view of %s", self.vin[-6:])

    async def async_start_polling(self, interval: int) -> None:
        """Poll now (forced) and then every ``interval`` minutes."""
        _LOGGER.info("Start polling %s @ %d minute interval", self.vin[-6:], interval)
        if self.thresholds.poll_interval_forced:
            _LOGGER.warning(
                "Forced polling is enabled @ %d minute interval",
                self.thresholds.poll_interval_forced,
            )
        self.async_stop_polling()
        self.update_interval = timedelta(minutes=interval)
        await self.async_force_poll()

    def async_stop_polling(self) -> None:
        """Stop scheduling new poll cycles; a running cycle completes."""
        self.update_interval = None
        self._unschedule_refresh()

    async def async_force_poll(self) -> None:
        """Run a poll cycle now that wakes the car for live data."""
        self._force_next_refresh = True
        await self.async_refresh()

    async def async_shutdown(self) -> None:
        """Cancel a pending restart and store the published view on unload."""
        if self._restart_unsub is not None:
            self._restart_unsub()
            self._restart_unsub = None
        if self._store is not None and self.data is not None:
            await self._store.async_save(asdict(self.data))
        await super().async_shutdown()

    async def _async_update_data(self) -> VehicleView | None:
        force = self._force_next_refresh
        self._force_next_refresh = False

        decision = watchdog.evaluate(self.state)
        if decision is PollDecision.RESTART:
            self._async_restart()
            return self.data
        if decision is PollDecision.SKIP:
            return self.data

        try:
            view = await self._async_poll(force=force)
        except api.HyundaiKiaApiClientError as err:
            watchdog.record_failure(self.state)
            error_msg = f"Poll error: {err}"
            raise UpdateFailed(error_msg) from err
        except Exception as err:
            watchdog.record_failure(self.state)
            _LOGGER.exception("Unexpected poll error for %s", self.vin[-6:])
            error_msg = f"Unexpected poll error: {err}"
            raise UpdateFailed(error_msg) from err

        watchdog.record_success(self.state)
        return view

    async def _async_poll(self, *, force: bool) -> VehicleView:
        client = self._client or await self.async_connect()
        result = await reconcile.async_run_cycle(
            client,
            self.state,
            self.thresholds,
            force=force,
            now=dt_util.utcnow(),
        )
        if result.live_data and self._telemetry is not None:
            await self._async_forward_telemetry(result)
        return await self._async_publish(result)

    async def _async_forward_telemetry(self, result: CycleResult) -> None:
        location = result.snapshot.location
        record = TelemetryRecord(
            lat=location.latitude,
            lon=location.longitude,
            speed=location.speed,
            soc=result.status.ev_battery_soc,
            charging=result.status.charging,
        )
        try:
            await self._telemetry.async_send(record)
        except Exception:
            _LOGGER.exception("Failed to forward telemetry to ABRP")

    async def _async_publish(self, result: CycleResult) -> VehicleView:
        location = result.snapshot.location
        location_name = await self._geocoder.async_get_location_name(
            location.latitude, location.longitude
        )
        view = derive_view(
            result.status,
            location,
            result.snapshot.odometer,
            self.thresholds,
            location_name,
            live_data=result.live_data,
        )
        for trigger_type in detector.reduce(self.data, view):
            self._fire_trigger(trigger_type)
        if self._store is not None:
            self._store.async_delay_save(lambda: asdict(view), STORE_SAVE_DELAY)
        return view

    def _fire_trigger(self, trigger_type: str) -> None:
        _LOGGER.debug("Firing %s for %s", trigger_type, self.vin[-6:])
        self.hass.bus.async_fire(
            EVENT_VEHICLE_TRIGGER,
            {CONF_VIN: self.vin, ATTR_TRIGGER_TYPE: trigger_type},
        )

    def _async_restart(self) -> None:
        """Drop the session and re-initialize it after the restart delay."""
        self._client = None
        watchdog.reset(self.state)
        self.async_stop_polling()
        if self._restart_unsub is not None:
            self._restart_unsub()
        self._restart_unsub = async_call_later(
            self.hass, RESTART_DELAY, self._async_resume
        )

    async def _async_resume(self, _now: datetime) -> None:
        self._restart_unsub = None
        try:
            await self.async_connect()
        except api.HyundaiKiaApiClientError as err:
            _LOGGER.warning("Reconnect after restart failed: %s", err)
        await self.async_start_polling(self.thresholds.poll_interval)

    async def _async_command(
        self,
        description: str,
        command: Callable[[VehicleClient], Awaitable[Any]],
    ) -> None:
        """Run a remote command, then resync with a forced poll."""
        _LOGGER.info("%s via Home Assistant", description)
        try:
            client = self._client or await self.async_connect()
            await command(client)
        except api.HyundaiKiaApiClientError as err:
            error_msg = f"{description} failed: {err}"
            raise HomeAssistantError(error_msg) from err
        self.config_entry.async_create_background_task(
            self.hass,
            self._async_delayed_poll(),
            name=f"{DOMAIN}_{self.vin[-6:]}_resync",
        )

    async def _async_delayed_poll(self) -> None:
        """Force a poll after the car had time to process a command."""
        await asyncio.sleep(COMMAND_SETTLE_DELAY)
        await self.async_force_poll()

    def _climate_options(self, *, defrost: bool) -> api.ClimateOptions:
        temperature = DEFAULT_TARGET_TEMPERATURE
        if self.data is not None and self.data.target_temperature:
            temperature = self.data.target_temperature
        return api.ClimateOptions(
            temperature=temperature,
            defrost=defrost,
            windscreen_heating=defrost,
        )

    async def async_lock(self) -> None:
        await self._async_command("Locking doors", lambda client: client.async_lock())

    async def async_unlock(self) -> None:
        await self._async_command(
            "Unlocking doors", lambda client: client.async_unlock()
        )

    async def async_set_defrost(self, on: bool) -> None:  # noqa: FBT001
        options = self._climate_options(defrost=on)
        if on:
            await self._async_command(
                "Defrost start", lambda client: client.async_start(options)
            )
        else:
            await self._async_command(
                "Defrost stop", lambda client: client.async_stop(options)
            )

    async def async_set_climate(self, on: bool) -> None:  # noqa: FBT001
        options = self._climate_options(defrost=False)
        if on:
            await self._async_command(
                "A/C on", lambda client: client.async_start(options)
            )
        else:
            await self._async_command(
                "A/C off", lambda client: client.async_stop(options)
            )
