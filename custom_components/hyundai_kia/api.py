"""Vehicle API client for Hyundai / Kia connected cars.

This module wraps the synchronous ``hyundai_kia_connect_api`` library in a
small async surface (login, status, location, odometer and the remote
commands), and provides the shared HTTP client used for the auxiliary web
services.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from functools import partial
from typing import TYPE_CHECKING, Any, Protocol

from homeassistant.helpers.httpx_client import create_async_httpx_client
from httpx_retries import Retry, RetryTransport
from hyundai_kia_connect_api import ClimateRequestOptions, VehicleManager
from hyundai_kia_connect_api.exceptions import AuthenticationError

from .const import (
    DEFAULT_TARGET_TEMPERATURE,
    ERROR_CANNOT_CONNECT,
    ERROR_INVALID_AUTH,
    ERROR_INVALID_PIN,
    ERROR_NO_VEHICLES,
    ERROR_TIMEOUT,
    LOGIN_TIMEOUT,
)
from .models import Odometer, VehicleInfo, VehicleLocation, VehicleStatus

if TYPE_CHECKING:
    import httpx
    from homeassistant.core import HomeAssistant

_LOGGER = logging.getLogger(__name__)

DOOR_ATTRIBUTES = {
    "front_left": "front_left_door_is_open",
    "front_right": "front_right_door_is_open",
    "back_left": "back_left_door_is_open",
    "back_right": "back_right_door_is_open",
}


class HyundaiKiaApiClientError(Exception):
    """Base exception for vehicle API client errors."""


class HyundaiKiaApiAuthError(HyundaiKiaApiClientError):
    """Exception raised for invalid credentials or PIN."""


class HyundaiKiaApiTimeoutError(HyundaiKiaApiClientError):
    """Exception raised when the vendor backend does not answer in time."""


class HyundaiKiaNoVehiclesError(HyundaiKiaApiClientError):
    """Exception raised when the account yields no (matching) vehicle."""


@dataclass(frozen=True)
class Credentials:
    """Account credentials for the vendor backend."""

    username: str
    password: str
    pin: str
    region: int
    brand: int


@dataclass(frozen=True)
class ClimateOptions:
    """Options for a remote climate start or stop."""

    temperature: float = DEFAULT_TARGET_TEMPERATURE
    defrost: bool = False
    windscreen_heating: bool = False


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a deadline-bound account login.

    Either ``vehicles`` holds the vehicles on the account, or ``error``
    holds one of the ``ERROR_*`` reason keys.
    """

    vehicles: list[VehicleInfo] = field(default_factory=list)
    error: str | None = None
    manager: VehicleManager | None = field(default=None, compare=False, repr=False)

    @property
    def ok(self) -> bool:
        """Return True if the login succeeded."""
        return self.error is None


class VehicleClient(Protocol):
    """Query and command surface of a single vehicle."""

    async def async_login(self) -> None: ...

    async def async_status(self, *, refresh: bool) -> VehicleStatus: ...

    async def async_location(self) -> VehicleLocation: ...

    async def async_odometer(self) -> Odometer: ...

    async def async_lock(self) -> str: ...

    async def async_unlock(self) -> str: ...

    async def async_start(self, options: ClimateOptions) -> str: ...

    async def async_stop(self, options: ClimateOptions) -> str: ...


def create_session_client(hass: HomeAssistant) -> httpx.AsyncClient:
    """Create HTTP client with retry logic for the auxiliary web services.

    Args:
        hass: Home Assistant instance.

    Returns:
        Configured httpx AsyncClient with retry transport.

    """
    base_client = create_async_httpx_client(hass, timeout=10.0)
    retry = Retry(total=3, backoff_factor=0.5)
    base_client._transport = RetryTransport(  # noqa: SLF001
        transport=base_client._transport,  # noqa: SLF001
        retry=retry,
    )
    return base_client


def create_manager(credentials: Credentials) -> VehicleManager:
    """Create a vendor session manager for the given credentials."""
    return VehicleManager(
        region=credentials.region,
        brand=credentials.brand,
        username=credentials.username,
        password=credentials.password,
        pin=credentials.pin,
    )


def _child(data: dict[str, Any] | None, path: str, default: Any = None) -> Any:  # noqa: ANN401
    """Look up a dotted path in a nested vendor payload."""
    value: Any = data or {}
    for key in path.split("."):
        if not isinstance(value, dict) or key not in value:
            return default
        value = value[key]
    return value


def extract_vehicles(manager: VehicleManager) -> list[VehicleInfo]:
    """Extract the vehicle list from a logged in session manager."""
    return [
        VehicleInfo(
            id=vehicle_id,
            vin=vehicle.VIN,
            name=vehicle.name,
            model=getattr(vehicle, "model", None),
        )
        for vehicle_id, vehicle in manager.vehicles.items()
    ]


def extract_status(vehicle: Any) -> VehicleStatus:  # noqa: ANN401
    """Map a vendor vehicle object onto a VehicleStatus."""
    raw = vehicle.data if isinstance(vehicle.data, dict) else {}
    return VehicleStatus(
        engine=bool(vehicle.engine_is_running),
        locked=bool(vehicle.is_locked),
        air_ctrl_on=bool(vehicle.air_control_is_on),
        defrost=bool(vehicle.defrost_is_on),
        trunk_open=bool(vehicle.trunk_is_open),
        hood_open=bool(vehicle.hood_is_open),
        doors_open={
            door: bool(getattr(vehicle, attribute, False))
            for door, attribute in DOOR_ATTRIBUTES.items()
        },
        air_temp=vehicle.air_temperature,
        tire_pressure_lamp=bool(vehicle.tire_pressure_all_warning_is_on),
        battery_soc=vehicle.car_battery_percentage,
        ev_battery_soc=vehicle.ev_battery_percentage,
        charging=bool(vehicle.ev_battery_is_charging),
        plugged_in=int(vehicle.ev_battery_is_plugged_in or 0),
        range=vehicle.ev_driving_range or vehicle.total_driving_range,
        sleep_mode_check=bool(_child(raw, "vehicleStatus.sleepModeCheck", False)),
        time=vehicle.last_updated_at,
        raw=raw,
    )


def extract_location(vehicle: Any) -> VehicleLocation:  # noqa: ANN401
    """Map a vendor vehicle object onto a VehicleLocation.

    Raises:
        HyundaiKiaApiClientError: If the vehicle reported no position.

    """
    if vehicle.location_latitude is None or vehicle.location_longitude is None:
        error_msg = "Vehicle did not report a location"
        raise HyundaiKiaApiClientError(error_msg)
    raw = vehicle.data if isinstance(vehicle.data, dict) else {}
    speed = _child(raw, "vehicleLocation.speed.value", 0) or 0
    return VehicleLocation(
        latitude=float(vehicle.location_latitude),
        longitude=float(vehicle.location_longitude),
        speed=float(speed),
    )


def extract_odometer(vehicle: Any) -> Odometer:  # noqa: ANN401
    """Map a vendor vehicle object onto an Odometer.

    Raises:
        HyundaiKiaApiClientError: If the vehicle reported no odometer.

    """
    if vehicle.odometer is None:
        error_msg = "Vehicle did not report an odometer value"
        raise HyundaiKiaApiClientError(error_msg)
    return Odometer(value=float(vehicle.odometer))


def _login(manager: VehicleManager, *, validate_pin: bool) -> list[VehicleInfo]:
    manager.check_and_refresh_token()
    vehicles = extract_vehicles(manager)
    if not vehicles:
        error_msg = "No vehicles in this account"
        raise HyundaiKiaNoVehiclesError(error_msg)
    if validate_pin:
        try:
            manager.update_vehicle_with_cached_state(vehicles[0].id)
        except Exception as err:
            error_msg = f"Incorrect PIN: {err}"
            raise HyundaiKiaApiAuthError(error_msg) from err
    return vehicles


async def async_login_account(
    hass: HomeAssistant,
    credentials: Credentials,
    *,
    validate_pin: bool = False,
    timeout: float = LOGIN_TIMEOUT,
) -> LoginResult:
    """Log in to the vendor backend with a single deadline.

    Args:
        hass: Home Assistant instance.
        credentials: Account credentials.
        validate_pin: Also fetch the cached state of the first vehicle, which
            fails when the PIN is wrong.
        timeout: Seconds to wait before giving up.

    Returns:
        LoginResult with either the vehicle list or an error reason.

    """
    manager = create_manager(credentials)
    try:
        async with asyncio.timeout(timeout):
            vehicles = await hass.async_add_executor_job(
                partial(_login, manager, validate_pin=validate_pin)
            )
    except TimeoutError:
        _LOGGER.warning("Login timeout after %s seconds", timeout)
        return LoginResult(error=ERROR_TIMEOUT)
    except AuthenticationError as err:
        _LOGGER.warning("Authentication failed: %s", err)
        return LoginResult(error=ERROR_INVALID_AUTH)
    except HyundaiKiaApiAuthError as err:
        _LOGGER.warning("PIN validation failed: %s", err)
        return LoginResult(error=ERROR_INVALID_PIN)
    except HyundaiKiaNoVehiclesError:
        _LOGGER.warning("No vehicles in account %s", credentials.username)
        return LoginResult(error=ERROR_NO_VEHICLES)
    except Exception:
        _LOGGER.exception("Unexpected error during login")
        return LoginResult(error=ERROR_CANNOT_CONNECT)

    _LOGGER.debug("Login succeeded, %d vehicles on account", len(vehicles))
    return LoginResult(vehicles=vehicles, manager=manager)


def raise_for_login_error(result: LoginResult) -> None:
    """Translate a failed LoginResult into the matching exception."""
    if result.ok:
        return
    error_msg = f"Login failed: {result.error}"
    if result.error in (ERROR_INVALID_AUTH, ERROR_INVALID_PIN):
        raise HyundaiKiaApiAuthError(error_msg)
    if result.error == ERROR_TIMEOUT:
        raise HyundaiKiaApiTimeoutError(error_msg)
    if result.error == ERROR_NO_VEHICLES:
        raise HyundaiKiaNoVehiclesError(error_msg)
    raise HyundaiKiaApiClientError(error_msg)


class HyundaiKiaVehicleClient:
    """Async adapter around one vehicle of a vendor session manager."""

    def __init__(
        self,
        hass: HomeAssistant,
        manager: VehicleManager,
        vehicle_id: str,
    ) -> None:
        """Initialize the client.

        Args:
            hass: Home Assistant instance, used to run blocking vendor calls.
            manager: Logged in vendor session manager.
            vehicle_id: Vendor id of the vehicle to query.

        """
        self._hass = hass
        self._manager = manager
        self._vehicle_id = vehicle_id

    @property
    def vehicle_id(self) -> str:
        """Return the vendor id of the vehicle."""
        return self._vehicle_id

    @property
    def _vehicle(self) -> Any:  # noqa: ANN401
        return self._manager.get_vehicle(self._vehicle_id)

    async def _async_call(self, func: Any, *args: Any) -> Any:  # noqa: ANN401
        try:
            return await self._hass.async_add_executor_job(func, *args)
        except AuthenticationError as err:
            raise HyundaiKiaApiAuthError(str(err)) from err
        except HyundaiKiaApiClientError:
            raise
        except Exception as err:
            error_msg = f"Vehicle API request failed: {err}"
            raise HyundaiKiaApiClientError(error_msg) from err

    async def async_login(self) -> None:
        """Refresh the session token if needed."""
        await self._async_call(self._manager.check_and_refresh_token)

    async def async_status(self, *, refresh: bool) -> VehicleStatus:
        """Fetch the vehicle status.

        Args:
            refresh: Wake the car for live data instead of returning the
                backend's cached record.

        """
        if refresh:
            _LOGGER.debug("Requesting live status for vehicle %s", self._vehicle_id)
            await self._async_call(
                self._manager.force_refresh_vehicle_state, self._vehicle_id
            )
        else:
            await self._async_call(
                self._manager.update_vehicle_with_cached_state, self._vehicle_id
            )
        return extract_status(self._vehicle)

    async def async_location(self) -> VehicleLocation:
        return extract_location(self._vehicle)

    async def async_odometer(self) -> Odometer:
        return extract_odometer(self._vehicle)

    async def async_lock(self) -> str:
        return await self._async_call(self._manager.lock, self._vehicle_id)

    async def async_unlock(self) -> str:
        return await self._async_call(self._manager.unlock, self._vehicle_id)

    async def async_start(self, options: ClimateOptions) -> str:
        request = ClimateRequestOptions(
            climate=True,
            set_temp=options.temperature,
            defrost=options.defrost,
            heating=1 if options.windscreen_heating else 0,
        )
        return await self._async_call(
            self._manager.start_climate, self._vehicle_id, request
        )

    async def async_stop(self, options: ClimateOptions) -> str:
        _LOGGER.debug(
            "Stopping climate for vehicle %s (defrost=%s)",
            self._vehicle_id,
            options.defrost,
        )
        return await self._async_call(self._manager.stop_climate, self._vehicle_id)


async def async_create_client(
    hass: HomeAssistant,
    credentials: Credentials,
    vin: str,
) -> HyundaiKiaVehicleClient:
    """Log in and return a client bound to the vehicle with the given VIN.

    Raises:
        HyundaiKiaApiClientError: If login fails or the VIN is not on the
            account.

    """
    result = await async_login_account(hass, credentials)
    raise_for_login_error(result)
    for vehicle in result.vehicles:
        if vehicle.vin == vin:
            return HyundaiKiaVehicleClient(hass, result.manager, vehicle.id)
    error_msg = f"Vehicle {vin} not found in account"
    raise HyundaiKiaNoVehiclesError(error_msg)
