"""
Configuration flow for the Hyundai / Kia integration.

This module handles pairing a vehicle: validating the account
credentials and PIN, picking the vehicle, and the per-vehicle options.
"""

from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol
from homeassistant.config_entries import (
    ConfigEntry,
    ConfigFlow,
    ConfigFlowResult,
    OptionsFlow,
)
from homeassistant.const import (
    CONF_LATITUDE,
    CONF_LONGITUDE,
    CONF_PASSWORD,
    CONF_USERNAME,
)
from homeassistant.core import callback

from . import api
from .const import (
    BRAND_OPTIONS,
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
    DEFAULT_POLL_INTERVAL_FORCED,
    DOMAIN,
    ERROR_INVALID_PIN,
    REGION_OPTIONS,
)
from .models import VehicleInfo

_LOGGER = logging.getLogger(__name__)

PIN_LENGTH = 4


def is_valid_pin(pin: str) -> bool:
    """Return True if ``pin`` is a 4 digit PIN."""
    return len(pin) == PIN_LENGTH and pin.isdigit()


class HyundaiKiaConfigFlow(ConfigFlow, domain=DOMAIN):
    """Handle configuration flow for the Hyundai / Kia integration."""

    VERSION = 1

    def __init__(self) -> None:
        """Initialize the config flow."""
        super().__init__()
        self._user_input: dict[str, Any] = {}
        self._vehicles: list[VehicleInfo] = []

    @staticmethod
    @callback
    def async_get_options_flow(config_entry: ConfigEntry) -> OptionsFlow:  # noqa: ARG004
        """Return the options flow handler."""
        return HyundaiKiaOptionsFlow()

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """
        Handle the credentials step of the config flow.

        Args:
            user_input: Account credentials, PIN, region and brand.

        Returns:
            ConfigFlowResult for the vehicle step or the form with errors.

        """
        errors: dict[str, str] = {}

        if user_input is not None:
            if not is_valid_pin(user_input[CONF_PIN]):
                errors["base"] = ERROR_INVALID_PIN
            else:
                _LOGGER.info("Validating credentials")
                credentials = api.Credentials(
                    username=user_input[CONF_USERNAME],
                    password=user_input[CONF_PASSWORD],
                    pin=user_input[CONF_PIN],
                    region=int(user_input[CONF_REGION]),
                    brand=int(user_input[CONF_BRAND]),
                )
                result = await api.async_login_account(
                    self.hass, credentials, validate_pin=True
                )
                if result.ok:
                    _LOGGER.info("Credentials OK, %d vehicles", len(result.vehicles))
                    self._user_input = user_input
                    self._vehicles = result.vehicles
                    return await self.async_step_vehicle()
                errors["base"] = result.error

        return self.async_show_form(
            step_id="user",
            data_schema=vol.Schema(
                {
                    vol.Required(CONF_USERNAME): str,
                    vol.Required(CONF_PASSWORD): str,
                    vol.Required(CONF_PIN): str,
                    vol.Required(CONF_REGION, default="1"): vol.In(REGION_OPTIONS),
                    vol.Required(CONF_BRAND, default="1"): vol.In(BRAND_OPTIONS),
                }
            ),
            errors=errors,
        )

    async def async_step_vehicle(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """
        Let the user pick one of the vehicles on the account.

        Args:
            user_input: The selected VIN.

        Returns:
            ConfigFlowResult creating the entry or showing the vehicle list.

        """
        if user_input is not None:
            vin = user_input[CONF_VIN]
            vehicle = next(v for v in self._vehicles if v.vin == vin)
            await self.async_set_unique_id(vin)
            self._abort_if_unique_id_configured()

            return self.async_create_entry(
                title=vehicle.name,
                data={**self._user_input, CONF_VIN: vin},
                options={
                    CONF_POLL_INTERVAL: DEFAULT_POLL_INTERVAL,
                    CONF_POLL_INTERVAL_FORCED: DEFAULT_POLL_INTERVAL_FORCED,
                    CONF_BATTERY_ALARM_LEVEL: DEFAULT_BATTERY_ALARM_LEVEL,
                    CONF_EV_BATTERY_ALARM_LEVEL: DEFAULT_EV_BATTERY_ALARM_LEVEL,
                    CONF_LATITUDE: round(self.hass.config.latitude, 8),
                    CONF_LONGITUDE: round(self.hass.config.longitude, 8),
                    CONF_ABRP_TOKEN: "",
                    CONF_ABRP_API_KEY: "",
                },
            )

        return self.async_show_form(
            step_id="vehicle",
            data_schema=vol.Schema(
                {
                    vol.Required(CONF_VIN): vol.In(
                        {v.vin: f"{v.name} ({v.vin})" for v in self._vehicles}
                    ),
                }
            ),
        )


class HyundaiKiaOptionsFlow(OptionsFlow):
    """Per-vehicle polling, alarm and telemetry settings."""

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        if user_input is not None:
            _LOGGER.info("Settings change requested by user")
            return self.async_create_entry(data=user_input)

        options = self.config_entry.options
        return self.async_show_form(
            step_id="init",
            data_schema=vol.Schema(
                {
                    vol.Required(
                        CONF_POLL_INTERVAL,
                        default=options.get(CONF_POLL_INTERVAL, DEFAULT_POLL_INTERVAL),
                    ): vol.All(vol.Coerce(int), vol.Range(min=1)),
                    vol.Required(
                        CONF_POLL_INTERVAL_FORCED,
                        default=options.get(
                            CONF_POLL_INTERVAL_FORCED, DEFAULT_POLL_INTERVAL_FORCED
                        ),
                    ): vol.All(vol.Coerce(int), vol.Range(min=0)),
                    vol.Required(
                        CONF_BATTERY_ALARM_LEVEL,
                        default=options.get(
                            CONF_BATTERY_ALARM_LEVEL, DEFAULT_BATTERY_ALARM_LEVEL
                        ),
                    ): vol.All(vol.Coerce(int), vol.Range(min=0, max=100)),
                    vol.Required(
                        CONF_EV_BATTERY_ALARM_LEVEL,
                        default=options.get(
                            CONF_EV_BATTERY_ALARM_LEVEL, DEFAULT_EV_BATTERY_ALARM_LEVEL
                        ),
                    ): vol.All(vol.Coerce(int), vol.Range(min=0, max=100)),
                    vol.Required(
                        CONF_LATITUDE,
                        default=options.get(CONF_LATITUDE, self.hass.config.latitude),
                    ): vol.Coerce(float),
                    vol.Required(
                        CONF_LONGITUDE,
                        default=options.get(CONF_LONGITUDE, self.hass.config.longitude),
                    ): vol.Coerce(float),
                    vol.Optional(
                        CONF_ABRP_TOKEN, default=options.get(CONF_ABRP_TOKEN, "")
                    ): str,
                    vol.Optional(
                        CONF_ABRP_API_KEY, default=options.get(CONF_ABRP_API_KEY, "")
                    ): str,
                }
            ),
        )
