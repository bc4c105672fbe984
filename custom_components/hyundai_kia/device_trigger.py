"""Device triggers for Hyundai / Kia vehicles.

Each watched boolean (engine, charging, climate control, defrost) exposes
a ``<property>_true`` and ``<property>_false`` trigger, fired by the
coordinator on transitions only.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import voluptuous as vol
from homeassistant.components.device_automation import (
    DEVICE_TRIGGER_BASE_SCHEMA,
    InvalidDeviceAutomationConfig,
)
from homeassistant.components.homeassistant.triggers import event as event_trigger
from homeassistant.const import CONF_DEVICE_ID, CONF_DOMAIN, CONF_PLATFORM, CONF_TYPE
from homeassistant.helpers.device_registry import async_get as async_get_device_registry

from .const import ATTR_TRIGGER_TYPE, CONF_VIN, DOMAIN, EVENT_VEHICLE_TRIGGER, TRIGGER_TYPES

if TYPE_CHECKING:
    from homeassistant.core import CALLBACK_TYPE, HomeAssistant
    from homeassistant.helpers.trigger import TriggerActionType, TriggerInfo
    from homeassistant.helpers.typing import ConfigType

_LOGGER = logging.getLogger(__name__)

TRIGGER_SCHEMA = DEVICE_TRIGGER_BASE_SCHEMA.extend(
    {
        vol.Required(CONF_TYPE): vol.In(TRIGGER_TYPES),
    }
)

DEVICE = "device"


def async_get_vin_by_device_id(hass: HomeAssistant, device_id: str) -> str | None:
    """Return the VIN of the vehicle registered as ``device_id``."""
    if device := async_get_device_registry(hass).async_get(device_id):
        for domain, identifier in device.identifiers:
            if domain == DOMAIN:
                return identifier
    return None


async def async_get_triggers(
    hass: HomeAssistant, device_id: str
) -> list[dict[str, str]]:
    """List device triggers for a vehicle."""
    if async_get_vin_by_device_id(hass, device_id) is None:
        error_msg = f"Not a {DOMAIN} device {device_id}"
        raise InvalidDeviceAutomationConfig(error_msg)
    return [
        {
            CONF_PLATFORM: DEVICE,
            CONF_DEVICE_ID: device_id,
            CONF_DOMAIN: DOMAIN,
            CONF_TYPE: trigger_type,
        }
        for trigger_type in TRIGGER_TYPES
    ]


async def async_attach_trigger(
    hass: HomeAssistant,
    config: ConfigType,
    action: TriggerActionType,
    trigger_info: TriggerInfo,
) -> CALLBACK_TYPE:
    """Attach a vehicle trigger to the coordinator's trigger events."""
    device_id = config[CONF_DEVICE_ID]
    if (vin := async_get_vin_by_device_id(hass, device_id)) is None:
        error_msg = f"Not a {DOMAIN} device {device_id}"
        raise InvalidDeviceAutomationConfig(error_msg)

    event_config = event_trigger.TRIGGER_SCHEMA(
        {
            event_trigger.CONF_PLATFORM: "event",
            event_trigger.CONF_EVENT_TYPE: EVENT_VEHICLE_TRIGGER,
            event_trigger.CONF_EVENT_DATA: {
                CONF_VIN: vin,
                ATTR_TRIGGER_TYPE: config[CONF_TYPE],
            },
        }
    )
    _LOGGER.debug("Attaching %s trigger for %s", config[CONF_TYPE], vin[-6:])
    return await event_trigger.async_attach_trigger(
        hass,
        event_config,
        action,
        trigger_info,
        platform_type=DEVICE,
    )
