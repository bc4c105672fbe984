"""Binary sensor entities for Hyundai / Kia vehicles."""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.components.binary_sensor import (
    BinarySensorDeviceClass,
    BinarySensorEntity,
    BinarySensorEntityDescription,
)

from .const import DOMAIN
from .entity import HyundaiKiaEntity

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

BINARY_SENSOR_TYPES: tuple[BinarySensorEntityDescription, ...] = (
    BinarySensorEntityDescription(
        key="alarm_battery",
        translation_key="alarm_battery",
        device_class=BinarySensorDeviceClass.BATTERY,
    ),
    BinarySensorEntityDescription(
        key="alarm_tire_pressure",
        translation_key="alarm_tire_pressure",
        device_class=BinarySensorDeviceClass.PROBLEM,
    ),
    BinarySensorEntityDescription(
        key="closed_locked",
        translation_key="closed_locked",
    ),
    BinarySensorEntityDescription(
        key="engine",
        translation_key="engine",
        device_class=BinarySensorDeviceClass.RUNNING,
    ),
    BinarySensorEntityDescription(
        key="charging",
        translation_key="charging",
        device_class=BinarySensorDeviceClass.BATTERY_CHARGING,
    ),
    BinarySensorEntityDescription(
        key="live_data",
        translation_key="live_data",
    ),
)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up binary sensor entities for a vehicle."""
    coordinator = hass.data[DOMAIN][entry.entry_id]
    async_add_entities(
        HyundaiKiaBinarySensor(coordinator, description)
        for description in BINARY_SENSOR_TYPES
    )


class HyundaiKiaBinarySensor(HyundaiKiaEntity, BinarySensorEntity):
    """A boolean property of the vehicle."""

    @property
    def is_on(self) -> bool | None:
        return self.view_value
