"""Force poll button for Hyundai / Kia vehicles."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from homeassistant.components.button import ButtonEntity, ButtonEntityDescription

from .const import DOMAIN
from .entity import HyundaiKiaEntity

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

_LOGGER = logging.getLogger(__name__)

FORCE_POLL_DESCRIPTION = ButtonEntityDescription(
    key="force_poll", translation_key="force_poll"
)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the force poll button of a vehicle."""
    coordinator = hass.data[DOMAIN][entry.entry_id]
    async_add_entities([HyundaiKiaForcePollButton(coordinator, FORCE_POLL_DESCRIPTION)])


class HyundaiKiaForcePollButton(HyundaiKiaEntity, ButtonEntity):
    """Wakes the car and polls it right away."""

    @property
    def available(self) -> bool:
        return True

    async def async_press(self) -> None:
        _LOGGER.info("Force poll requested for %s", self.coordinator.vin[-6:])
        await self.coordinator.async_force_poll()
