"""Door lock entity for Hyundai / Kia vehicles."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.components.lock import LockEntity, LockEntityDescription

from .const import DOMAIN
from .entity import HyundaiKiaEntity

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

LOCK_DESCRIPTION = LockEntityDescription(key="locked", translation_key="locked")


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the door lock of a vehicle."""
    coordinator = hass.data[DOMAIN][entry.entry_id]
    async_add_entities([HyundaiKiaLock(coordinator, LOCK_DESCRIPTION)])


class HyundaiKiaLock(HyundaiKiaEntity, LockEntity):
    """Central door lock.

    The published state follows the next forced poll after a command.
    """

    @property
    def is_locked(self) -> bool | None:
        return self.view_value

    async def async_lock(self, **kwargs: Any) -> None:  # noqa: ANN401, ARG002
        await self.coordinator.async_lock()

    async def async_unlock(self, **kwargs: Any) -> None:  # noqa: ANN401, ARG002
        await self.coordinator.async_unlock()
