"""Climate control and defrost switches for Hyundai / Kia vehicles."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.components.switch import SwitchEntity, SwitchEntityDescription

from .const import DOMAIN
from .entity import HyundaiKiaEntity

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

SWITCH_TYPES: tuple[SwitchEntityDescription, ...] = (
    SwitchEntityDescription(key="climate_control", translation_key="climate_control"),
    SwitchEntityDescription(key="defrost", translation_key="defrost"),
)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up switch entities for a vehicle."""
    coordinator = hass.data[DOMAIN][entry.entry_id]
    async_add_entities(
        HyundaiKiaSwitch(coordinator, description) for description in SWITCH_TYPES
    )


class HyundaiKiaSwitch(HyundaiKiaEntity, SwitchEntity):
    """Remote climate or defrost toggle."""

    @property
    def is_on(self) -> bool | None:
        return self.view_value

    async def _async_set(self, on: bool) -> None:  # noqa: FBT001
        if self.entity_description.key == "defrost":
            await self.coordinator.async_set_defrost(on)
        else:
            await self.coordinator.async_set_climate(on)

    async def async_turn_on(self, **kwargs: Any) -> None:  # noqa: ANN401, ARG002
        await self._async_set(True)  # noqa: FBT003

    async def async_turn_off(self, **kwargs: Any) -> None:  # noqa: ANN401, ARG002
        await self._async_set(False)  # noqa: FBT003
