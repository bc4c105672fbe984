"""Base entity for the Hyundai / Kia integration."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DOMAIN

if TYPE_CHECKING:
    from homeassistant.helpers.entity import EntityDescription

    from .coordinator import HyundaiKiaCoordinator


class HyundaiKiaEntity(CoordinatorEntity["HyundaiKiaCoordinator"]):
    """Entity publishing one property of the vehicle view.

    Entities keep their last value through failed polls: they only become
    unavailable while nothing has been published yet.
    """

    _attr_has_entity_name = True

    def __init__(
        self,
        coordinator: HyundaiKiaCoordinator,
        description: EntityDescription,
    ) -> None:
        super().__init__(coordinator)
        self.entity_description = description
        self._attr_unique_id = f"{coordinator.vin}_{description.key}"
        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, coordinator.vin)},
            name=coordinator.config_entry.title,
            manufacturer="Hyundai / Kia",
            serial_number=coordinator.vin,
        )

    @property
    def available(self) -> bool:
        return self.coordinator.data is not None

    @property
    def view_value(self) -> Any:  # noqa: ANN401
        """Return this entity's property from the published view."""
        if self.coordinator.data is None:
            return None
        return getattr(self.coordinator.data, self.entity_description.key)
