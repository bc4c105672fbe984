from __future__ import annotations

import logging

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryNotReady

from . import api
from .api import create_session_client
from .const import CONF_VIN, DOMAIN
from .coordinator import HyundaiKiaCoordinator, create_view_store

_LOGGER = logging.getLogger(__name__)

PLATFORMS = [
    Platform.BINARY_SENSOR,
    Platform.BUTTON,
    Platform.LOCK,
    Platform.SENSOR,
    Platform.SWITCH,
]


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    _LOGGER.info("Setting up Hyundai / Kia integration for entry %s", entry.entry_id)

    session = create_session_client(hass)
    coordinator = HyundaiKiaCoordinator(
        hass, entry, session, store=create_view_store(hass, entry.data[CONF_VIN])
    )

    try:
        await coordinator.async_connect()
    except api.HyundaiKiaApiAuthError as err:
        _LOGGER.warning(
            "Authentication failed for entry %s: %s", entry.entry_id, str(err)
        )
        return False
    except api.HyundaiKiaApiClientError as err:
        error_msg = f"Could not connect to vehicle {coordinator.vin}: {err}"
        raise ConfigEntryNotReady(error_msg) from err

    await coordinator.async_restore()
    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = coordinator

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    entry.async_on_unload(entry.add_update_listener(async_update_options))

    entry.async_create_background_task(
        hass,
        coordinator.async_start_polling(coordinator.thresholds.poll_interval),
        name=f"{DOMAIN}_start_polling_{entry.entry_id}",
    )
    _LOGGER.info(
        "Successfully setup Hyundai / Kia integration for entry %s", entry.entry_id
    )
    return True


async def async_update_options(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Restart the device when its settings change."""
    _LOGGER.info("Settings of entry %s changed, restarting", entry.entry_id)
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    _LOGGER.info("Unloading Hyundai / Kia integration for entry %s", entry.entry_id)

    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unload_ok:
        coordinator: HyundaiKiaCoordinator = hass.data[DOMAIN].pop(entry.entry_id)
        await coordinator.async_shutdown()
        _LOGGER.debug("Cleaned up data for entry %s", entry.entry_id)
    else:
        _LOGGER.warning("Failed to unload some platforms for entry %s", entry.entry_id)

    return unload_ok
