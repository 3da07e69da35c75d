"""The PV Notifications integration.

Watches a battery state-of-charge sensor and sends chat notifications when
the battery becomes full, empty or passes intermediate levels, plus daily,
weekly and monthly summaries.

- Configuration and state containers (core/state.py)
- Event bus (core/events.py)
- Home Assistant access (core/gateway.py)
- Pure decision logic (domain/*.py)
- Message formatting and persistence (infra/*.py)
- Factory-based entities (entities/*.py)
"""

from __future__ import annotations

import logging

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant

from .const import DOMAIN
from .coordinator import PvNotificationsCoordinator

_LOGGER = logging.getLogger(__name__)

PLATFORMS: list[Platform] = [
    Platform.SENSOR,
    Platform.BINARY_SENSOR,
    Platform.BUTTON,
    Platform.SWITCH,
]


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up PV Notifications from a config entry."""
    hass.data.setdefault(DOMAIN, {})

    coordinator = PvNotificationsCoordinator(hass, entry)
    await coordinator.async_init()

    hass.data[DOMAIN][entry.entry_id] = coordinator

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    entry.async_on_unload(entry.add_update_listener(async_reload_entry))

    _LOGGER.info("PV Notifications initialized for %s", coordinator.state.soc_sensor_entity)
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    if unload_ok := await hass.config_entries.async_unload_platforms(entry, PLATFORMS):
        coordinator: PvNotificationsCoordinator = hass.data[DOMAIN].pop(entry.entry_id)
        await coordinator.async_shutdown()

    return unload_ok


async def async_reload_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Reload after an options change."""
    await hass.config_entries.async_reload(entry.entry_id)
