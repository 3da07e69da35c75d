"""Shared entity plumbing: device grouping and update signal handling."""

from __future__ import annotations

from homeassistant.core import callback
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.helpers.entity import Entity

from ..const import DEFAULT_NAME, DOMAIN, SIGNAL_UPDATE


def device_info(entry_id: str) -> DeviceInfo:
    """All entities of one config entry share a device."""
    return DeviceInfo(
        identifiers={(DOMAIN, entry_id)},
        name=DEFAULT_NAME,
        manufacturer="PV Notifications",
    )


class PvEntity(Entity):
    """Push-updated entity refreshed on the integration's update signal."""

    _attr_has_entity_name = True
    _attr_should_poll = False

    def __init__(self, entry_id: str, key: str, name: str) -> None:
        self._attr_unique_id = f"{entry_id}_{key}"
        self._attr_name = name
        self._attr_device_info = device_info(entry_id)

    async def async_added_to_hass(self) -> None:
        """Register for updates."""
        self.async_on_remove(
            async_dispatcher_connect(self.hass, SIGNAL_UPDATE, self._handle_update)
        )
        self._refresh()

    @callback
    def _handle_update(self) -> None:
        self._refresh()
        self.async_write_ha_state()

    def _refresh(self) -> None:
        """Copy current values from state into the entity attributes."""
