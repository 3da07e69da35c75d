"""Notification latch, window and delivery state binary sensors."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from homeassistant.components.binary_sensor import (
    BinarySensorDeviceClass,
    BinarySensorEntity,
)
from homeassistant.util import dt as dt_util

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback
    from ..core.state import PvState

from .base import PvEntity


@dataclass
class BinarySensorDefinition:
    """Definition for a binary sensor."""

    key: str
    name: str
    value_fn: Callable[[Any], bool]
    device_class: BinarySensorDeviceClass | None = None
    icon_on: str | None = None
    icon_off: str | None = None


BINARY_SENSOR_DEFINITIONS: list[BinarySensorDefinition] = [
    BinarySensorDefinition(
        key="full_notified",
        name="Full Notified",
        value_fn=lambda s: s.notifier.full_flag,
        icon_on="mdi:battery-check",
        icon_off="mdi:battery",
    ),
    BinarySensorDefinition(
        key="empty_notified",
        name="Empty Notified",
        value_fn=lambda s: s.notifier.empty_flag,
        icon_on="mdi:battery-alert",
        icon_off="mdi:battery-outline",
    ),
    BinarySensorDefinition(
        key="night_window_active",
        name="Night Window Active",
        value_fn=lambda s: s.config.night_mode_enabled and s.config.night_window.contains(dt_util.now()),
        icon_on="mdi:weather-night",
        icon_off="mdi:weather-sunny",
    ),
    BinarySensorDefinition(
        key="quiet_window_active",
        name="Quiet Window Active",
        value_fn=lambda s: s.config.quiet_mode_enabled and s.config.quiet_window.contains(dt_util.now()),
        icon_on="mdi:bell-sleep",
        icon_off="mdi:bell-ring-outline",
    ),
    BinarySensorDefinition(
        key="delivery_problem",
        name="Delivery Problem",
        value_fn=lambda s: bool(s.last_delivery_error),
        device_class=BinarySensorDeviceClass.PROBLEM,
    ),
    BinarySensorDefinition(
        key="storage_problem",
        name="Storage Problem",
        value_fn=lambda s: bool(s.last_persistence_error),
        device_class=BinarySensorDeviceClass.PROBLEM,
    ),
]


class PvBinarySensor(PvEntity, BinarySensorEntity):
    """Binary sensor whose value is computed from PvState by its definition."""

    def __init__(
        self,
        entry_id: str,
        state: PvState,
        definition: BinarySensorDefinition,
    ) -> None:
        super().__init__(entry_id, definition.key, definition.name)
        self._state = state
        self._definition = definition
        self._attr_device_class = definition.device_class

    @property
    def icon(self) -> str | None:
        """Return icon based on state."""
        if self._definition.icon_on and self._definition.icon_off:
            return self._definition.icon_on if self.is_on else self._definition.icon_off
        return None

    def _refresh(self) -> None:
        try:
            self._attr_is_on = bool(self._definition.value_fn(self._state))
        except (ValueError, TypeError, AttributeError, KeyError):
            self._attr_is_on = False


async def async_setup_binary_sensors(
    hass: HomeAssistant,
    entry: ConfigEntry,
    state: PvState,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up binary sensor entities."""
    async_add_entities(
        PvBinarySensor(entry.entry_id, state, definition)
        for definition in BINARY_SENSOR_DEFINITIONS
    )
