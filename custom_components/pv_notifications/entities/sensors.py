"""Statistics and live battery sensors.

Each sensor is one SensorDefinition row; its value_fn reads PvState.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorStateClass,
)
from homeassistant.const import PERCENTAGE, UnitOfEnergy

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback
    from ..core.state import PvState

from .base import PvEntity


@dataclass
class SensorDefinition:
    """Definition for a sensor entity."""

    key: str  # Unique identifier
    name: str  # Display name
    value_fn: Callable[[Any], Any]  # Function to get value from state
    unit: str | None = None
    device_class: SensorDeviceClass | None = None
    state_class: SensorStateClass | None = None
    icon: str | None = None


def _cycles(key: str, name: str, value_fn: Callable[[Any], Any], icon: str) -> SensorDefinition:
    return SensorDefinition(
        key=key,
        name=name,
        value_fn=value_fn,
        state_class=SensorStateClass.MEASUREMENT,
        icon=icon,
    )


SENSOR_DEFINITIONS: list[SensorDefinition] = [
    # Live battery values
    SensorDefinition(
        key="current_soc",
        name="Current SOC",
        value_fn=lambda s: s.stats.current_soc,
        unit=PERCENTAGE,
        device_class=SensorDeviceClass.BATTERY,
        state_class=SensorStateClass.MEASUREMENT,
    ),
    SensorDefinition(
        key="current_energy",
        name="Current Energy",
        value_fn=lambda s: s.stats.current_energy_kwh,
        unit=UnitOfEnergy.KILO_WATT_HOUR,
        device_class=SensorDeviceClass.ENERGY_STORAGE,
        state_class=SensorStateClass.MEASUREMENT,
    ),

    # Today
    _cycles("full_cycles_today", "Full Cycles Today", lambda s: s.stats.full_cycles_today, "mdi:battery"),
    _cycles("empty_cycles_today", "Empty Cycles Today", lambda s: s.stats.empty_cycles_today, "mdi:battery-outline"),
    SensorDefinition(
        key="max_soc_today",
        name="Max SOC Today",
        value_fn=lambda s: s.stats.max_soc_today,
        unit=PERCENTAGE,
        icon="mdi:battery-arrow-up",
    ),
    SensorDefinition(
        key="min_soc_today",
        name="Min SOC Today",
        value_fn=lambda s: s.stats.min_soc_today,
        unit=PERCENTAGE,
        icon="mdi:battery-arrow-down",
    ),

    # Running week / month
    _cycles("full_cycles_week", "Full Cycles This Week", lambda s: s.stats.full_cycles_week, "mdi:calendar-week"),
    _cycles("empty_cycles_week", "Empty Cycles This Week", lambda s: s.stats.empty_cycles_week, "mdi:calendar-week"),
    _cycles("full_cycles_month", "Full Cycles This Month", lambda s: s.stats.full_cycles_month, "mdi:calendar-month"),
    _cycles("empty_cycles_month", "Empty Cycles This Month", lambda s: s.stats.empty_cycles_month, "mdi:calendar-month"),

    # Last finished week / month
    SensorDefinition(
        key="last_week_production",
        name="Last Week Production",
        value_fn=lambda s: s.stats.last_week.production,
        unit=UnitOfEnergy.KILO_WATT_HOUR,
        device_class=SensorDeviceClass.ENERGY,
        state_class=SensorStateClass.TOTAL,
    ),
    SensorDefinition(
        key="last_week_consumption",
        name="Last Week Consumption",
        value_fn=lambda s: s.stats.last_week.consumption,
        unit=UnitOfEnergy.KILO_WATT_HOUR,
        device_class=SensorDeviceClass.ENERGY,
        state_class=SensorStateClass.TOTAL,
    ),
    SensorDefinition(
        key="last_week_feed_in",
        name="Last Week Feed-in",
        value_fn=lambda s: s.stats.last_week.feed_in,
        unit=UnitOfEnergy.KILO_WATT_HOUR,
        device_class=SensorDeviceClass.ENERGY,
        state_class=SensorStateClass.TOTAL,
    ),
    _cycles("last_week_full_cycles", "Last Week Full Cycles", lambda s: s.stats.last_week.full_cycles, "mdi:history"),
    _cycles("last_week_empty_cycles", "Last Week Empty Cycles", lambda s: s.stats.last_week.empty_cycles, "mdi:history"),
    SensorDefinition(
        key="last_month_production",
        name="Last Month Production",
        value_fn=lambda s: s.stats.last_month.production,
        unit=UnitOfEnergy.KILO_WATT_HOUR,
        device_class=SensorDeviceClass.ENERGY,
        state_class=SensorStateClass.TOTAL,
    ),
    _cycles("last_month_full_cycles", "Last Month Full Cycles", lambda s: s.stats.last_month.full_cycles, "mdi:history"),
    _cycles("last_month_empty_cycles", "Last Month Empty Cycles", lambda s: s.stats.last_month.empty_cycles, "mdi:history"),

    # Delivery
    SensorDefinition(
        key="last_notification",
        name="Last Notification",
        # State is limited to 255 characters
        value_fn=lambda s: (s.last_notification_text or "None")[:255],
        icon="mdi:message-text-outline",
    ),
    SensorDefinition(
        key="last_notification_time",
        name="Last Notification Time",
        value_fn=lambda s: s.last_notification_at,
        device_class=SensorDeviceClass.TIMESTAMP,
    ),
]


class PvSensor(PvEntity, SensorEntity):
    """Sensor whose value is computed from PvState by its definition."""

    def __init__(
        self,
        entry_id: str,
        state: PvState,
        definition: SensorDefinition,
    ) -> None:
        super().__init__(entry_id, definition.key, definition.name)
        self._state = state
        self._definition = definition

        self._attr_native_unit_of_measurement = definition.unit
        self._attr_device_class = definition.device_class
        self._attr_state_class = definition.state_class
        if definition.icon:
            self._attr_icon = definition.icon

    def _refresh(self) -> None:
        try:
            self._attr_native_value = self._definition.value_fn(self._state)
        except (ValueError, TypeError, AttributeError, KeyError):
            self._attr_native_value = None


async def async_setup_sensors(
    hass: HomeAssistant,
    entry: ConfigEntry,
    state: PvState,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up all sensor entities."""
    async_add_entities(
        PvSensor(entry.entry_id, state, definition)
        for definition in SENSOR_DEFINITIONS
    )
