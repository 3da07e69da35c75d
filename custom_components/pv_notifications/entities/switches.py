"""Runtime mode toggles and the debug log switch."""

from __future__ import annotations

from typing import TYPE_CHECKING, Awaitable, Callable

from homeassistant.components.switch import SwitchEntity
from homeassistant.const import EntityCategory

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback
    from ..coordinator import PvNotificationsCoordinator

from ..pv_logging import get_logger
from .base import PvEntity, device_info


class ModeSwitch(PvEntity, SwitchEntity):
    """Runtime toggle over one notifier config flag.

    The flag reverts to the configured value when the entry reloads.
    """

    def __init__(
        self,
        entry_id: str,
        key: str,
        name: str,
        icon: str,
        read: Callable[[], bool],
        write: Callable[[bool], Awaitable[None]],
    ) -> None:
        super().__init__(entry_id, key, name)
        self._attr_icon = icon
        self._read = read
        self._write = write

    def _refresh(self) -> None:
        self._attr_is_on = self._read()

    async def async_turn_on(self, **kwargs) -> None:
        await self._write(True)

    async def async_turn_off(self, **kwargs) -> None:
        await self._write(False)


def _mode_switches(
    entry_id: str, coordinator: PvNotificationsCoordinator
) -> list[ModeSwitch]:
    config = coordinator.state.config
    return [
        ModeSwitch(
            entry_id,
            "night_mode",
            "Night Mode",
            "mdi:weather-night",
            lambda: config.night_mode_enabled,
            coordinator.set_night_mode,
        ),
        ModeSwitch(
            entry_id,
            "quiet_mode",
            "Quiet Mode",
            "mdi:bell-sleep",
            lambda: config.quiet_mode_enabled,
            coordinator.set_quiet_mode,
        ),
    ]


class DebugLoggingSwitch(SwitchEntity):
    """Mirror integration log records to a file under the config directory."""

    _attr_has_entity_name = True
    _attr_icon = "mdi:bug"
    _attr_entity_category = EntityCategory.DIAGNOSTIC

    def __init__(self, entry_id: str) -> None:
        self._logger = get_logger()
        self._attr_unique_id = f"{entry_id}_debug_logging"
        self._attr_name = "Debug Logging"
        self._attr_is_on = self._logger.file_logging_enabled
        self._attr_device_info = device_info(entry_id)

    async def _set(self, enabled: bool) -> None:
        await self.hass.async_add_executor_job(self._logger.set_file_logging, enabled)
        self._attr_is_on = enabled
        self.async_write_ha_state()

    async def async_turn_on(self, **kwargs) -> None:
        await self._set(True)

    async def async_turn_off(self, **kwargs) -> None:
        await self._set(False)

    async def async_will_remove_from_hass(self) -> None:
        """Close the log file when the entry unloads."""
        if self._logger.file_logging_enabled:
            await self.hass.async_add_executor_job(self._logger.shutdown)

    @property
    def extra_state_attributes(self) -> dict:
        return {"log_file": str(self._logger.log_file)}


async def async_setup_switches(
    hass: HomeAssistant,
    entry: ConfigEntry,
    coordinator: PvNotificationsCoordinator,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up switch entities."""
    async_add_entities(
        [*_mode_switches(entry.entry_id, coordinator), DebugLoggingSwitch(entry.entry_id)]
    )
