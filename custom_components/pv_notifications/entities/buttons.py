"""Buttons for on-demand notifications and statistics reset."""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.components.button import ButtonEntity
from homeassistant.const import EntityCategory

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback
    from ..coordinator import PvNotificationsCoordinator

from ..pv_logging import get_logger
from .base import device_info


class PvButton(ButtonEntity):
    """Base button delegating to the coordinator."""

    _attr_has_entity_name = True

    def __init__(
        self,
        entry_id: str,
        coordinator: PvNotificationsCoordinator,
        key: str,
        name: str,
    ) -> None:
        self._coordinator = coordinator
        self._logger = get_logger()
        self._attr_unique_id = f"{entry_id}_{key}"
        self._attr_name = name
        self._attr_device_info = device_info(entry_id)


class SendTestNotificationButton(PvButton):
    """Button to send a test message."""

    _attr_icon = "mdi:message-alert-outline"
    _attr_entity_category = EntityCategory.DIAGNOSTIC

    def __init__(self, entry_id: str, coordinator: PvNotificationsCoordinator) -> None:
        super().__init__(entry_id, coordinator, "send_test_notification", "Send Test Notification")

    async def async_press(self) -> None:
        """Handle button press."""
        self._logger.info("TEST_BUTTON_PRESSED")
        await self._coordinator.send_test_notification()


class SendDailySummaryButton(PvButton):
    """Button to send today's summary now."""

    _attr_icon = "mdi:chart-box-outline"

    def __init__(self, entry_id: str, coordinator: PvNotificationsCoordinator) -> None:
        super().__init__(entry_id, coordinator, "send_daily_summary", "Send Daily Summary")

    async def async_press(self) -> None:
        """Handle button press."""
        self._logger.info("DAILY_SUMMARY_BUTTON_PRESSED")
        await self._coordinator.send_daily_summary()


class ResetStatisticsButton(PvButton):
    """Button to zero the running statistics."""

    _attr_icon = "mdi:restart"
    _attr_entity_category = EntityCategory.CONFIG

    def __init__(self, entry_id: str, coordinator: PvNotificationsCoordinator) -> None:
        super().__init__(entry_id, coordinator, "reset_statistics", "Reset Statistics")

    async def async_press(self) -> None:
        """Handle button press."""
        self._logger.info("RESET_STATISTICS_BUTTON_PRESSED")
        await self._coordinator.reset_statistics()


async def async_setup_buttons(
    hass: HomeAssistant,
    entry: ConfigEntry,
    coordinator: PvNotificationsCoordinator,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up button entities."""
    async_add_entities([
        SendTestNotificationButton(entry.entry_id, coordinator),
        SendDailySummaryButton(entry.entry_id, coordinator),
        ResetStatisticsButton(entry.entry_id, coordinator),
    ])
