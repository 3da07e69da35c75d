"""Errors raised inside the integration.

None of them is fatal: each one is caught by the component that detected it,
logged, and monitoring continues.
"""

from __future__ import annotations

from homeassistant.exceptions import HomeAssistantError


class PvNotificationsError(HomeAssistantError):
    """Base error for the integration."""


class InvalidSample(PvNotificationsError):
    """SOC reading is missing, non-numeric or not finite."""

    def __init__(self, value: object) -> None:
        super().__init__(f"Invalid SOC value: {value!r}")
        self.value = value


class PersistenceWriteFailure(PvNotificationsError):
    """Statistics could not be written to storage."""


class DeliveryFailure(PvNotificationsError):
    """Notification service rejected or failed the message."""


class ConfigurationMissing(PvNotificationsError):
    """Delivery is not possible because configuration is incomplete."""
