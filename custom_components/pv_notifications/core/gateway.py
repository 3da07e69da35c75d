"""Single point of access to Home Assistant.

Reads auxiliary telemetry (production, consumption, feed-in, grid power,
weather) and hands formatted text to the configured notify service. Domain
code never touches ``hass`` directly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.const import STATE_UNAVAILABLE, STATE_UNKNOWN

from ..exceptions import ConfigurationMissing, DeliveryFailure
from ..models import DeliveryResult
from ..pv_logging import get_logger
from .events import PvEvent, PvEventBus
from .state import (
    ROLE_CONSUMPTION_ENERGY,
    ROLE_FEED_IN_ENERGY,
    ROLE_GRID_POWER,
    ROLE_PRODUCTION_ENERGY,
    ROLE_WEATHER_TOMORROW,
    PeriodReadings,
    PvState,
)

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant


class Gateway:
    """Sensor reads and notification delivery."""

    def __init__(
        self,
        hass: HomeAssistant,
        state: PvState,
        events: PvEventBus,
    ) -> None:
        """Initialize the gateway.

        Args:
            hass: Home Assistant instance
            state: Integration state (entity ids, delivery settings)
            events: Event bus
        """
        self.hass = hass
        self.state = state
        self.events = events
        self._logger = get_logger()

    # ========== Sensor Reading ==========

    def get_sensor_value(self, role: str, default: float = 0.0) -> float:
        """Get the numeric value of an auxiliary sensor.

        Unconfigured, missing, unavailable or non-numeric sensors read as
        ``default``.
        """
        entity_id = self.state.sensors.get(role)
        if not entity_id:
            return default

        state = self.hass.states.get(entity_id)
        if state is None or state.state in (STATE_UNKNOWN, STATE_UNAVAILABLE):
            self._logger.debug("SENSOR_UNAVAILABLE", role=role, entity_id=entity_id)
            return default

        try:
            return float(state.state)
        except (ValueError, TypeError):
            self._logger.warning(
                "SENSOR_INVALID_VALUE",
                role=role,
                entity_id=entity_id,
                value=state.state,
            )
            return default

    def get_sensor_text(self, role: str) -> str:
        """Get the raw state string of an auxiliary sensor, or ''."""
        entity_id = self.state.sensors.get(role)
        if not entity_id:
            return ""

        state = self.hass.states.get(entity_id)
        if state is None or state.state in (STATE_UNKNOWN, STATE_UNAVAILABLE):
            return ""
        return str(state.state)

    def get_weather_tomorrow(self) -> str:
        """Free-text weather forecast for tomorrow, or ''."""
        return self.get_sensor_text(ROLE_WEATHER_TOMORROW)

    def read_period_readings(self) -> PeriodReadings:
        """Current values of the period energy sensors."""
        return PeriodReadings(
            production=self.get_sensor_value(ROLE_PRODUCTION_ENERGY),
            consumption=self.get_sensor_value(ROLE_CONSUMPTION_ENERGY),
            feed_in=self.get_sensor_value(ROLE_FEED_IN_ENERGY),
            grid_power=self.get_sensor_value(ROLE_GRID_POWER),
        )

    # ========== Delivery ==========

    def _resolve_service(self) -> tuple[str, str]:
        notify_service = self.state.notify_service
        if not notify_service:
            raise ConfigurationMissing("No notify service configured")
        if "." not in notify_service:
            raise ConfigurationMissing(f"Invalid notify service format: {notify_service}")
        domain, service = notify_service.split(".", 1)
        return domain, service

    async def _call_notify(self, message: str, recipients: list[str]) -> None:
        domain, service = self._resolve_service()

        service_data: dict = {"message": message}
        if recipients:
            service_data["target"] = recipients

        try:
            await self.hass.services.async_call(domain, service, service_data, blocking=True)
        except Exception as ex:  # noqa: BLE001 - any service error is a failed delivery
            raise DeliveryFailure(str(ex)) from ex

    async def deliver(
        self,
        message: str,
        recipients: list[str] | None = None,
    ) -> DeliveryResult:
        """Send text to the recipients through the notify service.

        Failures are logged and returned, never raised. No retries.

        Args:
            message: Text to send
            recipients: Targets; defaults to the configured recipients

        Returns:
            DeliveryResult
        """
        if recipients is None:
            recipients = self.state.recipients

        try:
            await self._call_notify(message, recipients)
        except ConfigurationMissing as ex:
            self._logger.warning("NOTIFY_NOT_CONFIGURED", reason=str(ex), message=message)
            return DeliveryResult.error(str(ex))
        except DeliveryFailure as ex:
            self._logger.error(
                "NOTIFICATION_FAILED",
                service=self.state.notify_service,
                error=str(ex),
            )
            await self.events.emit(PvEvent.NOTIFICATION_FAILED, error=str(ex))
            return DeliveryResult.error(str(ex))

        self._logger.info(
            "NOTIFICATION_SENT",
            service=self.state.notify_service,
            recipients=len(recipients),
            length=len(message),
        )
        return DeliveryResult.success()
