"""Internal event bus.

Components announce what happened (sample processed, cycle counted, rollover
performed, notification delivered) on the bus. Every event is logged, and
events that change published state are forwarded to the dispatcher signal
the entities listen on.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from homeassistant.helpers.dispatcher import async_dispatcher_send
from homeassistant.util import dt as dt_util

from ..const import SIGNAL_UPDATE
from ..pv_logging import get_logger

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant


class PvEvent(str, Enum):
    """Event types for the PV Notifications integration."""

    SAMPLE_RECEIVED = "pv.sample_received"
    SAMPLE_INVALID = "pv.sample_invalid"

    NOTIFICATION_REQUESTED = "pv.notification_requested"
    NOTIFICATION_SENT = "pv.notification_sent"
    NOTIFICATION_FAILED = "pv.notification_failed"

    CYCLE_RECORDED = "pv.cycle_recorded"
    DAILY_RESET = "pv.daily_reset"
    WEEKLY_ROLLOVER = "pv.weekly_rollover"
    MONTHLY_ROLLOVER = "pv.monthly_rollover"
    STATISTICS_RESET = "pv.statistics_reset"

    STATISTICS_SAVED = "pv.statistics_saved"
    PERSISTENCE_FAILED = "pv.persistence_failed"

    UI_UPDATE = "pv.ui_update"


# Events after which entities need to re-read state
_UI_EVENTS = {
    PvEvent.UI_UPDATE,
    PvEvent.SAMPLE_RECEIVED,
    PvEvent.CYCLE_RECORDED,
    PvEvent.DAILY_RESET,
    PvEvent.WEEKLY_ROLLOVER,
    PvEvent.MONTHLY_ROLLOVER,
    PvEvent.STATISTICS_RESET,
    PvEvent.NOTIFICATION_SENT,
    PvEvent.STATISTICS_SAVED,
    PvEvent.PERSISTENCE_FAILED,
}


@dataclass
class EventData:
    """Container for event data."""

    event: PvEvent
    timestamp: datetime
    data: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "event": self.event.value,
            "timestamp": self.timestamp.isoformat(),
            "data": self.data,
        }


EventHandler = Callable[[EventData], Awaitable[None]]


class PvEventBus:
    """Central event bus for the integration."""

    def __init__(self, hass: HomeAssistant) -> None:
        """Initialize the event bus.

        Args:
            hass: Home Assistant instance
        """
        self.hass = hass
        self._logger = get_logger()
        self._handlers: dict[PvEvent, list[EventHandler]] = {}

    async def emit(self, event: PvEvent, **data: Any) -> None:
        """Emit an event.

        Args:
            event: Event type to emit
            **data: Event data
        """
        event_data = EventData(event=event, timestamp=dt_util.now(), data=data)

        self._logger.debug(f"EVENT_{event.name}", **data)

        for handler in list(self._handlers.get(event, [])):
            try:
                await handler(event_data)
            except Exception as ex:  # noqa: BLE001 - one handler must not break the others
                self._logger.error(
                    "EVENT_HANDLER_ERROR",
                    event_type=event.name,
                    handler=getattr(handler, "__name__", repr(handler)),
                    error=str(ex),
                )

        if event in _UI_EVENTS:
            async_dispatcher_send(self.hass, SIGNAL_UPDATE)

    def on(self, event: PvEvent, handler: EventHandler) -> Callable[[], None]:
        """Register an event handler.

        Returns:
            Unsubscribe function
        """
        self._handlers.setdefault(event, []).append(handler)

        def unsubscribe() -> None:
            self.off(event, handler)

        return unsubscribe

    def off(self, event: PvEvent, handler: EventHandler) -> None:
        """Unregister an event handler."""
        if handler in self._handlers.get(event, []):
            self._handlers[event].remove(handler)

    async def emit_state_update(self) -> None:
        """Ask entities to refresh."""
        await self.emit(PvEvent.UI_UPDATE)
