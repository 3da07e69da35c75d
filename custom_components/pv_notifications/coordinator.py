"""PV Notifications Coordinator - thin orchestrator for all components.

It:
- Builds configuration and state from the config entry
- Subscribes to the SOC sensor and the minute tick
- Feeds samples to the ThresholdNotifier and ticks to the StatsAggregator
- Hands resulting requests to the Notifier

It does NOT contain any business logic.
"""

from __future__ import annotations

from datetime import datetime, time
from typing import TYPE_CHECKING, Any

from homeassistant.const import STATE_UNAVAILABLE, STATE_UNKNOWN
from homeassistant.core import ServiceCall
from homeassistant.helpers.event import (
    async_track_state_change_event,
    async_track_time_change,
)
from homeassistant.util import dt as dt_util

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import Event, HomeAssistant

from .const import (
    CONF_BATTERY_CAPACITY_WH,
    CONF_BATTERY_SOC_SENSOR,
    CONF_CONSUMPTION_ENERGY_SENSOR,
    CONF_CONSUMPTION_POWER_SENSOR,
    CONF_DAILY_RESET_TIME,
    CONF_DAILY_SUMMARY_ENABLED,
    CONF_DAILY_SUMMARY_TIME,
    CONF_FEED_IN_ENERGY_SENSOR,
    CONF_GRID_POWER_SENSOR,
    CONF_HIGH_CONSUMPTION_W,
    CONF_HIGH_PRODUCTION_W,
    CONF_IGNORE_EMPTY_AT_NIGHT,
    CONF_INTERMEDIATE_STEPS,
    CONF_MIN_INTERVAL_EMPTY,
    CONF_MIN_INTERVAL_FULL,
    CONF_MIN_INTERVAL_INTERMEDIATE,
    CONF_MONTHLY_DAY,
    CONF_MONTHLY_SUMMARY_ENABLED,
    CONF_MONTHLY_TIME,
    CONF_NIGHT_END,
    CONF_NIGHT_MODE_ENABLED,
    CONF_NIGHT_START,
    CONF_NIGHT_SUPPRESS_FULL,
    CONF_NIGHT_SUPPRESS_INTERMEDIATE,
    CONF_NOTIFY_SERVICE,
    CONF_PRODUCTION_ENERGY_SENSOR,
    CONF_PRODUCTION_POWER_SENSOR,
    CONF_QUIET_END,
    CONF_QUIET_MODE_ENABLED,
    CONF_QUIET_START,
    CONF_RECIPIENTS,
    CONF_THRESHOLD_EMPTY,
    CONF_THRESHOLD_FULL,
    CONF_THRESHOLD_RESET_EMPTY,
    CONF_THRESHOLD_RESET_FULL,
    CONF_WEATHER_TOMORROW_SENSOR,
    CONF_WEEKLY_SUMMARY_ENABLED,
    CONF_WEEKLY_TIME,
    CONF_WEEKLY_WEEKDAY,
    DEFAULT_BATTERY_CAPACITY_WH,
    DEFAULT_DAILY_RESET_TIME,
    DEFAULT_DAILY_SUMMARY_ENABLED,
    DEFAULT_DAILY_SUMMARY_TIME,
    DEFAULT_HIGH_CONSUMPTION_W,
    DEFAULT_HIGH_PRODUCTION_W,
    DEFAULT_IGNORE_EMPTY_AT_NIGHT,
    DEFAULT_INTERMEDIATE_STEPS,
    DEFAULT_MIN_INTERVAL_MINUTES,
    DEFAULT_MONTHLY_DAY,
    DEFAULT_MONTHLY_SUMMARY_ENABLED,
    DEFAULT_MONTHLY_TIME,
    DEFAULT_NIGHT_END,
    DEFAULT_NIGHT_MODE_ENABLED,
    DEFAULT_NIGHT_START,
    DEFAULT_NIGHT_SUPPRESS_FULL,
    DEFAULT_NIGHT_SUPPRESS_INTERMEDIATE,
    DEFAULT_QUIET_END,
    DEFAULT_QUIET_MODE_ENABLED,
    DEFAULT_QUIET_START,
    DEFAULT_THRESHOLD_EMPTY,
    DEFAULT_THRESHOLD_FULL,
    DEFAULT_THRESHOLD_RESET_EMPTY,
    DEFAULT_THRESHOLD_RESET_FULL,
    DEFAULT_WEEKLY_SUMMARY_ENABLED,
    DEFAULT_WEEKLY_TIME,
    DEFAULT_WEEKLY_WEEKDAY,
    DOMAIN,
    SERVICE_RESET_STATISTICS,
    SERVICE_SEND_DAILY_SUMMARY,
    SERVICE_SEND_TEST_NOTIFICATION,
)
from .core.events import EventData, PvEvent, PvEventBus
from .core.gateway import Gateway
from .core.state import (
    ROLE_CONSUMPTION_ENERGY,
    ROLE_CONSUMPTION_POWER,
    ROLE_FEED_IN_ENERGY,
    ROLE_GRID_POWER,
    ROLE_PRODUCTION_ENERGY,
    ROLE_PRODUCTION_POWER,
    ROLE_WEATHER_TOMORROW,
    NotifierConfig,
    PvState,
    ScheduleConfig,
)
from .core.time_window import TimeWindow
from .domain.stats_aggregator import (
    ACTION_DAILY_RESET,
    ACTION_MONTHLY_ROLLOVER,
    ACTION_WEEKLY_ROLLOVER,
    StatsAggregator,
)
from .domain.threshold_notifier import ThresholdNotifier, parse_soc
from .exceptions import InvalidSample
from .infra.notifier import Notifier
from .infra.stats_store import StatsStore
from .models import DeliveryResult, NotificationKind, NotificationRequest
from .pv_logging import get_logger

_ROLE_KEYS = {
    ROLE_PRODUCTION_POWER: CONF_PRODUCTION_POWER_SENSOR,
    ROLE_PRODUCTION_ENERGY: CONF_PRODUCTION_ENERGY_SENSOR,
    ROLE_CONSUMPTION_POWER: CONF_CONSUMPTION_POWER_SENSOR,
    ROLE_CONSUMPTION_ENERGY: CONF_CONSUMPTION_ENERGY_SENSOR,
    ROLE_FEED_IN_ENERGY: CONF_FEED_IN_ENERGY_SENSOR,
    ROLE_GRID_POWER: CONF_GRID_POWER_SENSOR,
    ROLE_WEATHER_TOMORROW: CONF_WEATHER_TOMORROW_SENSOR,
}

SERVICES = (
    SERVICE_SEND_TEST_NOTIFICATION,
    SERVICE_SEND_DAILY_SUMMARY,
    SERVICE_RESET_STATISTICS,
)


def parse_steps(value: Any) -> tuple[int, ...]:
    """Parse "20,40,60,80" (or a list) into a sorted step tuple.

    Raises:
        ValueError: an entry is not an integer
    """
    if isinstance(value, str):
        parts = [part.strip() for part in value.split(",")]
    else:
        parts = [str(part).strip() for part in value or []]
    return tuple(sorted({int(part) for part in parts if part}))


def parse_recipients(value: Any) -> list[str]:
    """Parse a comma separated recipient list."""
    if isinstance(value, str):
        parts = value.split(",")
    else:
        parts = value or []
    return [str(part).strip() for part in parts if str(part).strip()]


def parse_clock(value: Any, default: str) -> time:
    """Parse "HH:MM[:SS]"; falls back to the default on bad input."""
    if isinstance(value, time):
        return value
    parsed = dt_util.parse_time(str(value)) if value else None
    if parsed is None:
        parsed = dt_util.parse_time(default)
    return parsed


class PvNotificationsCoordinator:
    """Thin orchestrator for PV Notifications."""

    def __init__(self, hass: HomeAssistant, entry: ConfigEntry) -> None:
        """Initialize the coordinator."""
        self.hass = hass
        self.entry = entry
        self._listeners: list = []
        self._logger = get_logger()

        self._logger.info("COORDINATOR_INIT_START", entry_id=entry.entry_id)

        self.state = self._create_state_from_config()

        self.events = PvEventBus(hass)
        self.gateway = Gateway(hass, self.state, self.events)
        self.notifier = Notifier(self.state, self.gateway)

        self.store = StatsStore(hass, entry.entry_id, self.events)
        self.aggregator = StatsAggregator(self.state.schedule, self.state.stats, self.store)
        self.threshold_notifier = ThresholdNotifier(
            self.state.config, self.state.notifier, self.aggregator
        )

        self._logger.info("COORDINATOR_INIT_COMPLETE")

    def _create_state_from_config(self) -> PvState:
        """Create state object from config entry."""
        data = self.entry.data
        options = self.entry.options

        def get_config(key, default):
            return options.get(key, data.get(key, default))

        try:
            steps = parse_steps(get_config(CONF_INTERMEDIATE_STEPS, DEFAULT_INTERMEDIATE_STEPS))
        except ValueError:
            self._logger.warning("INVALID_INTERMEDIATE_STEPS", value=get_config(CONF_INTERMEDIATE_STEPS, ""))
            steps = parse_steps(DEFAULT_INTERMEDIATE_STEPS)

        config = NotifierConfig(
            threshold_full=float(get_config(CONF_THRESHOLD_FULL, DEFAULT_THRESHOLD_FULL)),
            threshold_empty=float(get_config(CONF_THRESHOLD_EMPTY, DEFAULT_THRESHOLD_EMPTY)),
            threshold_reset_full=float(
                get_config(CONF_THRESHOLD_RESET_FULL, DEFAULT_THRESHOLD_RESET_FULL)
            ),
            threshold_reset_empty=float(
                get_config(CONF_THRESHOLD_RESET_EMPTY, DEFAULT_THRESHOLD_RESET_EMPTY)
            ),
            intermediate_steps=steps,
            min_interval_minutes={
                NotificationKind.FULL: float(
                    get_config(CONF_MIN_INTERVAL_FULL, DEFAULT_MIN_INTERVAL_MINUTES)
                ),
                NotificationKind.EMPTY: float(
                    get_config(CONF_MIN_INTERVAL_EMPTY, DEFAULT_MIN_INTERVAL_MINUTES)
                ),
                NotificationKind.INTERMEDIATE: float(
                    get_config(CONF_MIN_INTERVAL_INTERMEDIATE, DEFAULT_MIN_INTERVAL_MINUTES)
                ),
            },
            night_mode_enabled=get_config(CONF_NIGHT_MODE_ENABLED, DEFAULT_NIGHT_MODE_ENABLED),
            night_window=TimeWindow(
                parse_clock(get_config(CONF_NIGHT_START, DEFAULT_NIGHT_START), DEFAULT_NIGHT_START),
                parse_clock(get_config(CONF_NIGHT_END, DEFAULT_NIGHT_END), DEFAULT_NIGHT_END),
            ),
            night_suppress_full=get_config(CONF_NIGHT_SUPPRESS_FULL, DEFAULT_NIGHT_SUPPRESS_FULL),
            night_suppress_intermediate=get_config(
                CONF_NIGHT_SUPPRESS_INTERMEDIATE, DEFAULT_NIGHT_SUPPRESS_INTERMEDIATE
            ),
            ignore_empty_at_night=get_config(
                CONF_IGNORE_EMPTY_AT_NIGHT, DEFAULT_IGNORE_EMPTY_AT_NIGHT
            ),
            quiet_mode_enabled=get_config(CONF_QUIET_MODE_ENABLED, DEFAULT_QUIET_MODE_ENABLED),
            quiet_window=TimeWindow(
                parse_clock(get_config(CONF_QUIET_START, DEFAULT_QUIET_START), DEFAULT_QUIET_START),
                parse_clock(get_config(CONF_QUIET_END, DEFAULT_QUIET_END), DEFAULT_QUIET_END),
            ),
            battery_capacity_wh=float(
                get_config(CONF_BATTERY_CAPACITY_WH, DEFAULT_BATTERY_CAPACITY_WH)
            ),
            high_production_w=float(get_config(CONF_HIGH_PRODUCTION_W, DEFAULT_HIGH_PRODUCTION_W)),
            high_consumption_w=float(
                get_config(CONF_HIGH_CONSUMPTION_W, DEFAULT_HIGH_CONSUMPTION_W)
            ),
        )

        schedule = ScheduleConfig(
            daily_summary_enabled=get_config(
                CONF_DAILY_SUMMARY_ENABLED, DEFAULT_DAILY_SUMMARY_ENABLED
            ),
            daily_summary_time=parse_clock(
                get_config(CONF_DAILY_SUMMARY_TIME, DEFAULT_DAILY_SUMMARY_TIME),
                DEFAULT_DAILY_SUMMARY_TIME,
            ),
            daily_reset_time=parse_clock(
                get_config(CONF_DAILY_RESET_TIME, DEFAULT_DAILY_RESET_TIME),
                DEFAULT_DAILY_RESET_TIME,
            ),
            weekly_summary_enabled=get_config(
                CONF_WEEKLY_SUMMARY_ENABLED, DEFAULT_WEEKLY_SUMMARY_ENABLED
            ),
            weekly_weekday=int(get_config(CONF_WEEKLY_WEEKDAY, DEFAULT_WEEKLY_WEEKDAY)),
            weekly_time=parse_clock(
                get_config(CONF_WEEKLY_TIME, DEFAULT_WEEKLY_TIME), DEFAULT_WEEKLY_TIME
            ),
            monthly_summary_enabled=get_config(
                CONF_MONTHLY_SUMMARY_ENABLED, DEFAULT_MONTHLY_SUMMARY_ENABLED
            ),
            monthly_day=int(get_config(CONF_MONTHLY_DAY, DEFAULT_MONTHLY_DAY)),
            monthly_time=parse_clock(
                get_config(CONF_MONTHLY_TIME, DEFAULT_MONTHLY_TIME), DEFAULT_MONTHLY_TIME
            ),
        )

        return PvState(
            config=config,
            schedule=schedule,
            soc_sensor_entity=data.get(CONF_BATTERY_SOC_SENSOR, ""),
            sensors={
                role: entity_id
                for role, key in _ROLE_KEYS.items()
                if (entity_id := get_config(key, ""))
            },
            notify_service=get_config(CONF_NOTIFY_SERVICE, ""),
            recipients=parse_recipients(get_config(CONF_RECIPIENTS, "")),
        )

    async def async_init(self) -> None:
        """Initialize async components."""
        self._logger.info("COORDINATOR_ASYNC_INIT_START")

        self._subscribe_events()
        await self._load_statistics()
        self._seed_current_soc()
        self._setup_soc_tracking()
        self._setup_tick()
        self._register_services()

        self._logger.info("COORDINATOR_ASYNC_INIT_COMPLETE")

    async def _load_statistics(self) -> None:
        """Load persisted statistics and discard stale counters."""
        stats = await self.store.async_load()
        self.state.stats = stats
        self.aggregator.state = stats

        if self.aggregator.apply_staleness(dt_util.now()):
            await self.aggregator.async_flush()

    def _seed_current_soc(self) -> None:
        """Take the SOC the sensor reports now; no notification is decided."""
        if not self.state.soc_sensor_entity:
            return
        current = self.hass.states.get(self.state.soc_sensor_entity)
        if current is None or current.state in (STATE_UNKNOWN, STATE_UNAVAILABLE):
            return
        try:
            soc = parse_soc(current.state)
        except InvalidSample as ex:
            self._logger.warning("SAMPLE_INVALID", value=ex.value)
            return

        self.aggregator.track_soc(soc)
        self.state.stats.current_energy_kwh = self.state.config.energy_kwh(soc)
        self._logger.debug("CURRENT_SOC_SEEDED", soc=soc)

    def _subscribe_events(self) -> None:
        """Track storage health from the store's save outcomes."""
        self._listeners.append(
            self.events.on(PvEvent.PERSISTENCE_FAILED, self._on_persistence_failed)
        )
        self._listeners.append(
            self.events.on(PvEvent.STATISTICS_SAVED, self._on_statistics_saved)
        )

    def _setup_soc_tracking(self) -> None:
        """Subscribe to the SOC sensor."""
        if not self.state.soc_sensor_entity:
            self._logger.warning("SOC_SENSOR_NOT_CONFIGURED")
            return

        self._listeners.append(
            async_track_state_change_event(
                self.hass,
                [self.state.soc_sensor_entity],
                self._handle_soc_change,
            )
        )
        self._logger.debug("SOC_TRACKING_ENABLED", sensor=self.state.soc_sensor_entity)

    def _setup_tick(self) -> None:
        """Run the schedule every minute."""
        self._listeners.append(
            async_track_time_change(self.hass, self._handle_tick, second=0)
        )
        self._logger.debug("SCHEDULED_EVENTS_REGISTERED")

    def _register_services(self) -> None:
        """Register HA services."""
        self.hass.services.async_register(
            DOMAIN, SERVICE_SEND_TEST_NOTIFICATION, self._service_send_test_notification
        )
        self.hass.services.async_register(
            DOMAIN, SERVICE_SEND_DAILY_SUMMARY, self._service_send_daily_summary
        )
        self.hass.services.async_register(
            DOMAIN, SERVICE_RESET_STATISTICS, self._service_reset_statistics
        )
        self._logger.debug("SERVICES_REGISTERED")

    async def async_shutdown(self) -> None:
        """Unload the coordinator and persist statistics once."""
        for remove in self._listeners:
            remove()
        self._listeners.clear()

        for service in SERVICES:
            self.hass.services.async_remove(DOMAIN, service)

        await self.store.async_save(self.state.stats)

        self._logger.info("COORDINATOR_UNLOADED", **self.state.notifier.to_dict())

    # ========== Event Handlers ==========

    async def _on_persistence_failed(self, event_data: EventData) -> None:
        self.state.last_persistence_error = event_data.data.get("error", "unknown")

    async def _on_statistics_saved(self, event_data: EventData) -> None:
        if self.state.last_persistence_error:
            self._logger.info("PERSISTENCE_RECOVERED")
        self.state.last_persistence_error = ""

    async def _handle_soc_change(self, event: Event) -> None:
        """Handle a SOC sensor state change."""
        new_state = event.data.get("new_state")
        if new_state is None or new_state.state in (STATE_UNKNOWN, STATE_UNAVAILABLE):
            return
        await self.async_process_sample(new_state.state, dt_util.now())

    async def async_process_sample(self, value: Any, now: datetime) -> DeliveryResult | None:
        """Run one SOC sample through the notifier and deliver the result.

        Returns:
            Delivery result, or None when nothing was sent
        """
        try:
            soc = parse_soc(value)
        except InvalidSample as ex:
            self._logger.warning("SAMPLE_INVALID", value=ex.value)
            await self.events.emit(PvEvent.SAMPLE_INVALID, value=str(ex.value))
            return None

        request = self.threshold_notifier.on_sample(soc, now)
        self.state.stats.current_energy_kwh = self.state.config.energy_kwh(soc)

        # Cycle increments are durable before the handler returns
        await self.aggregator.async_flush()

        if request is not None and request.kind in (NotificationKind.FULL, NotificationKind.EMPTY):
            await self.events.emit(PvEvent.CYCLE_RECORDED, kind=request.kind.value)

        await self.events.emit(PvEvent.SAMPLE_RECEIVED, soc=soc)

        if request is None:
            return None
        return await self._deliver(request)

    async def _handle_tick(self, now: datetime) -> None:
        """Run the statistics schedule."""
        await self.async_process_tick(now)

    async def async_process_tick(self, now: datetime) -> list[DeliveryResult]:
        """Run every due schedule entry and deliver what it produced."""
        readings = self.gateway.read_period_readings()
        result = await self.aggregator.on_tick(now, readings)

        for action in result.performed:
            self._logger.info("SCHEDULE_ACTION", action=action, time=now.strftime("%H:%M"))
        if ACTION_DAILY_RESET in result.performed:
            await self.events.emit(PvEvent.DAILY_RESET, date=now.date().isoformat())
        if ACTION_WEEKLY_ROLLOVER in result.performed:
            await self.events.emit(PvEvent.WEEKLY_ROLLOVER, **self.state.stats.last_week.to_dict())
        if ACTION_MONTHLY_ROLLOVER in result.performed:
            await self.events.emit(PvEvent.MONTHLY_ROLLOVER, **self.state.stats.last_month.to_dict())

        # Keeps the night/quiet window sensors current
        await self.events.emit_state_update()

        return [await self._deliver(request) for request in result.requests]

    async def _deliver(self, request: NotificationRequest) -> DeliveryResult:
        """Format and deliver a request."""
        await self.events.emit(
            PvEvent.NOTIFICATION_REQUESTED,
            kind=request.kind.value,
            priority=request.priority.value,
        )
        result = await self.notifier.send(request)
        if result.ok:
            await self.events.emit(PvEvent.NOTIFICATION_SENT, kind=request.kind.value)
        return result

    # ========== Manual Triggers ==========

    async def send_test_notification(self) -> DeliveryResult:
        """Send a test message."""
        self._logger.info("TEST_NOTIFICATION_REQUESTED")
        return await self._deliver(
            NotificationRequest(kind=NotificationKind.TEST, created_at=dt_util.now())
        )

    async def send_daily_summary(self) -> DeliveryResult:
        """Send the daily summary now, independent of its schedule."""
        self._logger.info("DAILY_SUMMARY_REQUESTED")
        return await self._deliver(self.aggregator.build_daily_summary(dt_util.now()))

    async def reset_statistics(self) -> None:
        """Zero all running statistics counters."""
        await self.aggregator.reset_all()
        await self.events.emit(PvEvent.STATISTICS_RESET)

    async def set_night_mode(self, enabled: bool) -> None:
        """Runtime toggle of night mode (until the next reload)."""
        self.state.config.night_mode_enabled = enabled
        self._logger.info("NIGHT_MODE_SET", enabled=enabled)
        await self.events.emit_state_update()

    async def set_quiet_mode(self, enabled: bool) -> None:
        """Runtime toggle of quiet mode (until the next reload)."""
        self.state.config.quiet_mode_enabled = enabled
        self._logger.info("QUIET_MODE_SET", enabled=enabled)
        await self.events.emit_state_update()

    async def _service_send_test_notification(self, call: ServiceCall) -> None:
        await self.send_test_notification()

    async def _service_send_daily_summary(self, call: ServiceCall) -> None:
        await self.send_daily_summary()

    async def _service_reset_statistics(self, call: ServiceCall) -> None:
        await self.reset_statistics()
