"""Configuration and state containers.

The notifier and the aggregator each own exactly one state object
(NotifierState and StatsState). PvState bundles them together with the
read-only configuration so entities have a single place to read from.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any

from ..const import (
    DEFAULT_BATTERY_CAPACITY_WH,
    DEFAULT_HIGH_CONSUMPTION_W,
    DEFAULT_HIGH_PRODUCTION_W,
    DEFAULT_MIN_INTERVAL_MINUTES,
    DEFAULT_MONTHLY_DAY,
    DEFAULT_THRESHOLD_EMPTY,
    DEFAULT_THRESHOLD_FULL,
    DEFAULT_THRESHOLD_RESET_EMPTY,
    DEFAULT_THRESHOLD_RESET_FULL,
    DEFAULT_WEEKLY_WEEKDAY,
)
from ..models import NotificationKind
from .time_window import TimeWindow

SOC_MIN = 0.0
SOC_MAX = 100.0

ROLE_PRODUCTION_POWER = "production_power"
ROLE_PRODUCTION_ENERGY = "production_energy"
ROLE_CONSUMPTION_POWER = "consumption_power"
ROLE_CONSUMPTION_ENERGY = "consumption_energy"
ROLE_FEED_IN_ENERGY = "feed_in_energy"
ROLE_GRID_POWER = "grid_power"
ROLE_WEATHER_TOMORROW = "weather_tomorrow"

SENSOR_ROLES = (
    ROLE_PRODUCTION_POWER,
    ROLE_PRODUCTION_ENERGY,
    ROLE_CONSUMPTION_POWER,
    ROLE_CONSUMPTION_ENERGY,
    ROLE_FEED_IN_ENERGY,
    ROLE_GRID_POWER,
    ROLE_WEATHER_TOMORROW,
)


@dataclass
class NotifierConfig:
    """Threshold and suppression configuration (read-only)."""

    threshold_full: float = DEFAULT_THRESHOLD_FULL
    threshold_empty: float = DEFAULT_THRESHOLD_EMPTY
    threshold_reset_full: float = DEFAULT_THRESHOLD_RESET_FULL
    threshold_reset_empty: float = DEFAULT_THRESHOLD_RESET_EMPTY
    intermediate_steps: tuple[int, ...] = (20, 40, 60, 80)

    # Minutes, keyed by full / empty / intermediate
    min_interval_minutes: dict[NotificationKind, float] = field(default_factory=dict)

    night_mode_enabled: bool = True
    night_window: TimeWindow = field(default_factory=lambda: TimeWindow(time(0, 0), time(8, 0)))
    night_suppress_full: bool = True
    night_suppress_intermediate: bool = True
    ignore_empty_at_night: bool = True

    quiet_mode_enabled: bool = False
    quiet_window: TimeWindow = field(default_factory=lambda: TimeWindow(time(22, 0), time(7, 0)))

    battery_capacity_wh: float = DEFAULT_BATTERY_CAPACITY_WH
    high_production_w: float = DEFAULT_HIGH_PRODUCTION_W
    high_consumption_w: float = DEFAULT_HIGH_CONSUMPTION_W

    def min_interval(self, kind: NotificationKind) -> timedelta:
        """Minimum spacing between two notifications of a kind."""
        minutes = self.min_interval_minutes.get(kind) or DEFAULT_MIN_INTERVAL_MINUTES
        return timedelta(minutes=minutes)

    def energy_kwh(self, soc: float) -> float:
        """Stored energy for a SOC value, rounded to 0.1 kWh."""
        return round(soc / 100.0 * self.battery_capacity_wh / 1000.0, 1)


@dataclass
class ScheduleConfig:
    """When summaries are sent and counters roll over (read-only)."""

    daily_summary_enabled: bool = True
    daily_summary_time: time = time(20, 0)
    daily_reset_time: time = time(22, 0)

    weekly_summary_enabled: bool = True
    weekly_weekday: int = DEFAULT_WEEKLY_WEEKDAY  # Monday == 0
    weekly_time: time = time(20, 0)

    monthly_summary_enabled: bool = False
    monthly_day: int = DEFAULT_MONTHLY_DAY  # 0 == last day of month
    monthly_time: time = time(20, 0)


@dataclass
class NotifierState:
    """Hysteresis and throttling state of the threshold notifier."""

    full_flag: bool = False
    empty_flag: bool = False
    intermediate_notified: set[int] = field(default_factory=set)
    last_notification_at: dict[NotificationKind, datetime] = field(default_factory=dict)
    previous_soc: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "full_flag": self.full_flag,
            "empty_flag": self.empty_flag,
            "intermediate_notified": sorted(self.intermediate_notified),
            "previous_soc": self.previous_soc,
        }


@dataclass
class PeriodReadings:
    """Energy readings supplied from outside at rollover time."""

    production: float = 0.0
    consumption: float = 0.0
    feed_in: float = 0.0
    grid_power: float = 0.0


@dataclass
class PeriodSnapshot:
    """Frozen totals of a finished week or month."""

    production: float = 0.0
    consumption: float = 0.0
    feed_in: float = 0.0
    grid_power: float = 0.0
    full_cycles: int = 0
    empty_cycles: int = 0

    @classmethod
    def capture(
        cls,
        readings: PeriodReadings,
        full_cycles: int,
        empty_cycles: int,
    ) -> PeriodSnapshot:
        """Build a snapshot from readings and the running cycle counters."""
        return cls(
            production=readings.production,
            consumption=readings.consumption,
            feed_in=readings.feed_in,
            grid_power=readings.grid_power,
            full_cycles=full_cycles,
            empty_cycles=empty_cycles,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "production": self.production,
            "consumption": self.consumption,
            "feed_in": self.feed_in,
            "grid_power": self.grid_power,
            "full_cycles": self.full_cycles,
            "empty_cycles": self.empty_cycles,
        }


# Persisted statistic fields and their key below "statistics."
_COUNTER_KEYS = {
    "full_cycles_today": "full_cycles_today",
    "empty_cycles_today": "empty_cycles_today",
    "max_soc_today": "max_soc_today",
    "min_soc_today": "min_soc_today",
    "full_cycles_week": "full_cycles_week",
    "empty_cycles_week": "empty_cycles_week",
    "full_cycles_month": "full_cycles_month",
    "empty_cycles_month": "empty_cycles_month",
}
_MARKER_KEYS = ("last_daily_reset", "last_weekly_reset", "last_monthly_reset")
_SNAPSHOT_KEYS = ("last_week", "last_month")


def _parse_date(value: Any) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        return None


@dataclass
class StatsState:
    """Running counters, period snapshots and rollover markers."""

    full_cycles_today: int = 0
    empty_cycles_today: int = 0
    max_soc_today: float = SOC_MIN
    min_soc_today: float = SOC_MAX
    full_cycles_week: int = 0
    empty_cycles_week: int = 0
    full_cycles_month: int = 0
    empty_cycles_month: int = 0

    last_week: PeriodSnapshot = field(default_factory=PeriodSnapshot)
    last_month: PeriodSnapshot = field(default_factory=PeriodSnapshot)

    last_daily_reset: date | None = None
    last_weekly_reset: date | None = None
    last_monthly_reset: date | None = None

    # Published only, never persisted
    current_soc: float | None = None
    current_energy_kwh: float | None = None

    def reset_daily(self) -> None:
        """Reset today's counters to their defaults."""
        self.full_cycles_today = 0
        self.empty_cycles_today = 0
        self.max_soc_today = SOC_MIN
        self.min_soc_today = SOC_MAX

    def reset_weekly(self) -> None:
        self.full_cycles_week = 0
        self.empty_cycles_week = 0

    def reset_monthly(self) -> None:
        self.full_cycles_month = 0
        self.empty_cycles_month = 0

    def to_store(self) -> dict[str, Any]:
        """Flatten into hierarchical storage keys."""
        data: dict[str, Any] = {
            f"statistics.{key}": getattr(self, attr)
            for attr, key in _COUNTER_KEYS.items()
        }
        for attr in _MARKER_KEYS:
            marker = getattr(self, attr)
            data[f"statistics.{attr}"] = marker.isoformat() if marker else None
        for attr in _SNAPSHOT_KEYS:
            for key, value in getattr(self, attr).to_dict().items():
                data[f"statistics.{attr}.{key}"] = value
        return data

    @classmethod
    def from_store(cls, data: dict[str, Any]) -> StatsState:
        """Rebuild from hierarchical storage keys; absent keys use defaults."""
        state = cls()
        for attr, key in _COUNTER_KEYS.items():
            value = data.get(f"statistics.{key}")
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                setattr(state, attr, type(getattr(state, attr))(value))
        for attr in _MARKER_KEYS:
            setattr(state, attr, _parse_date(data.get(f"statistics.{attr}")))
        for attr in _SNAPSHOT_KEYS:
            snapshot = PeriodSnapshot()
            for key, default in snapshot.to_dict().items():
                value = data.get(f"statistics.{attr}.{key}")
                if isinstance(value, (int, float)) and not isinstance(value, bool):
                    setattr(snapshot, key, type(default)(value))
            setattr(state, attr, snapshot)
        return state


@dataclass
class PvState:
    """Everything the entities read, in one place."""

    config: NotifierConfig = field(default_factory=NotifierConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    notifier: NotifierState = field(default_factory=NotifierState)
    stats: StatsState = field(default_factory=StatsState)

    soc_sensor_entity: str = ""
    # Auxiliary telemetry entity ids keyed by role (see SENSOR_ROLES)
    sensors: dict[str, str] = field(default_factory=dict)
    notify_service: str = ""
    recipients: list[str] = field(default_factory=list)

    last_notification_text: str = ""
    last_notification_at: datetime | None = None
    last_delivery_error: str = ""
    last_persistence_error: str = ""
