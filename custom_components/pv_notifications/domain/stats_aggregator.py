"""Daily, weekly and monthly battery statistics.

Counts full/empty cycles, tracks today's min/max SOC and rolls counters over
at the configured period boundaries. The minute tick evaluates a fixed list
of schedule entries; each entry is a predicate on the wall clock plus an
action. A tick that never arrives (stall, restart) skips its trigger; missed
schedules are never replayed.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import TYPE_CHECKING, Awaitable, Callable

from ..core.state import (
    PeriodReadings,
    PeriodSnapshot,
    ScheduleConfig,
    StatsState,
)
from ..models import NotificationKind, NotificationRequest
from ..pv_logging import get_logger

if TYPE_CHECKING:
    from ..infra.stats_store import StatsStore

ACTION_DAILY_SUMMARY = "daily_summary"
ACTION_DAILY_RESET = "daily_reset"
ACTION_WEEKLY_ROLLOVER = "weekly_rollover"
ACTION_MONTHLY_ROLLOVER = "monthly_rollover"


def matches_time(now: datetime, at: time) -> bool:
    """Hour and minute equality."""
    return now.hour == at.hour and now.minute == at.minute


def monthly_reset_day(year: int, month: int, configured_day: int) -> int:
    """Day of month the monthly rollover runs on.

    0 means the last day; days beyond the end of a short month fall back to
    its last day.
    """
    last_day = calendar.monthrange(year, month)[1]
    if configured_day <= 0:
        return last_day
    return min(configured_day, last_day)


@dataclass
class ScheduleEntry:
    """A wall-clock predicate and the action it triggers."""

    name: str
    predicate: Callable[[datetime], bool]
    action: Callable[[datetime, PeriodReadings], Awaitable[NotificationRequest | None]]


@dataclass
class TickResult:
    """What a tick did."""

    requests: list[NotificationRequest] = field(default_factory=list)
    performed: list[str] = field(default_factory=list)


class StatsAggregator:
    """Running statistics with period rollover."""

    def __init__(
        self,
        schedule: ScheduleConfig,
        state: StatsState | None = None,
        store: StatsStore | None = None,
    ) -> None:
        """Initialize the aggregator.

        Args:
            schedule: Summary and rollover times
            state: Statistics (owned by this aggregator)
            store: Persistence; None keeps statistics in memory only
        """
        self.schedule = schedule
        self.state = state if state is not None else StatsState()
        self._store = store
        self._dirty = False
        self._logger = get_logger()
        self.entries = self._build_schedule()

    # ========== Sample side ==========

    def track_soc(self, soc: float) -> None:
        """Update today's min/max and the current SOC."""
        state = self.state
        state.current_soc = soc
        if soc > state.max_soc_today:
            state.max_soc_today = soc
        if soc < state.min_soc_today:
            state.min_soc_today = soc

    def record_cycle(self, kind: NotificationKind) -> None:
        """Count a completed full or empty cycle.

        The change is durable: it is written on the next ``async_flush``,
        which the caller awaits before its handler returns.
        """
        state = self.state
        if kind == NotificationKind.FULL:
            state.full_cycles_today += 1
            state.full_cycles_week += 1
            state.full_cycles_month += 1
        elif kind == NotificationKind.EMPTY:
            state.empty_cycles_today += 1
            state.empty_cycles_week += 1
            state.empty_cycles_month += 1
        else:
            raise ValueError(f"Not a cycle kind: {kind}")

        self._dirty = True
        self._logger.info(
            "CYCLE_RECORDED",
            kind=kind.value,
            full_today=state.full_cycles_today,
            empty_today=state.empty_cycles_today,
        )

    # ========== Persistence ==========

    @property
    def has_pending_changes(self) -> bool:
        """Durable changes not yet written."""
        return self._dirty

    async def async_flush(self) -> bool:
        """Write pending durable changes.

        Returns:
            False if the write failed; the changes stay pending
        """
        if not self._dirty:
            return True
        self._dirty = False
        if self._store is None:
            return True

        ok = await self._store.async_save(self.state)
        if not ok:
            self._dirty = True
        return ok

    async def _persist(self) -> None:
        self._dirty = True
        await self.async_flush()

    # ========== Schedule ==========

    def _build_schedule(self) -> list[ScheduleEntry]:
        # Summary before reset so a shared minute reports the old counters
        return [
            ScheduleEntry(ACTION_DAILY_SUMMARY, self._is_daily_summary_due, self._send_daily_summary),
            ScheduleEntry(ACTION_DAILY_RESET, self._is_daily_reset_due, self._reset_daily),
            ScheduleEntry(ACTION_WEEKLY_ROLLOVER, self._is_weekly_rollover_due, self._rollover_weekly),
            ScheduleEntry(ACTION_MONTHLY_ROLLOVER, self._is_monthly_rollover_due, self._rollover_monthly),
        ]

    async def on_tick(self, now: datetime, readings: PeriodReadings | None = None) -> TickResult:
        """Run every schedule entry whose predicate holds.

        Args:
            now: Tick time (local wall clock)
            readings: Period energy readings for snapshots

        Returns:
            Requests to deliver and names of the actions performed
        """
        if readings is None:
            readings = PeriodReadings()

        result = TickResult()
        for entry in self.entries:
            if not entry.predicate(now):
                continue
            request = await entry.action(now, readings)
            result.performed.append(entry.name)
            if request is not None:
                result.requests.append(request)
        return result

    def _is_daily_summary_due(self, now: datetime) -> bool:
        return self.schedule.daily_summary_enabled and matches_time(
            now, self.schedule.daily_summary_time
        )

    def _is_daily_reset_due(self, now: datetime) -> bool:
        return self.state.last_daily_reset != now.date() and matches_time(
            now, self.schedule.daily_reset_time
        )

    def _is_weekly_rollover_due(self, now: datetime) -> bool:
        return (
            now.weekday() == self.schedule.weekly_weekday
            and matches_time(now, self.schedule.weekly_time)
            and self.state.last_weekly_reset != now.date()
        )

    def _is_monthly_rollover_due(self, now: datetime) -> bool:
        return (
            now.day == monthly_reset_day(now.year, now.month, self.schedule.monthly_day)
            and matches_time(now, self.schedule.monthly_time)
            and self.state.last_monthly_reset != now.date()
        )

    async def _send_daily_summary(
        self, now: datetime, readings: PeriodReadings
    ) -> NotificationRequest | None:
        return self.build_daily_summary(now)

    async def _reset_daily(
        self, now: datetime, readings: PeriodReadings
    ) -> NotificationRequest | None:
        self._logger.info("DAILY_RESET", date=now.date().isoformat())
        self.state.reset_daily()
        self.state.last_daily_reset = now.date()
        await self._persist()
        return None

    async def _rollover_weekly(
        self, now: datetime, readings: PeriodReadings
    ) -> NotificationRequest | None:
        state = self.state
        state.last_week = PeriodSnapshot.capture(
            readings, state.full_cycles_week, state.empty_cycles_week
        )
        state.reset_weekly()
        state.last_weekly_reset = now.date()
        self._logger.info("WEEKLY_ROLLOVER", **state.last_week.to_dict())
        await self._persist()

        if not self.schedule.weekly_summary_enabled:
            return None
        return NotificationRequest(
            kind=NotificationKind.WEEKLY_SUMMARY,
            created_at=now,
            soc=state.current_soc,
            data=state.last_week.to_dict(),
        )

    async def _rollover_monthly(
        self, now: datetime, readings: PeriodReadings
    ) -> NotificationRequest | None:
        state = self.state
        state.last_month = PeriodSnapshot.capture(
            readings, state.full_cycles_month, state.empty_cycles_month
        )
        state.reset_monthly()
        state.last_monthly_reset = now.date()
        self._logger.info("MONTHLY_ROLLOVER", **state.last_month.to_dict())
        await self._persist()

        if not self.schedule.monthly_summary_enabled:
            return None
        return NotificationRequest(
            kind=NotificationKind.MONTHLY_SUMMARY,
            created_at=now,
            soc=state.current_soc,
            data=state.last_month.to_dict(),
        )

    def build_daily_summary(self, now: datetime) -> NotificationRequest:
        """Daily summary request from the current, not yet reset, counters."""
        state = self.state
        return NotificationRequest(
            kind=NotificationKind.DAILY_SUMMARY,
            created_at=now,
            soc=state.current_soc,
            data={
                "full_cycles": state.full_cycles_today,
                "empty_cycles": state.empty_cycles_today,
                "max_soc": state.max_soc_today,
                "min_soc": state.min_soc_today,
            },
        )

    # ========== Startup / manual ==========

    def _last_daily_reset_date(self, now: datetime) -> date:
        today = now.date()
        if now.time() >= self.schedule.daily_reset_time:
            return today
        return today - timedelta(days=1)

    def _last_weekly_reset_date(self, now: datetime) -> date:
        today = now.date()
        days_back = (today.weekday() - self.schedule.weekly_weekday) % 7
        candidate = today - timedelta(days=days_back)
        if candidate == today and now.time() < self.schedule.weekly_time:
            candidate -= timedelta(days=7)
        return candidate

    def _last_monthly_reset_date(self, now: datetime) -> date:
        today = now.date()
        day = monthly_reset_day(today.year, today.month, self.schedule.monthly_day)
        candidate = today.replace(day=day)
        if candidate > today or (candidate == today and now.time() < self.schedule.monthly_time):
            previous = today.replace(day=1) - timedelta(days=1)
            day = monthly_reset_day(previous.year, previous.month, self.schedule.monthly_day)
            candidate = previous.replace(day=day)
        return candidate

    def apply_staleness(self, now: datetime) -> bool:
        """Discard counters whose reset was missed while not running.

        Daily counters restart from defaults; weekly and monthly counters
        are zeroed without snapshot or summary. On a first start the
        markers are initialised.

        Returns:
            True if anything changed (caller should flush)
        """
        state = self.state
        changed = False

        expected = self._last_daily_reset_date(now)
        if state.last_daily_reset is None or state.last_daily_reset < expected:
            if state.last_daily_reset is not None:
                self._logger.info("STALE_DAILY_STATISTICS", last_reset=state.last_daily_reset)
            state.reset_daily()
            state.last_daily_reset = expected
            changed = True

        expected = self._last_weekly_reset_date(now)
        if state.last_weekly_reset is None or state.last_weekly_reset < expected:
            if state.last_weekly_reset is not None:
                self._logger.info("STALE_WEEKLY_STATISTICS", last_reset=state.last_weekly_reset)
                state.reset_weekly()
            state.last_weekly_reset = expected
            changed = True

        expected = self._last_monthly_reset_date(now)
        if state.last_monthly_reset is None or state.last_monthly_reset < expected:
            if state.last_monthly_reset is not None:
                self._logger.info("STALE_MONTHLY_STATISTICS", last_reset=state.last_monthly_reset)
                state.reset_monthly()
            state.last_monthly_reset = expected
            changed = True

        if changed:
            self._dirty = True
        return changed

    async def reset_all(self) -> None:
        """Zero every running counter (manual reset); snapshots are kept."""
        self.state.reset_daily()
        self.state.reset_weekly()
        self.state.reset_monthly()
        self._logger.info("STATISTICS_RESET")
        await self._persist()
