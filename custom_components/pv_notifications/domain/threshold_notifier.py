"""Threshold notification decisions.

For every SOC sample the notifier decides whether the battery just became
full, empty or passed an intermediate step, and whether night mode, quiet
mode or the per-kind minimum interval suppresses the message.

Pure logic: no Home Assistant access. Statistics side effects go through
the aggregator handle passed in at construction.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import TYPE_CHECKING, Any

from ..const import INTERMEDIATE_TOLERANCE
from ..core.state import NotifierConfig, NotifierState
from ..exceptions import InvalidSample
from ..models import Direction, NotificationKind, NotificationRequest, Priority
from ..pv_logging import get_logger

if TYPE_CHECKING:
    from .stats_aggregator import StatsAggregator


def parse_soc(value: Any) -> float:
    """Convert a raw reading to a SOC number.

    Raises:
        InvalidSample: value is absent, non-numeric or not finite
    """
    if value is None or isinstance(value, bool):
        raise InvalidSample(value)
    try:
        soc = float(value)
    except (TypeError, ValueError) as ex:
        raise InvalidSample(value) from ex
    if not math.isfinite(soc):
        raise InvalidSample(value)
    return soc


class ThresholdNotifier:
    """Decides which notification, if any, a SOC sample triggers."""

    def __init__(
        self,
        config: NotifierConfig,
        state: NotifierState | None = None,
        stats: StatsAggregator | None = None,
    ) -> None:
        """Initialize the notifier.

        Args:
            config: Thresholds and suppression windows
            state: Hysteresis state (owned by this notifier)
            stats: Aggregator receiving min/max tracking and cycle increments
        """
        self.config = config
        self.state = state if state is not None else NotifierState()
        self._stats = stats
        self._logger = get_logger()

    # ========== Predicates ==========

    def is_night(self, now: datetime) -> bool:
        """Night mode is on and now lies inside the night window."""
        return self.config.night_mode_enabled and self.config.night_window.contains(now)

    def is_quiet(self, now: datetime) -> bool:
        """Quiet mode is on and now lies inside the quiet window."""
        return self.config.quiet_mode_enabled and self.config.quiet_window.contains(now)

    def can_notify(self, kind: NotificationKind, now: datetime) -> bool:
        """Check the minimum interval since the last notification of a kind."""
        last = self.state.last_notification_at.get(kind)
        if last is None:
            return True
        return now - last >= self.config.min_interval(kind)

    def _direction(self, soc: float) -> Direction:
        previous = self.state.previous_soc
        if previous is not None and soc < previous:
            return Direction.DOWN
        # First sample and unchanged SOC both count as rising
        return Direction.UP

    # ========== Sample handling ==========

    def on_sample(self, soc: Any, now: datetime) -> NotificationRequest | None:
        """Process one SOC sample.

        Args:
            soc: Raw SOC reading
            now: Sample time (local wall clock)

        Returns:
            The notification to send, or None
        """
        try:
            soc = parse_soc(soc)
        except InvalidSample as ex:
            self._logger.warning("SAMPLE_INVALID", value=ex.value)
            return None

        config = self.config
        state = self.state

        if self._stats is not None:
            self._stats.track_soc(soc)

        direction = self._direction(soc)
        state.previous_soc = soc

        night = self.is_night(now)
        quiet = self.is_quiet(now)

        self._logger.debug(
            "SAMPLE",
            soc=soc,
            direction=direction.value,
            full=state.full_flag,
            empty=state.empty_flag,
            night=night,
            quiet=quiet,
        )

        request: NotificationRequest | None = None

        if soc == config.threshold_full:
            request = self._check_full(soc, direction, now, night, quiet)
        elif soc == config.threshold_empty:
            request = self._check_empty(soc, direction, now, night, quiet)
        else:
            request = self._check_intermediate(soc, direction, now, night, quiet)
            self._rearm_intermediate(soc)

        if soc < config.threshold_reset_full and state.full_flag:
            state.full_flag = False
            self._logger.debug("FULL_FLAG_RESET", soc=soc)

        if soc > config.threshold_reset_empty and state.empty_flag:
            state.empty_flag = False
            self._logger.debug("EMPTY_FLAG_RESET", soc=soc)

        return request

    def _check_full(
        self,
        soc: float,
        direction: Direction,
        now: datetime,
        night: bool,
        quiet: bool,
    ) -> NotificationRequest | None:
        if self.state.full_flag:
            self._logger.debug("FULL_ALREADY_NOTIFIED", soc=soc)
            return None
        if night and self.config.night_suppress_full:
            self._logger.debug("FULL_SUPPRESSED_NIGHT", soc=soc)
            return None
        if quiet:
            self._logger.debug("FULL_SUPPRESSED_QUIET", soc=soc)
            return None
        if not self.can_notify(NotificationKind.FULL, now):
            self._logger.debug("FULL_THROTTLED", soc=soc)
            return None

        self.state.full_flag = True
        self.state.last_notification_at[NotificationKind.FULL] = now
        if self._stats is not None:
            self._stats.record_cycle(NotificationKind.FULL)

        self._logger.info("BATTERY_FULL", soc=soc)
        return NotificationRequest(
            kind=NotificationKind.FULL,
            created_at=now,
            soc=soc,
            direction=direction,
            priority=Priority.HIGH,
        )

    def _check_empty(
        self,
        soc: float,
        direction: Direction,
        now: datetime,
        night: bool,
        quiet: bool,
    ) -> NotificationRequest | None:
        if self.state.empty_flag:
            self._logger.debug("EMPTY_ALREADY_NOTIFIED", soc=soc)
            return None
        # Night mode may be overridden for empty, quiet mode never
        if night and not self.config.ignore_empty_at_night:
            self._logger.debug("EMPTY_SUPPRESSED_NIGHT", soc=soc)
            return None
        if quiet:
            self._logger.debug("EMPTY_SUPPRESSED_QUIET", soc=soc)
            return None
        if not self.can_notify(NotificationKind.EMPTY, now):
            self._logger.debug("EMPTY_THROTTLED", soc=soc)
            return None

        self.state.empty_flag = True
        self.state.last_notification_at[NotificationKind.EMPTY] = now
        if self._stats is not None:
            self._stats.record_cycle(NotificationKind.EMPTY)

        self._logger.info("BATTERY_EMPTY", soc=soc)
        return NotificationRequest(
            kind=NotificationKind.EMPTY,
            created_at=now,
            soc=soc,
            direction=direction,
            priority=Priority.HIGH,
        )

    def _check_intermediate(
        self,
        soc: float,
        direction: Direction,
        now: datetime,
        night: bool,
        quiet: bool,
    ) -> NotificationRequest | None:
        for step in self.config.intermediate_steps:
            if soc != step or step in self.state.intermediate_notified:
                continue

            if night and self.config.night_suppress_intermediate:
                self._logger.debug("INTERMEDIATE_SUPPRESSED_NIGHT", step=step)
            elif quiet:
                self._logger.debug("INTERMEDIATE_SUPPRESSED_QUIET", step=step)
            elif not self.can_notify(NotificationKind.INTERMEDIATE, now):
                self._logger.debug("INTERMEDIATE_THROTTLED", step=step)
            else:
                self.state.intermediate_notified.add(step)
                self.state.last_notification_at[NotificationKind.INTERMEDIATE] = now
                self._logger.info("INTERMEDIATE_STEP", step=step, direction=direction.value)
                return NotificationRequest(
                    kind=NotificationKind.INTERMEDIATE,
                    created_at=now,
                    soc=soc,
                    direction=direction,
                    step=step,
                )
            break

        return None

    def _rearm_intermediate(self, soc: float) -> None:
        """Forget steps the SOC has moved away from."""
        for step in self.config.intermediate_steps:
            if step in self.state.intermediate_notified and abs(soc - step) >= INTERMEDIATE_TOLERANCE:
                self.state.intermediate_notified.discard(step)
                self._logger.debug("INTERMEDIATE_REARMED", step=step, soc=soc)
