"""Daily time windows on wall-clock time."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time


def minutes_of_day(value: datetime | time) -> int:
    """Minutes since midnight, seconds ignored."""
    return value.hour * 60 + value.minute


@dataclass(frozen=True)
class TimeWindow:
    """A half-open [start, end) window repeating every day.

    A window whose start lies after its end wraps past midnight, e.g.
    22:00-07:00. A window with start == end is empty.
    """

    start: time
    end: time

    @property
    def wraps_midnight(self) -> bool:
        """Check if the window spans midnight."""
        return minutes_of_day(self.start) > minutes_of_day(self.end)

    def contains(self, now: datetime | time) -> bool:
        """Check if the given wall-clock time lies inside the window."""
        t = minutes_of_day(now)
        start = minutes_of_day(self.start)
        end = minutes_of_day(self.end)

        if start > end:
            return t >= start or t < end
        return start <= t < end

    def __str__(self) -> str:
        return f"{self.start.strftime('%H:%M')}-{self.end.strftime('%H:%M')}"
