"""Data models for PV Notifications."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class NotificationKind(str, Enum):
    """What a notification is about."""

    FULL = "full"
    EMPTY = "empty"
    INTERMEDIATE = "intermediate"
    DAILY_SUMMARY = "daily_summary"
    WEEKLY_SUMMARY = "weekly_summary"
    MONTHLY_SUMMARY = "monthly_summary"
    TEST = "test"


class Direction(str, Enum):
    """SOC trend relative to the previous sample."""

    UP = "up"
    DOWN = "down"


class Priority(str, Enum):
    """Delivery priority."""

    NORMAL = "normal"
    HIGH = "high"


@dataclass
class NotificationRequest:
    """A decision to notify, before formatting."""

    kind: NotificationKind
    created_at: datetime
    soc: float | None = None
    direction: Direction = Direction.UP
    step: int | None = None
    priority: Priority = Priority.NORMAL
    # Counter/snapshot values for summaries
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class DeliveryResult:
    """Outcome of handing a message to the notify service."""

    ok: bool
    reason: str = ""

    @classmethod
    def success(cls) -> DeliveryResult:
        return cls(ok=True)

    @classmethod
    def error(cls, reason: str) -> DeliveryResult:
        return cls(ok=False, reason=reason)
