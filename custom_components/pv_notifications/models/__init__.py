"""Data models for PV Notifications."""

from .data_models import (
    DeliveryResult,
    Direction,
    NotificationKind,
    NotificationRequest,
    Priority,
)

__all__ = [
    "DeliveryResult",
    "Direction",
    "NotificationKind",
    "NotificationRequest",
    "Priority",
]
