"""Message formatting, delivery and statistics persistence."""

from .notifier import Notifier
from .stats_store import StatsStore

__all__ = ["Notifier", "StatsStore"]
