"""Notification and statistics rules, free of Home Assistant calls."""

from .stats_aggregator import StatsAggregator, TickResult
from .threshold_notifier import ThresholdNotifier, parse_soc

__all__ = ["StatsAggregator", "ThresholdNotifier", "TickResult", "parse_soc"]
