"""Structured logging for PV Notifications."""

from .unified_logger import PvLogger, get_logger

__all__ = ["PvLogger", "get_logger"]
