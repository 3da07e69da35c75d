"""Core building blocks: state, events and Home Assistant access."""

from .state import PvState, NotifierState, StatsState
from .events import PvEventBus, PvEvent
from .gateway import Gateway

__all__ = ["PvState", "NotifierState", "StatsState", "PvEventBus", "PvEvent", "Gateway"]
