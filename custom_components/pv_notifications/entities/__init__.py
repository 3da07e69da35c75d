"""Entity platforms backed by PvState and the coordinator."""

from .sensors import async_setup_sensors, SENSOR_DEFINITIONS
from .binary_sensors import async_setup_binary_sensors, BINARY_SENSOR_DEFINITIONS
from .switches import async_setup_switches
from .buttons import async_setup_buttons

__all__ = [
    "async_setup_sensors",
    "async_setup_binary_sensors",
    "async_setup_switches",
    "async_setup_buttons",
    "SENSOR_DEFINITIONS",
    "BINARY_SENSOR_DEFINITIONS",
]
