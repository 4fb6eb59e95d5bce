"""Entities module - HA entity definitions using factory pattern.

All entities are thin wrappers that:
- Read from the published values of their coordinator
- Delegate actions to the coordinator
- Use factory pattern for minimal boilerplate
"""

from .binary_sensors import BINARY_SENSOR_DEFINITIONS, async_setup_binary_sensors
from .buttons import async_setup_buttons
from .sensors import SENSOR_DEFINITIONS, async_setup_sensors

__all__ = [
    "BINARY_SENSOR_DEFINITIONS",
    "SENSOR_DEFINITIONS",
    "async_setup_binary_sensors",
    "async_setup_buttons",
    "async_setup_sensors",
]
