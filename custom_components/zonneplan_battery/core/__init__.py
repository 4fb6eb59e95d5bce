"""Core module for Zonneplan Battery.

Contains the fundamental building blocks:
- State: settings and the single current measurement slot
- Events: event bus towards Home Assistant
- Display: published values read by the entities
"""

from .display import PublishedValues
from .events import ZonneplanEvent, ZonneplanEventBus
from .state import DeviceSettings, ZonneplanState

__all__ = [
    "DeviceSettings",
    "PublishedValues",
    "ZonneplanEvent",
    "ZonneplanEventBus",
    "ZonneplanState",
]
