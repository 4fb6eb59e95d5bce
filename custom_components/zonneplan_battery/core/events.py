"""Event bus for component communication.

Every event is logged. Public events are also fired on the Home Assistant
bus so automations can react to them.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

from homeassistant.core import callback

from ..const import ATTR_CONFIG_ENTRY_ID, EVENT_MEASUREMENT_SENT, EVENT_METRICS_UPDATED
from ..zonneplan_logging import get_logger

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant


class ZonneplanEvent(str, Enum):
    """Event types for the Zonneplan Battery integration."""

    # Ingestion
    METRICS_UPDATED = EVENT_METRICS_UPDATED
    METRICS_RESTORED = "zonneplan_battery.metrics_restored"

    # Delivery
    MEASUREMENT_SENT = EVENT_MEASUREMENT_SENT
    MEASUREMENT_SKIPPED = "zonneplan_battery.measurement_skipped"
    MEASUREMENT_FAILED = "zonneplan_battery.measurement_failed"

    # Ranking
    PROFILE_UPDATED = "zonneplan_battery.profile_updated"
    PROFILE_FAILED = "zonneplan_battery.profile_failed"


# Fired on the Home Assistant bus as well
PUBLIC_EVENTS = frozenset(
    {ZonneplanEvent.METRICS_UPDATED, ZonneplanEvent.MEASUREMENT_SENT}
)


class ZonneplanEventBus:
    """Event bus for one config entry."""

    def __init__(self, hass: HomeAssistant, entry_id: str) -> None:
        """Initialize the event bus.

        Args:
            hass: Home Assistant instance
            entry_id: Config entry the events belong to
        """
        self.hass = hass
        self.entry_id = entry_id
        self._logger = get_logger()

    @callback
    def emit(self, event: ZonneplanEvent, **data: Any) -> None:
        """Emit an event.

        Args:
            event: Event type to emit
            **data: Event data
        """
        self._logger.debug(f"EVENT_{event.name}", entry_id=self.entry_id, **data)

        if event in PUBLIC_EVENTS:
            self.hass.bus.async_fire(
                event.value, {ATTR_CONFIG_ENTRY_ID: self.entry_id, **data}
            )
