"""Sensor entities using factory pattern.

Instead of defining each sensor manually, we use a data-driven approach.
Add a new sensor = add one entry to SENSOR_DEFINITIONS.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from homeassistant.components.sensor import (
    RestoreSensor,
    SensorDeviceClass,
    SensorStateClass,
)
from homeassistant.const import PERCENTAGE, UnitOfEnergy, UnitOfTime
from homeassistant.core import callback
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.dispatcher import async_dispatcher_connect

from ..const import (
    DISPLAY_BATTERY,
    DISPLAY_CYCLE_COUNT,
    DISPLAY_DAILY_CHARGED,
    DISPLAY_DAILY_DISCHARGED,
    DISPLAY_DAILY_EARNED,
    DISPLAY_LAST_UPDATE,
    DISPLAY_NEXT_SEND,
    DISPLAY_OVERALL_RANK,
    DISPLAY_PROVIDER_RANK,
    DISPLAY_REPORTED_CHARGED,
    DISPLAY_REPORTED_DISCHARGED,
    DISPLAY_TOTAL_EARNED,
    DOMAIN,
    signal_update,
)

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from ..coordinator import ZonneplanCoordinator


@dataclass
class SensorDefinition:
    """Definition for a sensor entity."""

    key: str  # Published value key, also unique id suffix
    name: str
    unit: str | None = None
    device_class: SensorDeviceClass | None = None
    state_class: SensorStateClass | None = None
    icon: str | None = None
    # Seed the published value from the last known state on startup
    restore: bool = True
    attributes_fn: Callable[[ZonneplanCoordinator], dict[str, Any]] | None = None


def _next_send_attributes(coordinator: ZonneplanCoordinator) -> dict[str, Any]:
    state = coordinator.state
    return {
        "next_send_at": state.next_send_at.isoformat() if state.next_send_at else None,
        "last_sent_at": state.last_sent_at.isoformat() if state.last_sent_at else None,
        "last_send_error": state.last_send_error,
    }


SENSOR_DEFINITIONS: list[SensorDefinition] = [
    # Received from the vendor integration
    SensorDefinition(
        key=DISPLAY_BATTERY,
        name="Battery",
        unit=PERCENTAGE,
        device_class=SensorDeviceClass.BATTERY,
        state_class=SensorStateClass.MEASUREMENT,
    ),
    SensorDefinition(
        key=DISPLAY_DAILY_EARNED,
        name="Daily Earned",
        unit="EUR",
        device_class=SensorDeviceClass.MONETARY,
        state_class=SensorStateClass.TOTAL,
        icon="mdi:cash",
    ),
    SensorDefinition(
        key=DISPLAY_TOTAL_EARNED,
        name="Total Earned",
        unit="EUR",
        device_class=SensorDeviceClass.MONETARY,
        state_class=SensorStateClass.TOTAL,
        icon="mdi:cash-multiple",
    ),
    SensorDefinition(
        key=DISPLAY_DAILY_CHARGED,
        name="Daily Charged",
        unit=UnitOfEnergy.KILO_WATT_HOUR,
        device_class=SensorDeviceClass.ENERGY,
        state_class=SensorStateClass.TOTAL,
        icon="mdi:battery-arrow-up",
    ),
    SensorDefinition(
        key=DISPLAY_DAILY_DISCHARGED,
        name="Daily Discharged",
        unit=UnitOfEnergy.KILO_WATT_HOUR,
        device_class=SensorDeviceClass.ENERGY,
        state_class=SensorStateClass.TOTAL,
        icon="mdi:battery-arrow-down",
    ),
    SensorDefinition(
        key=DISPLAY_CYCLE_COUNT,
        name="Cycle Count",
        state_class=SensorStateClass.TOTAL_INCREASING,
        icon="mdi:battery-sync",
    ),
    SensorDefinition(
        key=DISPLAY_LAST_UPDATE,
        name="Last Update",
        device_class=SensorDeviceClass.TIMESTAMP,
    ),

    # Reported back by Onbalansmarkt
    SensorDefinition(
        key=DISPLAY_REPORTED_CHARGED,
        name="Reported Charged",
        unit=UnitOfEnergy.KILO_WATT_HOUR,
        device_class=SensorDeviceClass.ENERGY,
        state_class=SensorStateClass.TOTAL,
    ),
    SensorDefinition(
        key=DISPLAY_REPORTED_DISCHARGED,
        name="Reported Discharged",
        unit=UnitOfEnergy.KILO_WATT_HOUR,
        device_class=SensorDeviceClass.ENERGY,
        state_class=SensorStateClass.TOTAL,
    ),
    SensorDefinition(
        key=DISPLAY_OVERALL_RANK,
        name="Overall Rank",
        icon="mdi:trophy",
    ),
    SensorDefinition(
        key=DISPLAY_PROVIDER_RANK,
        name="Provider Rank",
        icon="mdi:trophy-outline",
    ),

    # Scheduler
    SensorDefinition(
        key=DISPLAY_NEXT_SEND,
        name="Next Send",
        unit=UnitOfTime.MINUTES,
        icon="mdi:timer-sand",
        restore=False,
        attributes_fn=_next_send_attributes,
    ),
]


class ZonneplanSensor(RestoreSensor):
    """Generic Zonneplan Battery sensor entity."""

    _attr_has_entity_name = True
    _attr_should_poll = False

    def __init__(
        self,
        entry: ConfigEntry,
        coordinator: ZonneplanCoordinator,
        definition: SensorDefinition,
    ) -> None:
        """Initialize the sensor."""
        self._coordinator = coordinator
        self._definition = definition
        self._entry_id = entry.entry_id

        self._attr_unique_id = f"{entry.entry_id}_{definition.key}"
        self._attr_name = definition.name
        self._attr_native_unit_of_measurement = definition.unit
        self._attr_device_class = definition.device_class
        self._attr_state_class = definition.state_class
        if definition.icon:
            self._attr_icon = definition.icon

        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, entry.entry_id)},
            name=entry.title,
            manufacturer="Zonneplan",
            model="Battery",
        )

    async def async_added_to_hass(self) -> None:
        """Restore the last value and register for updates."""
        await super().async_added_to_hass()

        if self._definition.restore:
            last = await self.async_get_last_sensor_data()
            if last is not None:
                self._coordinator.display.restore(self._definition.key, last.native_value)

        self.async_on_remove(
            async_dispatcher_connect(
                self.hass,
                signal_update(self._entry_id),
                self._handle_update,
            )
        )
        self._handle_update()

    @callback
    def _handle_update(self) -> None:
        """Handle state update."""
        self._attr_native_value = self._coordinator.display.get(self._definition.key)
        if self._definition.attributes_fn is not None:
            self._attr_extra_state_attributes = self._definition.attributes_fn(
                self._coordinator
            )
        self.async_write_ha_state()


async def async_setup_sensors(
    hass: HomeAssistant,
    entry: ConfigEntry,
    coordinator: ZonneplanCoordinator,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up all sensor entities."""
    entities = [
        ZonneplanSensor(entry, coordinator, definition)
        for definition in SENSOR_DEFINITIONS
    ]
    async_add_entities(entities)
