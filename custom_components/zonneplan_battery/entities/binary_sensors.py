"""Binary sensor entities."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from homeassistant.components.binary_sensor import (
    BinarySensorDeviceClass,
    BinarySensorEntity,
)
from homeassistant.const import STATE_OFF, STATE_ON
from homeassistant.core import callback
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.helpers.restore_state import RestoreEntity

from ..const import DISPLAY_LOAD_BALANCING, DOMAIN, signal_update

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from ..coordinator import ZonneplanCoordinator


@dataclass
class BinarySensorDefinition:
    """Definition for a binary sensor."""

    key: str
    name: str
    device_class: BinarySensorDeviceClass | None = None
    icon_on: str | None = None
    icon_off: str | None = None


BINARY_SENSOR_DEFINITIONS: list[BinarySensorDefinition] = [
    BinarySensorDefinition(
        key=DISPLAY_LOAD_BALANCING,
        name="Load Balancing",
        device_class=BinarySensorDeviceClass.RUNNING,
        icon_on="mdi:scale-balance",
        icon_off="mdi:scale-unbalanced",
    ),
]


class ZonneplanBinarySensor(RestoreEntity, BinarySensorEntity):
    """Generic Zonneplan Battery binary sensor."""

    _attr_has_entity_name = True
    _attr_should_poll = False

    def __init__(
        self,
        entry: ConfigEntry,
        coordinator: ZonneplanCoordinator,
        definition: BinarySensorDefinition,
    ) -> None:
        """Initialize."""
        self._coordinator = coordinator
        self._definition = definition
        self._entry_id = entry.entry_id

        self._attr_unique_id = f"{entry.entry_id}_{definition.key}"
        self._attr_name = definition.name
        self._attr_device_class = definition.device_class

        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, entry.entry_id)},
            name=entry.title,
            manufacturer="Zonneplan",
            model="Battery",
        )

    @property
    def icon(self) -> str | None:
        """Return icon based on state."""
        if self._definition.icon_on and self._definition.icon_off:
            return self._definition.icon_on if self.is_on else self._definition.icon_off
        return None

    async def async_added_to_hass(self) -> None:
        """Restore the last state and register for updates."""
        await super().async_added_to_hass()

        last_state = await self.async_get_last_state()
        if last_state is not None and last_state.state in (STATE_ON, STATE_OFF):
            self._coordinator.display.restore(
                self._definition.key, last_state.state == STATE_ON
            )

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
        value = self._coordinator.display.get(self._definition.key)
        self._attr_is_on = None if value is None else bool(value)
        self.async_write_ha_state()


async def async_setup_binary_sensors(
    hass: HomeAssistant,
    entry: ConfigEntry,
    coordinator: ZonneplanCoordinator,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up binary sensor entities."""
    entities = [
        ZonneplanBinarySensor(entry, coordinator, definition)
        for definition in BINARY_SENSOR_DEFINITIONS
    ]
    async_add_entities(entities)
