"""Button entities."""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.components.button import ButtonEntity
from homeassistant.helpers.device_registry import DeviceInfo

from ..const import DOMAIN
from ..zonneplan_logging import get_logger

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from ..coordinator import ZonneplanCoordinator


class SendMeasurementButton(ButtonEntity):
    """Button to send the last measurement to Onbalansmarkt now."""

    _attr_has_entity_name = True
    _attr_icon = "mdi:send"

    def __init__(
        self,
        entry: ConfigEntry,
        coordinator: ZonneplanCoordinator,
    ) -> None:
        """Initialize."""
        self._coordinator = coordinator
        self._logger = get_logger()

        self._attr_unique_id = f"{entry.entry_id}_send_measurement"
        self._attr_name = "Send Measurement Now"

        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, entry.entry_id)},
            name=entry.title,
            manufacturer="Zonneplan",
            model="Battery",
        )

    async def async_press(self) -> None:
        """Handle button press."""
        self._logger.info("SEND_BUTTON_PRESSED")
        await self._coordinator.async_send_now()


async def async_setup_buttons(
    hass: HomeAssistant,
    entry: ConfigEntry,
    coordinator: ZonneplanCoordinator,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up button entities."""
    async_add_entities([SendMeasurementButton(entry, coordinator)])
