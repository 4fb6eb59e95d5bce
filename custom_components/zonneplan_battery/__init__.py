"""The Zonneplan Battery integration.

Receives battery trading metrics pushed by the Zonneplan integration,
keeps the last measurement, reports it to Onbalansmarkt.com on a fixed
schedule and polls the Onbalansmarkt ranking.

Layout:
- Settings and runtime state (core/state.py)
- Event bus and published values (core/events.py, core/display.py)
- Pure scheduling and delivery logic (domain/*.py)
- Factory-based entities (entities/*.py)
- Structured logging (zonneplan_logging/*.py)
"""

from __future__ import annotations

import logging
from pathlib import Path

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant

from .const import DOMAIN
from .coordinator import ZonneplanCoordinator
from .infra import MetricsStore
from .services import async_setup_services, async_unload_services
from .zonneplan_logging import get_logger

_LOGGER = logging.getLogger(__name__)

PLATFORMS: list[Platform] = [
    Platform.SENSOR,
    Platform.BINARY_SENSOR,
    Platform.BUTTON,
]


def _apply_file_logging(hass: HomeAssistant) -> None:
    """File logging is on while any loaded entry asks for it."""
    coordinators: dict[str, ZonneplanCoordinator] = hass.data.get(DOMAIN, {})
    logger = get_logger()
    logger.set_log_dir(Path(hass.config.path(DOMAIN, "log")))
    logger.set_file_logging(
        any(coordinator.settings.file_logging for coordinator in coordinators.values())
    )


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up Zonneplan Battery from a config entry."""
    hass.data.setdefault(DOMAIN, {})

    coordinator = ZonneplanCoordinator(hass, entry)
    hass.data[DOMAIN][entry.entry_id] = coordinator
    _apply_file_logging(hass)

    # Entities restore their last values before the coordinator starts
    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    await coordinator.async_start()

    async_setup_services(hass)
    entry.async_on_unload(entry.add_update_listener(_async_update_listener))

    _LOGGER.info("Zonneplan Battery %s initialized", entry.title)
    return True


async def _async_update_listener(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Apply changed options."""
    coordinator: ZonneplanCoordinator = hass.data[DOMAIN][entry.entry_id]
    await coordinator.async_handle_config_change()
    _apply_file_logging(hass)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    if unload_ok := await hass.config_entries.async_unload_platforms(entry, PLATFORMS):
        coordinator: ZonneplanCoordinator = hass.data[DOMAIN].pop(entry.entry_id)
        coordinator.async_stop()

        if not hass.data[DOMAIN]:
            async_unload_services(hass)
        _apply_file_logging(hass)

    return unload_ok


async def async_remove_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Delete the stored measurement of a removed entry."""
    await MetricsStore(hass, entry.entry_id).async_remove()
