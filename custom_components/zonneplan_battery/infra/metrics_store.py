"""Durable storage for the last received measurement."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers import storage

from ..const import DOMAIN, STORAGE_KEY_METRICS, STORAGE_VERSION
from ..models import Measurement

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

_LOGGER = logging.getLogger(__name__)


class MetricsStore:
    """Persist the current measurement of one config entry."""

    def __init__(self, hass: HomeAssistant, entry_id: str) -> None:
        """Initialize the store."""
        self.hass = hass
        self._store: storage.Store[dict] = storage.Store(
            hass, STORAGE_VERSION, f"{DOMAIN}.{entry_id}"
        )

    async def async_load(self) -> Measurement | None:
        """Load the persisted measurement.

        Returns:
            The measurement, or None when nothing usable is stored
        """
        try:
            data = await self._store.async_load()
        except (HomeAssistantError, OSError, ValueError) as err:
            _LOGGER.error("Error loading metrics from storage: %s", err)
            return None

        if not data or not isinstance(data.get(STORAGE_KEY_METRICS), dict):
            _LOGGER.debug("No metrics in storage")
            return None

        try:
            return Measurement.from_dict(data[STORAGE_KEY_METRICS])
        except (TypeError, ValueError) as err:
            _LOGGER.error("Stored metrics are unreadable: %s", err)
            return None

    async def async_save(self, measurement: Measurement) -> bool:
        """Persist a measurement.

        Returns:
            True if the write succeeded; failures are logged only
        """
        try:
            await self._store.async_save({STORAGE_KEY_METRICS: measurement.to_dict()})
        except (HomeAssistantError, OSError, TypeError, ValueError) as err:
            _LOGGER.error("Failed to save metrics to storage: %s", err)
            return False
        _LOGGER.debug("Saved metrics to storage")
        return True

    async def async_remove(self) -> None:
        """Delete the stored data when the entry is removed."""
        await self._store.async_remove()
