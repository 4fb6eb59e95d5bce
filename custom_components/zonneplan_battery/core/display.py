"""Published values shown by the entities.

Each value is published on its own: a failure while computing one field
is logged and the remaining fields are still published. Entities are
told to refresh through the dispatcher after every batch.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from homeassistant.core import callback
from homeassistant.helpers.dispatcher import async_dispatcher_send

from ..const import signal_update
from ..zonneplan_logging import get_logger

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant


class PublishedValues:
    """Key/value map of everything the entities display."""

    def __init__(self, hass: HomeAssistant, entry_id: str) -> None:
        self.hass = hass
        self.entry_id = entry_id
        self._values: dict[str, Any] = {}
        self._logger = get_logger()

    def get(self, key: str, default: Any = None) -> Any:
        """Read a published value."""
        return self._values.get(key, default)

    @callback
    def restore(self, key: str, value: Any) -> None:
        """Seed a value restored by an entity, unless one is already published."""
        if value is None or key in self._values:
            return
        self._values[key] = value

    @callback
    def publish_all(self, producers: Mapping[str, Callable[[], Any]]) -> list[str]:
        """Compute and publish a batch of values.

        Args:
            producers: Display key to a function computing its value

        Returns:
            Keys whose value could not be computed
        """
        failed: list[str] = []
        for key, produce in producers.items():
            try:
                self._values[key] = produce()
            except Exception as ex:
                failed.append(key)
                self._logger.error("PUBLISH_FAILED", key=key, error=str(ex))
        self.notify()
        return failed

    @callback
    def notify(self) -> None:
        """Tell the entities of this entry to refresh."""
        async_dispatcher_send(self.hass, signal_update(self.entry_id))
