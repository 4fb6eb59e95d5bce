"""Errors raised by the Zonneplan Battery integration.

All errors derive from HomeAssistantError so a failing service call
reports the message back to the caller.
"""

from __future__ import annotations

from homeassistant.exceptions import HomeAssistantError


class ZonneplanBatteryError(HomeAssistantError):
    """Base class for integration errors."""


class RemoteRejected(ZonneplanBatteryError):
    """Onbalansmarkt answered with a non-2xx status.

    Not retryable without user action (bad API key or bad payload).
    """

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status


class RemoteUnreachable(ZonneplanBatteryError):
    """Transport level failure; the next scheduled tick may succeed."""


class RemoteUnexpectedFormat(ZonneplanBatteryError):
    """The API answered with a shape we do not understand."""


class ConfigurationMissing(ZonneplanBatteryError):
    """No API key or no measurement available for the operation."""
