"""Services for the Zonneplan Battery integration.

Services are registered once for the domain. Calls that act on a device
name it with ``config_entry_id``; when only one device is loaded the
field may be left out.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import voluptuous as vol

from homeassistant.config_entries import ConfigEntryState
from homeassistant.core import ServiceCall, ServiceResponse, SupportsResponse, callback
from homeassistant.exceptions import ServiceValidationError
from homeassistant.helpers import config_validation as cv

from .const import (
    ATTR_BATTERY_PERCENTAGE,
    ATTR_CONFIG_ENTRY_ID,
    ATTR_CURVE,
    ATTR_CYCLE_COUNT,
    ATTR_DAILY_CHARGED,
    ATTR_DAILY_DISCHARGED,
    ATTR_DAILY_EARNED,
    ATTR_INPUT_VALUE,
    ATTR_LOAD_BALANCING_ACTIVE,
    ATTR_RESULT_VALUE,
    ATTR_TIMESTAMP,
    ATTR_TOTAL_EARNED,
    DOMAIN,
    SERVICE_CALCULATE_CURVE_VALUE,
    SERVICE_RECEIVE_METRICS,
    SERVICE_SEND_LIVE_MEASUREMENT,
    SERVICE_SIMULATE_LIVE_MEASUREMENT,
)
from .domain import CurveError, calculate_curve_value

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from .coordinator import ZonneplanCoordinator

_LOGGER = logging.getLogger(__name__)

SERVICES = (
    SERVICE_RECEIVE_METRICS,
    SERVICE_SEND_LIVE_MEASUREMENT,
    SERVICE_SIMULATE_LIVE_MEASUREMENT,
    SERVICE_CALCULATE_CURVE_VALUE,
)

TARGET_SCHEMA = vol.Schema({vol.Optional(ATTR_CONFIG_ENTRY_ID): cv.string})

RECEIVE_METRICS_SCHEMA = TARGET_SCHEMA.extend(
    {
        vol.Optional(ATTR_DAILY_EARNED): vol.Coerce(float),
        vol.Optional(ATTR_TOTAL_EARNED): vol.Coerce(float),
        vol.Optional(ATTR_DAILY_CHARGED): vol.All(vol.Coerce(float), vol.Range(min=0)),
        vol.Optional(ATTR_DAILY_DISCHARGED): vol.All(vol.Coerce(float), vol.Range(min=0)),
        vol.Optional(ATTR_BATTERY_PERCENTAGE): vol.All(
            vol.Coerce(float), vol.Range(min=0, max=100)
        ),
        vol.Optional(ATTR_CYCLE_COUNT): vol.All(vol.Coerce(int), vol.Range(min=0)),
        vol.Optional(ATTR_LOAD_BALANCING_ACTIVE): cv.boolean,
        vol.Optional(ATTR_TIMESTAMP): cv.datetime,
    }
)

CURVE_SCHEMA = vol.Schema(
    {
        vol.Required(ATTR_INPUT_VALUE): vol.Coerce(float),
        vol.Required(ATTR_CURVE): cv.string,
    }
)


def _resolve_coordinator(hass: HomeAssistant, call: ServiceCall) -> ZonneplanCoordinator:
    """Find the coordinator a service call is aimed at."""
    coordinators: dict[str, ZonneplanCoordinator] = hass.data.get(DOMAIN, {})
    entry_id = call.data.get(ATTR_CONFIG_ENTRY_ID)

    if entry_id is not None:
        entry = hass.config_entries.async_get_entry(entry_id)
        if (
            entry is None
            or entry.domain != DOMAIN
            or entry.state is not ConfigEntryState.LOADED
            or entry_id not in coordinators
        ):
            raise ServiceValidationError(
                f"Config entry {entry_id} is not a loaded Zonneplan Battery"
            )
        return coordinators[entry_id]

    if len(coordinators) == 1:
        return next(iter(coordinators.values()))

    if not coordinators:
        raise ServiceValidationError("No Zonneplan Battery is loaded")
    raise ServiceValidationError(
        "Several Zonneplan Batteries are loaded, set config_entry_id"
    )


async def _handle_receive_metrics(hass: HomeAssistant, call: ServiceCall) -> None:
    coordinator = _resolve_coordinator(hass, call)
    payload: dict[str, Any] = {
        key: value for key, value in call.data.items() if key != ATTR_CONFIG_ENTRY_ID
    }
    await coordinator.async_handle_event(payload)


async def _handle_send_live_measurement(hass: HomeAssistant, call: ServiceCall) -> None:
    coordinator = _resolve_coordinator(hass, call)
    await coordinator.async_send_now()


async def _handle_simulate_live_measurement(
    hass: HomeAssistant, call: ServiceCall
) -> ServiceResponse:
    coordinator = _resolve_coordinator(hass, call)
    payload = await coordinator.async_send_now(simulate=True)
    if call.return_response:
        return {"payload": payload}
    return None


@callback
def _handle_calculate_curve_value(call: ServiceCall) -> ServiceResponse:
    try:
        result = calculate_curve_value(call.data[ATTR_INPUT_VALUE], call.data[ATTR_CURVE])
    except CurveError as err:
        raise ServiceValidationError(str(err)) from err
    return {ATTR_RESULT_VALUE: result}


def async_setup_services(hass: HomeAssistant) -> None:
    """Register the services, once for all entries."""
    if hass.services.has_service(DOMAIN, SERVICE_RECEIVE_METRICS):
        return

    async def receive_metrics(call: ServiceCall) -> None:
        await _handle_receive_metrics(hass, call)

    async def send_live_measurement(call: ServiceCall) -> None:
        await _handle_send_live_measurement(hass, call)

    async def simulate_live_measurement(call: ServiceCall) -> ServiceResponse:
        return await _handle_simulate_live_measurement(hass, call)

    hass.services.async_register(
        DOMAIN, SERVICE_RECEIVE_METRICS, receive_metrics, schema=RECEIVE_METRICS_SCHEMA
    )
    hass.services.async_register(
        DOMAIN, SERVICE_SEND_LIVE_MEASUREMENT, send_live_measurement, schema=TARGET_SCHEMA
    )
    hass.services.async_register(
        DOMAIN,
        SERVICE_SIMULATE_LIVE_MEASUREMENT,
        simulate_live_measurement,
        schema=TARGET_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )
    hass.services.async_register(
        DOMAIN,
        SERVICE_CALCULATE_CURVE_VALUE,
        _handle_calculate_curve_value,
        schema=CURVE_SCHEMA,
        supports_response=SupportsResponse.ONLY,
    )
    _LOGGER.debug("Zonneplan Battery services registered")


def async_unload_services(hass: HomeAssistant) -> None:
    """Remove the services once the last entry is gone."""
    for service in SERVICES:
        hass.services.async_remove(DOMAIN, service)
    _LOGGER.debug("Zonneplan Battery services removed")
