"""Test the Zonneplan Battery services."""
import pytest
import voluptuous as vol
from pytest_homeassistant_custom_component.common import (
    MockConfigEntry,
    async_capture_events,
)
from pytest_homeassistant_custom_component.test_util.aiohttp import AiohttpClientMocker

from homeassistant.const import CONF_API_KEY
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError, ServiceValidationError

from custom_components.zonneplan_battery.const import (
    DOMAIN,
    EVENT_METRICS_UPDATED,
    SERVICE_CALCULATE_CURVE_VALUE,
    SERVICE_RECEIVE_METRICS,
    SERVICE_SEND_LIVE_MEASUREMENT,
    SERVICE_SIMULATE_LIVE_MEASUREMENT,
)

from .conftest import METRICS, live_calls


async def _add_second_entry(hass: HomeAssistant) -> MockConfigEntry:
    entry = MockConfigEntry(domain=DOMAIN, title="Second Battery", data={CONF_API_KEY: ""})
    entry.add_to_hass(hass)
    assert await hass.config_entries.async_setup(entry.entry_id)
    await hass.async_block_till_done()
    return entry


@pytest.mark.asyncio
async def test_receive_metrics(hass: HomeAssistant, setup_integration):
    """Received metrics show up on the sensors and on the event bus."""
    events = async_capture_events(hass, EVENT_METRICS_UPDATED)

    await hass.services.async_call(DOMAIN, SERVICE_RECEIVE_METRICS, METRICS, blocking=True)
    await hass.async_block_till_done()

    assert hass.states.get("sensor.zonneplan_battery_daily_earned").state == "1.5"
    assert hass.states.get("sensor.zonneplan_battery_total_earned").state == "100.0"
    assert hass.states.get("sensor.zonneplan_battery_battery").state == "64.0"
    assert hass.states.get("binary_sensor.zonneplan_battery_load_balancing").state == "on"
    assert len(events) == 1
    assert events[0].data["config_entry_id"] == setup_integration.entry_id


@pytest.mark.asyncio
async def test_receive_metrics_coerces_strings(hass: HomeAssistant, setup_integration):
    await hass.services.async_call(
        DOMAIN,
        SERVICE_RECEIVE_METRICS,
        {"daily_earned": "2.75", "cycle_count": "7", "load_balancing_active": "off"},
        blocking=True,
    )

    coordinator = hass.data[DOMAIN][setup_integration.entry_id]
    assert coordinator.measurement.daily_earned == 2.75
    assert coordinator.measurement.cycle_count == 7
    assert coordinator.measurement.load_balancing_active is False


@pytest.mark.asyncio
async def test_receive_metrics_rejects_bad_values(hass: HomeAssistant, setup_integration):
    with pytest.raises(vol.Invalid):
        await hass.services.async_call(
            DOMAIN,
            SERVICE_RECEIVE_METRICS,
            {"battery_percentage": 150},
            blocking=True,
        )

    assert hass.data[DOMAIN][setup_integration.entry_id].measurement is None


@pytest.mark.asyncio
async def test_send_live_measurement(
    hass: HomeAssistant, setup_integration, aioclient_mock: AiohttpClientMocker
):
    await hass.services.async_call(DOMAIN, SERVICE_RECEIVE_METRICS, METRICS, blocking=True)

    await hass.services.async_call(DOMAIN, SERVICE_SEND_LIVE_MEASUREMENT, {}, blocking=True)

    calls = live_calls(aioclient_mock)
    assert len(calls) == 1
    assert calls[0][2]["batteryResult"] == "1.5"


@pytest.mark.asyncio
async def test_send_live_measurement_without_metrics(hass: HomeAssistant, setup_integration):
    with pytest.raises(HomeAssistantError, match="No metrics available"):
        await hass.services.async_call(
            DOMAIN, SERVICE_SEND_LIVE_MEASUREMENT, {}, blocking=True
        )


@pytest.mark.asyncio
async def test_simulate_live_measurement(
    hass: HomeAssistant, setup_integration, aioclient_mock: AiohttpClientMocker
):
    await hass.services.async_call(DOMAIN, SERVICE_RECEIVE_METRICS, METRICS, blocking=True)

    response = await hass.services.async_call(
        DOMAIN,
        SERVICE_SIMULATE_LIVE_MEASUREMENT,
        {},
        blocking=True,
        return_response=True,
    )

    assert response["payload"]["batteryResult"] == "1.5"
    assert response["payload"]["batteryResultTotal"] == "100"
    assert live_calls(aioclient_mock) == []


@pytest.mark.asyncio
async def test_calculate_curve_value(hass: HomeAssistant, setup_integration):
    response = await hass.services.async_call(
        DOMAIN,
        SERVICE_CALCULATE_CURVE_VALUE,
        {"input_value": 20, "curve": "> 18 : 20, <= 5 : 10, default : 1"},
        blocking=True,
        return_response=True,
    )

    assert response == {"result_value": 20}


@pytest.mark.asyncio
async def test_calculate_curve_value_no_match(hass: HomeAssistant, setup_integration):
    with pytest.raises(ServiceValidationError, match="No matching curve condition"):
        await hass.services.async_call(
            DOMAIN,
            SERVICE_CALCULATE_CURVE_VALUE,
            {"input_value": 10, "curve": "> 18 : 20"},
            blocking=True,
            return_response=True,
        )


@pytest.mark.asyncio
async def test_unknown_config_entry(hass: HomeAssistant, setup_integration):
    with pytest.raises(ServiceValidationError):
        await hass.services.async_call(
            DOMAIN,
            SERVICE_RECEIVE_METRICS,
            {"config_entry_id": "not-an-entry", **METRICS},
            blocking=True,
        )


@pytest.mark.asyncio
async def test_several_entries_need_target(hass: HomeAssistant, setup_integration):
    """With two devices loaded, calls must name the device."""
    second = await _add_second_entry(hass)

    with pytest.raises(ServiceValidationError):
        await hass.services.async_call(DOMAIN, SERVICE_RECEIVE_METRICS, METRICS, blocking=True)

    await hass.services.async_call(
        DOMAIN,
        SERVICE_RECEIVE_METRICS,
        {"config_entry_id": second.entry_id, **METRICS},
        blocking=True,
    )

    assert hass.data[DOMAIN][second.entry_id].measurement.daily_earned == 1.5
    assert hass.data[DOMAIN][setup_integration.entry_id].measurement is None
    assert hass.states.get("sensor.second_battery_daily_earned").state == "1.5"

    # Services stay while one entry is still loaded
    await hass.config_entries.async_unload(second.entry_id)
    await hass.async_block_till_done()
    assert hass.services.has_service(DOMAIN, SERVICE_RECEIVE_METRICS)
