"""Test button entities."""
import pytest
from pytest_homeassistant_custom_component.test_util.aiohttp import AiohttpClientMocker

from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError

from custom_components.zonneplan_battery.const import DOMAIN, SERVICE_RECEIVE_METRICS

from .conftest import METRICS, live_calls

ENTITY_ID = "button.zonneplan_battery_send_measurement_now"


@pytest.mark.asyncio
async def test_button_created(hass: HomeAssistant, setup_integration):
    """Test send measurement button is created."""
    state = hass.states.get(ENTITY_ID)
    assert state is not None, "Button entity not created"


@pytest.mark.asyncio
async def test_button_press(
    hass: HomeAssistant, setup_integration, aioclient_mock: AiohttpClientMocker
):
    """Pressing the button sends the last measurement."""
    await hass.services.async_call(DOMAIN, SERVICE_RECEIVE_METRICS, METRICS, blocking=True)

    await hass.services.async_call(
        "button",
        "press",
        {"entity_id": ENTITY_ID},
        blocking=True,
    )
    await hass.async_block_till_done()

    assert len(live_calls(aioclient_mock)) == 1

    next_send = hass.states.get("sensor.zonneplan_battery_next_send")
    assert next_send.attributes["last_sent_at"] is not None
    assert next_send.attributes["last_send_error"] is None


@pytest.mark.asyncio
async def test_button_press_without_metrics(
    hass: HomeAssistant, setup_integration, aioclient_mock: AiohttpClientMocker
):
    with pytest.raises(HomeAssistantError, match="No metrics available"):
        await hass.services.async_call(
            "button",
            "press",
            {"entity_id": ENTITY_ID},
            blocking=True,
        )

    assert live_calls(aioclient_mock) == []
