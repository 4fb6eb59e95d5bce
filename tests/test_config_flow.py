"""Test the config flow."""
from http import HTTPStatus
from unittest.mock import patch

import aiohttp
import pytest
import voluptuous as vol
from pytest_homeassistant_custom_component.common import MockConfigEntry
from pytest_homeassistant_custom_component.test_util.aiohttp import AiohttpClientMocker

from homeassistant import config_entries, data_entry_flow
from homeassistant.const import CONF_API_KEY, CONF_NAME
from homeassistant.core import HomeAssistant

from custom_components.zonneplan_battery.const import (
    API_URL_ME,
    CONF_AUTO_SEND,
    CONF_FILE_LOGGING,
    CONF_POLL_INTERVAL,
    CONF_REPORT_ZERO_RESULTS,
    CONF_SEND_ENABLED,
    CONF_SEND_INTERVAL,
    CONF_SEND_START_MINUTE,
    CONF_TOTAL_EARNED_OFFSET,
    CONF_TRADING_MODE,
    DOMAIN,
)

from .conftest import JSON_HEADERS, PROFILE_RESPONSE

OPTIONS = {
    CONF_API_KEY: "test-api-key",
    CONF_POLL_INTERVAL: 600,
    CONF_TRADING_MODE: "imbalance_aggressive",
    CONF_TOTAL_EARNED_OFFSET: 12.5,
    CONF_AUTO_SEND: True,
    CONF_REPORT_ZERO_RESULTS: False,
    CONF_SEND_ENABLED: True,
    CONF_SEND_INTERVAL: 30,
    CONF_SEND_START_MINUTE: 5,
    CONF_FILE_LOGGING: False,
}


@pytest.mark.asyncio
async def test_form_step_user(hass: HomeAssistant):
    """Test we get the first form step."""
    result = await hass.config_entries.flow.async_init(
        DOMAIN, context={"source": config_entries.SOURCE_USER}
    )
    assert result["type"] == data_entry_flow.FlowResultType.FORM
    assert result["step_id"] == "user"
    assert result["errors"] == {}


@pytest.mark.asyncio
async def test_create_entry_with_api_key(
    hass: HomeAssistant, aioclient_mock: AiohttpClientMocker
):
    aioclient_mock.get(API_URL_ME, json=PROFILE_RESPONSE, headers=JSON_HEADERS)
    result = await hass.config_entries.flow.async_init(
        DOMAIN, context={"source": config_entries.SOURCE_USER}
    )

    with patch(
        "custom_components.zonneplan_battery.async_setup_entry",
        return_value=True,
    ) as mock_setup_entry:
        result = await hass.config_entries.flow.async_configure(
            result["flow_id"],
            {CONF_NAME: "Home Battery", CONF_API_KEY: " test-api-key "},
        )
        await hass.async_block_till_done()

    assert result["type"] == data_entry_flow.FlowResultType.CREATE_ENTRY
    assert result["title"] == "Home Battery"
    assert result["data"] == {CONF_API_KEY: "test-api-key"}
    assert len(mock_setup_entry.mock_calls) == 1
    assert aioclient_mock.mock_calls[0][3]["Authorization"] == "Bearer test-api-key"


@pytest.mark.asyncio
async def test_create_entry_without_api_key(
    hass: HomeAssistant, aioclient_mock: AiohttpClientMocker
):
    """The key can be added later in the options."""
    result = await hass.config_entries.flow.async_init(
        DOMAIN, context={"source": config_entries.SOURCE_USER}
    )

    with patch(
        "custom_components.zonneplan_battery.async_setup_entry",
        return_value=True,
    ):
        result = await hass.config_entries.flow.async_configure(
            result["flow_id"], {CONF_NAME: "Zonneplan Battery"}
        )
        await hass.async_block_till_done()

    assert result["type"] == data_entry_flow.FlowResultType.CREATE_ENTRY
    assert result["data"] == {CONF_API_KEY: ""}
    assert aioclient_mock.call_count == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("mock_kwargs", "error"),
    [
        ({"status": HTTPStatus.UNAUTHORIZED, "text": "Unauthorized"}, "invalid_auth"),
        ({"exc": aiohttp.ClientConnectionError()}, "cannot_connect"),
        ({"text": "<html></html>", "headers": {"Content-Type": "text/html"}}, "unknown"),
    ],
)
async def test_invalid_api_key(
    hass: HomeAssistant,
    aioclient_mock: AiohttpClientMocker,
    mock_kwargs: dict,
    error: str,
):
    aioclient_mock.get(API_URL_ME, **mock_kwargs)
    result = await hass.config_entries.flow.async_init(
        DOMAIN, context={"source": config_entries.SOURCE_USER}
    )

    result = await hass.config_entries.flow.async_configure(
        result["flow_id"], {CONF_NAME: "Zonneplan Battery", CONF_API_KEY: "bad-key"}
    )

    assert result["type"] == data_entry_flow.FlowResultType.FORM
    assert result["errors"] == {"base": error}


@pytest.mark.asyncio
async def test_options_flow(hass: HomeAssistant, aioclient_mock: AiohttpClientMocker):
    """An unchanged API key is not validated again."""
    entry = MockConfigEntry(
        domain=DOMAIN, title="Zonneplan Battery", data={CONF_API_KEY: "test-api-key"}
    )
    entry.add_to_hass(hass)

    result = await hass.config_entries.options.async_init(entry.entry_id)
    assert result["type"] == data_entry_flow.FlowResultType.FORM
    assert result["step_id"] == "init"

    result = await hass.config_entries.options.async_configure(result["flow_id"], OPTIONS)

    assert result["type"] == data_entry_flow.FlowResultType.CREATE_ENTRY
    assert entry.options[CONF_SEND_INTERVAL] == 30
    assert entry.options[CONF_TRADING_MODE] == "imbalance_aggressive"
    assert entry.options[CONF_TOTAL_EARNED_OFFSET] == 12.5
    assert aioclient_mock.call_count == 0


@pytest.mark.asyncio
async def test_options_flow_new_api_key(
    hass: HomeAssistant, aioclient_mock: AiohttpClientMocker
):
    aioclient_mock.get(API_URL_ME, status=HTTPStatus.UNAUTHORIZED, text="Unauthorized")
    entry = MockConfigEntry(
        domain=DOMAIN, title="Zonneplan Battery", data={CONF_API_KEY: "test-api-key"}
    )
    entry.add_to_hass(hass)

    result = await hass.config_entries.options.async_init(entry.entry_id)
    result = await hass.config_entries.options.async_configure(
        result["flow_id"], {**OPTIONS, CONF_API_KEY: "other-key"}
    )

    assert result["type"] == data_entry_flow.FlowResultType.FORM
    assert result["errors"] == {"base": "invalid_auth"}
    assert entry.options == {}


@pytest.mark.asyncio
async def test_options_flow_rejects_unknown_trading_mode(hass: HomeAssistant):
    entry = MockConfigEntry(domain=DOMAIN, title="Zonneplan Battery", data={CONF_API_KEY: ""})
    entry.add_to_hass(hass)

    result = await hass.config_entries.options.async_init(entry.entry_id)

    with pytest.raises(vol.Invalid):
        await hass.config_entries.options.async_configure(
            result["flow_id"], {**OPTIONS, CONF_API_KEY: "", CONF_TRADING_MODE: "day_ahead"}
        )
