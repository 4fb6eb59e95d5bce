"""Fixtures for testing."""
from __future__ import annotations

from http import HTTPStatus
from typing import Any

import pytest
from pytest_homeassistant_custom_component.common import MockConfigEntry
from pytest_homeassistant_custom_component.test_util.aiohttp import AiohttpClientMocker

from homeassistant.const import CONF_API_KEY
from homeassistant.core import HomeAssistant

from custom_components.zonneplan_battery.const import API_URL_LIVE, API_URL_ME, DOMAIN

JSON_HEADERS = {"Content-Type": "application/json"}

PROFILE_RESPONSE: dict[str, Any] = {
    "username": "battery-owner",
    "name": "Battery Owner",
    "resultToday": {
        "date": "2024-03-05",
        "batteryResult": 1.25,
        "batteryResultTotal": 321.5,
        "batteryCharged": 8.5,
        "batteryDischarged": 7.25,
        "overallRank": 12,
        "providerRank": 3,
    },
    "resultYesterday": {
        "date": "2024-03-04",
        "batteryResult": 2.0,
        "overallRank": 20,
        "providerRank": 5,
    },
}

METRICS = {
    "daily_earned": 1.5,
    "total_earned": 100.0,
    "daily_charged": 8.4,
    "daily_discharged": 7.6,
    "battery_percentage": 64,
    "cycle_count": 120,
    "load_balancing_active": True,
}


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(enable_custom_integrations):
    """Enable custom integrations defined in the test dir."""
    yield


@pytest.fixture
def mock_config_entry() -> MockConfigEntry:
    """Mock a config entry with an API key and default options."""
    return MockConfigEntry(
        domain=DOMAIN,
        title="Zonneplan Battery",
        data={CONF_API_KEY: "test-api-key"},
        options={},
    )


@pytest.fixture
def mock_profile(aioclient_mock: AiohttpClientMocker) -> AiohttpClientMocker:
    """Answer profile requests with a ranked result."""
    aioclient_mock.get(API_URL_ME, json=PROFILE_RESPONSE, headers=JSON_HEADERS)
    return aioclient_mock


@pytest.fixture
def mock_live(aioclient_mock: AiohttpClientMocker) -> AiohttpClientMocker:
    """Accept every submitted measurement."""
    aioclient_mock.post(API_URL_LIVE, status=HTTPStatus.OK, text="OK")
    return aioclient_mock


def live_calls(aioclient_mock: AiohttpClientMocker) -> list[tuple]:
    """Requests made to the live measurement endpoint."""
    return [call for call in aioclient_mock.mock_calls if str(call[1]) == API_URL_LIVE]


@pytest.fixture
async def setup_integration(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
    mock_profile: AiohttpClientMocker,
    mock_live: AiohttpClientMocker,
):
    """Set up the integration and unload it after the test."""
    mock_config_entry.add_to_hass(hass)

    await hass.config_entries.async_setup(mock_config_entry.entry_id)
    await hass.async_block_till_done(wait_background_tasks=True)

    yield mock_config_entry

    await hass.config_entries.async_unload(mock_config_entry.entry_id)
    await hass.async_block_till_done()
