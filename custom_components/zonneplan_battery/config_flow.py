"""Config flow for Zonneplan Battery integration."""
from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.const import CONF_API_KEY, CONF_NAME
from homeassistant.core import HomeAssistant, callback
from homeassistant.data_entry_flow import FlowResult
from homeassistant.helpers import selector
from homeassistant.helpers.aiohttp_client import async_get_clientsession

from .const import (
    CONF_AUTO_SEND,
    CONF_FILE_LOGGING,
    CONF_POLL_INTERVAL,
    CONF_REPORT_ZERO_RESULTS,
    CONF_SEND_ENABLED,
    CONF_SEND_INTERVAL,
    CONF_SEND_START_MINUTE,
    CONF_TOTAL_EARNED_OFFSET,
    CONF_TRADING_MODE,
    DEFAULT_AUTO_SEND,
    DEFAULT_FILE_LOGGING,
    DEFAULT_NAME,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_REPORT_ZERO_RESULTS,
    DEFAULT_SEND_ENABLED,
    DEFAULT_SEND_INTERVAL,
    DEFAULT_SEND_START_MINUTE,
    DEFAULT_TOTAL_EARNED_OFFSET,
    DEFAULT_TRADING_MODE,
    DOMAIN,
    MAX_POLL_INTERVAL,
    MAX_SEND_INTERVAL,
    MIN_POLL_INTERVAL,
    MIN_SEND_INTERVAL,
)
from .exceptions import RemoteRejected, RemoteUnexpectedFormat, RemoteUnreachable
from .models import TradingMode
from .onbalansmarkt_api import OnbalansmarktClient

_LOGGER = logging.getLogger(__name__)

API_KEY_SELECTOR = selector.TextSelector(
    selector.TextSelectorConfig(type=selector.TextSelectorType.PASSWORD)
)


async def validate_api_key(hass: HomeAssistant, api_key: str) -> str | None:
    """Check an API key with a profile fetch.

    Returns:
        Error key for the form, or None if the key works
    """
    client = OnbalansmarktClient(async_get_clientsession(hass), api_key)
    try:
        profile = await client.async_get_profile()
    except RemoteRejected:
        return "invalid_auth"
    except RemoteUnreachable:
        return "cannot_connect"
    except RemoteUnexpectedFormat:
        return "unknown"
    _LOGGER.debug("API key accepted for %s", profile.username or "unknown user")
    return None


class ConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for Zonneplan Battery."""

    VERSION = 1

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Name the battery and optionally enter the Onbalansmarkt API key."""
        errors: dict[str, str] = {}

        if user_input is not None:
            api_key = user_input.get(CONF_API_KEY, "").strip()
            if api_key:
                if error := await validate_api_key(self.hass, api_key):
                    errors["base"] = error

            if not errors:
                return self.async_create_entry(
                    title=user_input.get(CONF_NAME) or DEFAULT_NAME,
                    data={CONF_API_KEY: api_key},
                )

        return self.async_show_form(
            step_id="user",
            data_schema=vol.Schema(
                {
                    vol.Required(CONF_NAME, default=DEFAULT_NAME): selector.TextSelector(),
                    vol.Optional(CONF_API_KEY, default=""): API_KEY_SELECTOR,
                }
            ),
            errors=errors,
        )

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: config_entries.ConfigEntry,
    ) -> config_entries.OptionsFlow:
        """Create the options flow."""
        return OptionsFlowHandler(config_entry)


class OptionsFlowHandler(config_entries.OptionsFlow):
    """Handle options flow for Zonneplan Battery."""

    def __init__(self, config_entry: config_entries.ConfigEntry) -> None:
        """Initialize options flow."""
        self._config_entry = config_entry

    def _get_value(self, key: str, default: Any) -> Any:
        """Get value from options or data with fallback to default."""
        return self._config_entry.options.get(
            key,
            self._config_entry.data.get(key, default)
        )

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Manage the options - single page for simplicity."""
        errors: dict[str, str] = {}

        if user_input is not None:
            api_key = user_input.get(CONF_API_KEY, "").strip()
            user_input[CONF_API_KEY] = api_key
            if api_key and api_key != self._get_value(CONF_API_KEY, ""):
                if error := await validate_api_key(self.hass, api_key):
                    errors["base"] = error

            if not errors:
                return self.async_create_entry(title="", data=user_input)

        schema_dict = {
            # Onbalansmarkt account
            vol.Optional(
                CONF_API_KEY,
                default=self._get_value(CONF_API_KEY, ""),
            ): API_KEY_SELECTOR,
            vol.Required(
                CONF_POLL_INTERVAL,
                default=self._get_value(CONF_POLL_INTERVAL, DEFAULT_POLL_INTERVAL),
            ): selector.NumberSelector(
                selector.NumberSelectorConfig(
                    min=MIN_POLL_INTERVAL,
                    max=MAX_POLL_INTERVAL,
                    step=1,
                    unit_of_measurement="s",
                    mode=selector.NumberSelectorMode.BOX,
                )
            ),
            vol.Required(
                CONF_TRADING_MODE,
                default=self._get_value(CONF_TRADING_MODE, DEFAULT_TRADING_MODE),
            ): selector.SelectSelector(
                selector.SelectSelectorConfig(
                    options=[mode.value for mode in TradingMode.configurable()],
                    mode=selector.SelectSelectorMode.DROPDOWN,
                    translation_key=CONF_TRADING_MODE,
                )
            ),
            vol.Required(
                CONF_TOTAL_EARNED_OFFSET,
                default=self._get_value(CONF_TOTAL_EARNED_OFFSET, DEFAULT_TOTAL_EARNED_OFFSET),
            ): selector.NumberSelector(
                selector.NumberSelectorConfig(
                    step=0.01,
                    unit_of_measurement="EUR",
                    mode=selector.NumberSelectorMode.BOX,
                )
            ),
            # Sending
            vol.Optional(
                CONF_AUTO_SEND,
                default=self._get_value(CONF_AUTO_SEND, DEFAULT_AUTO_SEND),
            ): selector.BooleanSelector(),
            vol.Optional(
                CONF_REPORT_ZERO_RESULTS,
                default=self._get_value(CONF_REPORT_ZERO_RESULTS, DEFAULT_REPORT_ZERO_RESULTS),
            ): selector.BooleanSelector(),
            # Schedule
            vol.Optional(
                CONF_SEND_ENABLED,
                default=self._get_value(CONF_SEND_ENABLED, DEFAULT_SEND_ENABLED),
            ): selector.BooleanSelector(),
            vol.Required(
                CONF_SEND_INTERVAL,
                default=self._get_value(CONF_SEND_INTERVAL, DEFAULT_SEND_INTERVAL),
            ): selector.NumberSelector(
                selector.NumberSelectorConfig(
                    min=MIN_SEND_INTERVAL,
                    max=MAX_SEND_INTERVAL,
                    step=1,
                    unit_of_measurement="min",
                    mode=selector.NumberSelectorMode.BOX,
                )
            ),
            vol.Required(
                CONF_SEND_START_MINUTE,
                default=self._get_value(CONF_SEND_START_MINUTE, DEFAULT_SEND_START_MINUTE),
            ): selector.NumberSelector(
                selector.NumberSelectorConfig(
                    min=0,
                    max=59,
                    step=1,
                    unit_of_measurement="min",
                    mode=selector.NumberSelectorMode.SLIDER,
                )
            ),
            # Diagnostics
            vol.Optional(
                CONF_FILE_LOGGING,
                default=self._get_value(CONF_FILE_LOGGING, DEFAULT_FILE_LOGGING),
            ): selector.BooleanSelector(),
        }

        return self.async_show_form(
            step_id="init",
            data_schema=vol.Schema(schema_dict),
            errors=errors,
        )
