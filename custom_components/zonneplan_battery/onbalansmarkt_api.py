"""Onbalansmarkt.com API client.

Submits live battery measurements and reads the account profile with
ranking information. Every call is a single bounded round trip without
retries; scheduling and retrying belong to the caller.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import date, timedelta
from http import HTTPStatus
from typing import Any

import aiohttp
from aiohttp import hdrs

from homeassistant.util import dt as dt_util

from .const import API_TIMEOUT_SECONDS, API_URL_LIVE, API_URL_ME
from .exceptions import RemoteRejected, RemoteUnexpectedFormat, RemoteUnreachable
from .models import DailyResult, LiveMeasurement, Profile

_LOGGER = logging.getLogger(__name__)

_HTML_HINT = " (HTML response - API may be down or invalid API key)"


def _status_text(status: int) -> str:
    try:
        return f"HTTP {status} {HTTPStatus(status).phrase}"
    except ValueError:
        return f"HTTP {status}"


class OnbalansmarktClient:
    """Client for the Onbalansmarkt.com API."""

    def __init__(self, session: aiohttp.ClientSession, api_key: str) -> None:
        """Initialize the client.

        Args:
            session: aiohttp client session
            api_key: Onbalansmarkt API key (bearer token)
        """
        self.session = session
        self.api_key = api_key.strip()

    @property
    def _headers(self) -> dict[str, str]:
        """Return auth headers for API requests."""
        return {
            hdrs.ACCEPT: "application/json",
            hdrs.AUTHORIZATION: f"Bearer {self.api_key}",
        }

    async def _describe_error(self, response: aiohttp.ClientResponse) -> str:
        """Build an error description from a non-2xx response."""
        details = _status_text(response.status)
        content_type = response.headers.get(hdrs.CONTENT_TYPE, "")

        if "application/json" in content_type:
            try:
                error_data = await response.json(content_type=None)
            except (ValueError, aiohttp.ContentTypeError):
                pass
            else:
                details += f": {json.dumps(error_data)}"
        elif "text/html" in content_type:
            details += _HTML_HINT

        return details

    async def async_send_measurement(self, measurement: LiveMeasurement) -> str:
        """Send a measurement to /api/live.

        Args:
            measurement: Wire measurement; absent optional fields are left out

        Returns:
            Response body text

        Raises:
            RemoteRejected: Non-2xx answer
            RemoteUnreachable: Network failure or timeout
        """
        payload = measurement.to_payload()
        _LOGGER.debug("Sending measurement to Onbalansmarkt: %s", payload)

        try:
            async with self.session.post(
                API_URL_LIVE,
                headers=self._headers,
                json=payload,
                timeout=aiohttp.ClientTimeout(total=API_TIMEOUT_SECONDS),
            ) as response:
                if not HTTPStatus.OK <= response.status < HTTPStatus.MULTIPLE_CHOICES:
                    details = await self._describe_error(response)
                    raise RemoteRejected(
                        response.status,
                        f"Failed to send measurement: API returned {details}",
                    )
                text = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            raise RemoteUnreachable(
                f"Failed to send measurement: {str(err) or type(err).__name__}"
            ) from err

        _LOGGER.debug("Measurement accepted by Onbalansmarkt")
        return text

    async def async_get_profile(self, today: date | None = None) -> Profile:
        """Fetch the profile with today's and yesterday's results.

        Args:
            today: Calendar day to look up in legacy list responses
                (defaults to the local date)

        Returns:
            Parsed profile

        Raises:
            RemoteRejected: Non-2xx answer
            RemoteUnreachable: Network failure or timeout
            RemoteUnexpectedFormat: Answer is not JSON
        """
        try:
            async with self.session.get(
                API_URL_ME,
                headers=self._headers,
                timeout=aiohttp.ClientTimeout(total=API_TIMEOUT_SECONDS),
            ) as response:
                if not HTTPStatus.OK <= response.status < HTTPStatus.MULTIPLE_CHOICES:
                    details = await self._describe_error(response)
                    raise RemoteRejected(
                        response.status,
                        f"Failed to fetch profile: API returned {details}",
                    )

                content_type = response.headers.get(hdrs.CONTENT_TYPE, "")
                if "application/json" not in content_type:
                    preview = (await response.text())[:200]
                    _LOGGER.debug("Unexpected profile response: %s", preview)
                    raise RemoteUnexpectedFormat(
                        f"Expected JSON response but got {content_type or 'no content type'}. "
                        "API may have changed or invalid API key."
                    )

                try:
                    data = await response.json(content_type=None)
                except ValueError as err:
                    raise RemoteUnexpectedFormat(
                        f"Failed to decode profile response: {err}"
                    ) from err
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            raise RemoteUnreachable(
                f"Failed to fetch profile: {str(err) or type(err).__name__}"
            ) from err

        if not isinstance(data, dict):
            raise RemoteUnexpectedFormat("Profile response is not a JSON object")

        return parse_profile(data, today or dt_util.now().date())


def _find_result(results: list[Any], day: date) -> DailyResult | None:
    wanted = day.isoformat()
    for item in results:
        if isinstance(item, dict) and item.get("date") == wanted:
            return DailyResult.from_dict(item)
    return None


def _legacy_results(data: dict[str, Any]) -> list[Any] | None:
    """Locate the list of dated results in an older response shape."""
    profile = data.get("profile")
    candidates = (
        data.get("results"),
        profile.get("results") if isinstance(profile, dict) else None,
        data.get("dailyResults"),
    )
    for candidate in candidates:
        if isinstance(candidate, list):
            return candidate
    return None


def parse_profile(data: dict[str, Any], today: date) -> Profile:
    """Parse a /api/me response in either the current or the legacy shape."""
    today_raw = data.get("resultToday")
    yesterday_raw = data.get("resultYesterday")

    result_today = DailyResult.from_dict(today_raw) if isinstance(today_raw, dict) else None
    result_yesterday = (
        DailyResult.from_dict(yesterday_raw) if isinstance(yesterday_raw, dict) else None
    )

    if result_today is None and result_yesterday is None:
        results = _legacy_results(data)
        if results is not None:
            result_today = _find_result(results, today)
            result_yesterday = _find_result(results, today - timedelta(days=1))

    return Profile(
        username=str(data.get("username") or ""),
        name=str(data.get("name") or ""),
        result_today=result_today,
        result_yesterday=result_yesterday,
    )
