"""Zonneplan Battery Coordinator - orchestrator for one device.

It owns the lifecycle of a config entry:
- Restores the last measurement on start
- Runs the send, poll and countdown timers
- Handles inbound metrics and manual sends
- Rebuilds the timers when the settings change

Decisions live in the domain modules; this class only wires them to
Home Assistant.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from homeassistant.core import CALLBACK_TYPE, HassJob, callback
from homeassistant.helpers.aiohttp_client import async_get_clientsession
from homeassistant.helpers.event import async_call_later, async_track_time_interval
from homeassistant.util import dt as dt_util

from .const import (
    COUNTDOWN_UPDATE_SECONDS,
    DISPLAY_BATTERY,
    DISPLAY_CYCLE_COUNT,
    DISPLAY_DAILY_CHARGED,
    DISPLAY_DAILY_DISCHARGED,
    DISPLAY_DAILY_EARNED,
    DISPLAY_LAST_UPDATE,
    DISPLAY_LOAD_BALANCING,
    DISPLAY_NEXT_SEND,
    DISPLAY_OVERALL_RANK,
    DISPLAY_PROVIDER_RANK,
    DISPLAY_REPORTED_CHARGED,
    DISPLAY_REPORTED_DISCHARGED,
    DISPLAY_TOTAL_EARNED,
    METRICS_STALE_HOURS,
)
from .core import (
    DeviceSettings,
    PublishedValues,
    ZonneplanEvent,
    ZonneplanEventBus,
    ZonneplanState,
)
from .domain import (
    adjusted_total,
    build_live_measurement,
    measurement_from_payload,
    minutes_until_next_send,
    next_send_time,
    should_send,
)
from .exceptions import ConfigurationMissing, ZonneplanBatteryError
from .infra import MetricsStore
from .models import Measurement
from .onbalansmarkt_api import OnbalansmarktClient
from .zonneplan_logging import get_logger

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

TRIGGER_SCHEDULED = "scheduled"
TRIGGER_AUTO = "auto"
TRIGGER_MANUAL = "manual"


class ZonneplanCoordinator:
    """Orchestrator for one Zonneplan battery."""

    def __init__(self, hass: HomeAssistant, entry: ConfigEntry) -> None:
        """Initialize the coordinator."""
        self.hass = hass
        self.entry = entry
        self._logger = get_logger()

        self.state = ZonneplanState(settings=DeviceSettings.from_entry(entry))
        self.events = ZonneplanEventBus(hass, entry.entry_id)
        self.display = PublishedValues(hass, entry.entry_id)
        self.store = MetricsStore(hass, entry.entry_id)

        self._client: OnbalansmarktClient | None = None

        # Timer handles; None means the timer is not running
        self._send_unsub: CALLBACK_TYPE | None = None
        self._poll_unsub: CALLBACK_TYPE | None = None
        self._countdown_unsub: CALLBACK_TYPE | None = None
        self._send_target: datetime | None = None

        self._send_job = HassJob(
            self._handle_send_timer,
            f"zonneplan_battery send {entry.entry_id}",
            cancel_on_shutdown=True,
        )

        self._logger.info("COORDINATOR_INIT", entry_id=entry.entry_id, title=entry.title)

    @property
    def settings(self) -> DeviceSettings:
        """Current settings."""
        return self.state.settings

    @property
    def measurement(self) -> Measurement | None:
        """Current measurement, if any."""
        return self.state.measurement

    @property
    def send_loop_running(self) -> bool:
        """Check if the scheduled send timer is armed."""
        return self._send_unsub is not None

    @property
    def poll_loop_running(self) -> bool:
        """Check if the ranking poll timer is running."""
        return self._poll_unsub is not None

    @property
    def countdown_running(self) -> bool:
        """Check if the countdown timer is running."""
        return self._countdown_unsub is not None

    # ========== Lifecycle ==========

    async def async_start(self) -> None:
        """Restore the last measurement and start the timers.

        Called after the platforms are set up so restored entity values
        are available for the fallback reconstruction.
        """
        self._logger.info("COORDINATOR_START")
        await self._async_restore_measurement()
        self._start_timers()

    @callback
    def async_stop(self) -> None:
        """Stop all timers."""
        self._stop_timers()
        self._logger.info("COORDINATOR_STOPPED", **self.state.to_dict())

    async def async_handle_config_change(self) -> None:
        """Apply changed settings from the config entry.

        Timers are recreated from scratch when a setting that drives them
        changed; other changes take effect on the next send.
        """
        old = self.state.settings
        new = DeviceSettings.from_entry(self.entry)
        if new == old:
            return

        self.state.settings = new
        changed = new.changed_keys(old)
        self._logger.info("SETTINGS_CHANGED", keys=",".join(changed))

        if new.schedule_changed(old):
            self._logger.info("SCHEDULER_RESTART")
            self._stop_timers()
            self._start_timers()

        if new.total_earned_offset != old.total_earned_offset and self.measurement:
            self.display.publish_all(self._measurement_values(self.measurement))

    # ========== Ingestion ==========

    async def async_handle_event(self, payload: Mapping[str, Any]) -> Measurement:
        """Handle an inbound metric payload.

        Every step runs even when an earlier side effect failed:
        1. Replace the current measurement
        2. Persist it
        3. Publish the display values
        4. Auto-send if enabled and allowed
        5. Fire the metrics updated event
        """
        measurement = measurement_from_payload(payload, dt_util.now())
        self._logger.info("METRICS_RECEIVED", **measurement.to_dict())

        self.state.measurement = measurement

        await self.store.async_save(measurement)

        failed = self.display.publish_all(self._measurement_values(measurement))
        if failed:
            self._logger.warning("DISPLAY_UPDATE_INCOMPLETE", failed=",".join(failed))

        if self.settings.auto_send:
            await self._async_send_guarded(measurement, TRIGGER_AUTO)

        self.events.emit(
            ZonneplanEvent.METRICS_UPDATED,
            daily_earned=measurement.daily_earned,
            total_earned=adjusted_total(measurement, self.settings.total_earned_offset),
            daily_charged=measurement.daily_charged,
            daily_discharged=measurement.daily_discharged,
            battery_percentage=measurement.battery_percentage,
            cycle_count=measurement.cycle_count,
            load_balancing_active=measurement.load_balancing_active,
            timestamp=measurement.timestamp.isoformat(),
        )
        return measurement

    # ========== Delivery ==========

    async def async_send_now(self, simulate: bool = False) -> dict[str, str]:
        """Send the current measurement right away.

        The zero-result policy does not apply here and errors are raised
        to the caller.

        Args:
            simulate: Build and log the payload without calling the API

        Returns:
            The payload that was (or would have been) sent

        Raises:
            ConfigurationMissing: No measurement yet, or no API key
            RemoteRejected: The API refused the measurement
            RemoteUnreachable: The API could not be reached
        """
        if not self.state.has_measurement:
            raise ConfigurationMissing(
                "No metrics available. Please receive Zonneplan metrics first."
            )
        return await self._async_deliver(self.measurement, TRIGGER_MANUAL, simulate=simulate)

    async def _async_deliver(
        self,
        measurement: Measurement,
        trigger: str,
        simulate: bool = False,
    ) -> dict[str, str]:
        """Single delivery path for scheduled, automatic and manual sends."""
        settings = self.settings
        wire = build_live_measurement(
            measurement, settings.total_earned_offset, settings.trading_mode
        )
        payload = wire.to_payload()

        self._logger.separator("SIMULATED LIVE MEASUREMENT" if simulate else "LIVE MEASUREMENT")
        self._logger.info(
            "MEASUREMENT_PAYLOAD",
            trigger=trigger,
            simulate=simulate,
            offset=settings.total_earned_offset,
            **payload,
        )

        if simulate:
            self._logger.info("MEASUREMENT_SIMULATED", trigger=trigger)
            return payload

        client = self._client
        if client is None:
            raise ConfigurationMissing("Onbalansmarkt API key not configured")

        try:
            await client.async_send_measurement(wire)
        except ZonneplanBatteryError as err:
            self.state.last_send_error = str(err)
            self._publish_countdown()
            self.events.emit(
                ZonneplanEvent.MEASUREMENT_FAILED, trigger=trigger, error=str(err)
            )
            raise

        self.state.last_sent_at = dt_util.now()
        self.state.last_send_error = None
        self._publish_countdown()
        self.events.emit(
            ZonneplanEvent.MEASUREMENT_SENT,
            trigger=trigger,
            battery_result=wire.battery_result,
            battery_result_total=wire.battery_result_total,
            timestamp=payload["timestamp"],
        )
        return payload

    async def _async_send_guarded(
        self, measurement: Measurement | None, trigger: str
    ) -> None:
        """Send for the scheduled and automatic paths; never raises."""
        if measurement is None:
            self._logger.info("SEND_SKIPPED_NO_METRICS", trigger=trigger)
            return

        if not should_send(measurement, self.settings.report_zero_results):
            self._logger.info("SEND_SKIPPED_ZERO_RESULT", trigger=trigger)
            self.events.emit(
                ZonneplanEvent.MEASUREMENT_SKIPPED, trigger=trigger, reason="zero_result"
            )
            return

        try:
            await self._async_deliver(measurement, trigger)
        except ConfigurationMissing as err:
            self._logger.info("SEND_SKIPPED_NOT_CONFIGURED", trigger=trigger, reason=str(err))
        except ZonneplanBatteryError as err:
            self._logger.warning("SEND_FAILED", trigger=trigger, error=str(err))
        except Exception as ex:
            self._logger.error(
                "SEND_ERROR", trigger=trigger, error=f"{type(ex).__name__}: {ex}"
            )

    # ========== Ranking ==========

    async def async_refresh_ranking(self) -> None:
        """Fetch the profile and republish the ranking; never raises."""
        client = self._client
        if client is None:
            return

        try:
            profile = await client.async_get_profile()
        except ZonneplanBatteryError as err:
            self._logger.warning("PROFILE_FETCH_FAILED", error=str(err))
            self.events.emit(ZonneplanEvent.PROFILE_FAILED, error=str(err))
            return
        except Exception as ex:
            self._logger.error("PROFILE_FETCH_ERROR", error=f"{type(ex).__name__}: {ex}")
            return

        ranking = profile.ranking()
        self.state.ranking = ranking
        self.state.profile_username = profile.username or None

        self.display.publish_all(
            {
                DISPLAY_OVERALL_RANK: lambda: ranking.overall_rank,
                DISPLAY_PROVIDER_RANK: lambda: ranking.provider_rank,
                DISPLAY_REPORTED_CHARGED: lambda: ranking.reported_charged,
                DISPLAY_REPORTED_DISCHARGED: lambda: ranking.reported_discharged,
            }
        )
        self.events.emit(
            ZonneplanEvent.PROFILE_UPDATED,
            overall_rank=ranking.overall_rank,
            provider_rank=ranking.provider_rank,
        )

    # ========== Timers ==========

    @callback
    def _start_timers(self) -> None:
        """Create the poll, send and countdown timers from the current settings."""
        settings = self.settings

        if settings.has_credential:
            self._client = OnbalansmarktClient(
                async_get_clientsession(self.hass), settings.api_key
            )
        else:
            self._client = None
            self._logger.info("API_KEY_MISSING")

        if self._client is not None:
            self._poll_unsub = async_track_time_interval(
                self.hass,
                self._handle_poll_timer,
                timedelta(seconds=settings.poll_interval),
                name=f"zonneplan_battery poll {self.entry.entry_id}",
                cancel_on_shutdown=True,
            )
            self.entry.async_create_background_task(
                self.hass,
                self.async_refresh_ranking(),
                f"zonneplan_battery initial poll {self.entry.entry_id}",
            )
            self._logger.info("POLL_LOOP_STARTED", interval_s=settings.poll_interval)

        if settings.send_enabled and self._client is not None:
            self._arm_send_timer()
            self._countdown_unsub = async_track_time_interval(
                self.hass,
                self._handle_countdown_timer,
                timedelta(seconds=COUNTDOWN_UPDATE_SECONDS),
                name=f"zonneplan_battery countdown {self.entry.entry_id}",
                cancel_on_shutdown=True,
            )
            self._logger.info(
                "SEND_LOOP_STARTED",
                interval_min=settings.send_interval,
                start_minute=settings.send_start_minute,
                first_send=self._send_target.isoformat() if self._send_target else None,
            )

        self._publish_countdown()

    @callback
    def _stop_timers(self) -> None:
        """Cancel every timer and forget its handle."""
        if self._send_unsub is not None:
            self._send_unsub()
            self._send_unsub = None
            self._logger.info("SEND_LOOP_STOPPED")
        if self._poll_unsub is not None:
            self._poll_unsub()
            self._poll_unsub = None
            self._logger.info("POLL_LOOP_STOPPED")
        if self._countdown_unsub is not None:
            self._countdown_unsub()
            self._countdown_unsub = None

        self._send_target = None
        self.state.next_send_at = None
        self._client = None

    @callback
    def _arm_send_timer(self, after: datetime | None = None) -> None:
        """Arm the one-shot send timer for the next boundary.

        ``after`` is the boundary the previous timer was armed for; a timer
        firing a little early must not pick that boundary again.
        """
        now = dt_util.now()
        reference = now if after is None or after < now else after
        target = next_send_time(
            reference, self.settings.send_start_minute, self.settings.send_interval
        )
        self._send_target = target
        self.state.next_send_at = target
        self._send_unsub = async_call_later(
            self.hass, (target - now).total_seconds(), self._send_job
        )
        self._logger.debug("SEND_TIMER_ARMED", target=target.isoformat())

    async def _handle_send_timer(self, _now: datetime) -> None:
        """Fire a scheduled send and re-arm for the next boundary."""
        fired_for = self._send_target
        self._send_unsub = None
        self._arm_send_timer(after=fired_for)
        self._publish_countdown()

        await self._async_send_guarded(self.measurement, TRIGGER_SCHEDULED)

    async def _handle_poll_timer(self, _now: datetime) -> None:
        await self.async_refresh_ranking()

    @callback
    def _handle_countdown_timer(self, _now: datetime) -> None:
        self._publish_countdown()

    @callback
    def _publish_countdown(self) -> None:
        """Publish whole minutes until the next send, 0 when not scheduled."""

        def countdown() -> int:
            if not self.send_loop_running:
                return 0
            return minutes_until_next_send(
                dt_util.now(),
                self.settings.send_start_minute,
                self.settings.send_interval,
            )

        self.display.publish_all({DISPLAY_NEXT_SEND: countdown})

    # ========== Restore ==========

    async def _async_restore_measurement(self) -> None:
        """Load the measurement from storage, or approximate it from the display."""
        now = dt_util.now()
        measurement = await self.store.async_load()

        if measurement is not None:
            if measurement.is_stale(now, METRICS_STALE_HOURS):
                self._logger.warning(
                    "METRICS_RESTORED_STALE", timestamp=measurement.timestamp.isoformat()
                )
            else:
                self._logger.info("METRICS_RESTORED", source="store")
            # The store is written on every ingestion, so it beats restored entity state
            self.display.publish_all(self._measurement_values(measurement))
        else:
            measurement = self._reconstruct_from_display()
            if measurement is None:
                self._logger.info("METRICS_NOT_AVAILABLE")
                return
            self._logger.info("METRICS_RESTORED", source="display")

        self.state.measurement = measurement
        self.events.emit(
            ZonneplanEvent.METRICS_RESTORED, timestamp=measurement.timestamp.isoformat()
        )

    def _reconstruct_from_display(self) -> Measurement | None:
        """Approximate a measurement from the last published values.

        The published total includes the offset, so it is taken off again.
        The timestamp becomes the current time.
        """
        daily_earned = self.display.get(DISPLAY_DAILY_EARNED)
        if daily_earned is None:
            return None

        try:
            measurement = Measurement.from_dict(
                {
                    "dailyEarned": daily_earned,
                    "totalEarned": self.display.get(DISPLAY_TOTAL_EARNED),
                    "dailyCharged": self.display.get(DISPLAY_DAILY_CHARGED),
                    "dailyDischarged": self.display.get(DISPLAY_DAILY_DISCHARGED),
                    "batteryPercentage": self.display.get(DISPLAY_BATTERY),
                    "cycleCount": self.display.get(DISPLAY_CYCLE_COUNT),
                    "loadBalancingActive": bool(self.display.get(DISPLAY_LOAD_BALANCING)),
                }
            )
        except (TypeError, ValueError) as err:
            self._logger.error("METRICS_RECONSTRUCT_FAILED", error=str(err))
            return None

        return replace(
            measurement,
            total_earned=round(
                measurement.total_earned - self.settings.total_earned_offset, 2
            ),
        )

    # ========== Display ==========

    def _measurement_values(
        self, measurement: Measurement
    ) -> dict[str, Callable[[], Any]]:
        """Display values derived from a measurement."""
        offset = self.settings.total_earned_offset
        return {
            DISPLAY_BATTERY: lambda: measurement.battery_percentage,
            DISPLAY_DAILY_EARNED: lambda: measurement.daily_earned,
            DISPLAY_TOTAL_EARNED: lambda: adjusted_total(measurement, offset),
            DISPLAY_DAILY_CHARGED: lambda: measurement.daily_charged,
            DISPLAY_DAILY_DISCHARGED: lambda: measurement.daily_discharged,
            DISPLAY_CYCLE_COUNT: lambda: measurement.cycle_count,
            DISPLAY_LOAD_BALANCING: lambda: measurement.load_balancing_active,
            DISPLAY_LAST_UPDATE: lambda: measurement.timestamp,
        }
