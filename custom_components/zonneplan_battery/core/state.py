"""Settings and runtime state for one Zonneplan Battery device.

ZonneplanState holds the one current measurement and the latest ranking.
Settings are rebuilt from the config entry on every change and never
patched in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from homeassistant.const import CONF_API_KEY

from ..const import (
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
    DEFAULT_POLL_INTERVAL,
    DEFAULT_REPORT_ZERO_RESULTS,
    DEFAULT_SEND_ENABLED,
    DEFAULT_SEND_INTERVAL,
    DEFAULT_SEND_START_MINUTE,
    DEFAULT_TOTAL_EARNED_OFFSET,
    DEFAULT_TRADING_MODE,
)
from ..models import Measurement, RankingSnapshot, TradingMode

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry


@dataclass(frozen=True)
class DeviceSettings:
    """User configuration for one device."""

    api_key: str = ""
    poll_interval: int = DEFAULT_POLL_INTERVAL
    trading_mode: TradingMode = TradingMode(DEFAULT_TRADING_MODE)
    total_earned_offset: float = DEFAULT_TOTAL_EARNED_OFFSET
    auto_send: bool = DEFAULT_AUTO_SEND
    report_zero_results: bool = DEFAULT_REPORT_ZERO_RESULTS
    send_enabled: bool = DEFAULT_SEND_ENABLED
    send_interval: int = DEFAULT_SEND_INTERVAL
    send_start_minute: int = DEFAULT_SEND_START_MINUTE
    file_logging: bool = DEFAULT_FILE_LOGGING

    @property
    def has_credential(self) -> bool:
        """Check if an API key is configured."""
        return bool(self.api_key)

    def schedule_changed(self, other: DeviceSettings) -> bool:
        """Check if any setting that drives the timers differs."""
        return (
            self.api_key != other.api_key
            or self.poll_interval != other.poll_interval
            or self.send_enabled != other.send_enabled
            or self.send_interval != other.send_interval
            or self.send_start_minute != other.send_start_minute
        )

    def changed_keys(self, other: DeviceSettings) -> list[str]:
        """Names of the settings that differ from ``other``."""
        return [
            name
            for name in self.__dataclass_fields__
            if getattr(self, name) != getattr(other, name)
        ]

    @classmethod
    def from_entry(cls, entry: ConfigEntry) -> DeviceSettings:
        """Read settings from a config entry; options override data."""

        def get_config(key: str, default: Any) -> Any:
            value = entry.options.get(key, entry.data.get(key, default))
            return default if value is None else value

        try:
            trading_mode = TradingMode(get_config(CONF_TRADING_MODE, DEFAULT_TRADING_MODE))
        except ValueError:
            trading_mode = TradingMode(DEFAULT_TRADING_MODE)

        return cls(
            api_key=str(get_config(CONF_API_KEY, "")).strip(),
            poll_interval=int(get_config(CONF_POLL_INTERVAL, DEFAULT_POLL_INTERVAL)),
            trading_mode=trading_mode,
            total_earned_offset=float(
                get_config(CONF_TOTAL_EARNED_OFFSET, DEFAULT_TOTAL_EARNED_OFFSET)
            ),
            auto_send=bool(get_config(CONF_AUTO_SEND, DEFAULT_AUTO_SEND)),
            report_zero_results=bool(
                get_config(CONF_REPORT_ZERO_RESULTS, DEFAULT_REPORT_ZERO_RESULTS)
            ),
            send_enabled=bool(get_config(CONF_SEND_ENABLED, DEFAULT_SEND_ENABLED)),
            send_interval=int(get_config(CONF_SEND_INTERVAL, DEFAULT_SEND_INTERVAL)),
            send_start_minute=int(
                get_config(CONF_SEND_START_MINUTE, DEFAULT_SEND_START_MINUTE)
            ),
            file_logging=bool(get_config(CONF_FILE_LOGGING, DEFAULT_FILE_LOGGING)),
        )


@dataclass
class ZonneplanState:
    """Runtime state of one device."""

    settings: DeviceSettings = field(default_factory=DeviceSettings)

    # Current measurement slot, replaced on every ingestion
    measurement: Measurement | None = None

    ranking: RankingSnapshot = field(default_factory=RankingSnapshot)
    profile_username: str | None = None

    # Scheduler bookkeeping, for display only
    next_send_at: datetime | None = None
    last_sent_at: datetime | None = None
    last_send_error: str | None = None

    @property
    def has_measurement(self) -> bool:
        """Check if a measurement was ever received or restored."""
        return self.measurement is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for diagnostics and logging."""
        return {
            "measurement": self.measurement.to_dict() if self.measurement else None,
            "overall_rank": self.ranking.overall_rank,
            "provider_rank": self.ranking.provider_rank,
            "send_enabled": self.settings.send_enabled,
            "next_send_at": self.next_send_at.isoformat() if self.next_send_at else None,
            "last_sent_at": self.last_sent_at.isoformat() if self.last_sent_at else None,
            "last_send_error": self.last_send_error,
        }
