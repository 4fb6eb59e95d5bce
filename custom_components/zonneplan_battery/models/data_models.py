"""Data models for the Zonneplan Battery integration."""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from homeassistant.util import dt as dt_util


class TradingMode(str, Enum):
    """Trading strategies known to Onbalansmarkt."""

    MANUAL = "manual"
    IMBALANCE = "imbalance"
    IMBALANCE_AGGRESSIVE = "imbalance_aggressive"
    SELF_CONSUMPTION_PLUS = "self_consumption_plus"
    # Accepted by the API, not offered in the options flow
    DAY_AHEAD = "day_ahead"
    SELF_CONSUMPTION = "self_consumption"

    @classmethod
    def configurable(cls) -> list[TradingMode]:
        """Modes a user can pick in the options flow."""
        return [
            cls.MANUAL,
            cls.IMBALANCE,
            cls.IMBALANCE_AGGRESSIVE,
            cls.SELF_CONSUMPTION_PLUS,
        ]


def _number(value: Any, default: float = 0.0) -> float:
    """Coerce a stored or restored value to float, falling back on junk."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str) and value:
        moment = dt_util.parse_datetime(value)
        if moment is None:
            return dt_util.now()
    else:
        return dt_util.now()
    if moment.tzinfo is None:
        return dt_util.as_local(moment)
    return moment


@dataclass(frozen=True)
class Measurement:
    """Snapshot of battery trading state at one point in time.

    Instances are never mutated: a newer snapshot replaces the old one.
    """

    timestamp: datetime
    daily_earned: float = 0.0
    total_earned: float = 0.0
    daily_charged: float = 0.0
    daily_discharged: float = 0.0
    battery_percentage: float = 0.0
    cycle_count: int = 0
    load_balancing_active: bool = False

    def is_stale(self, now: datetime, max_age_hours: float) -> bool:
        """Check if the snapshot is older than the given age."""
        return now - self.timestamp > timedelta(hours=max_age_hours)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted record."""
        return {
            "dailyEarned": self.daily_earned,
            "totalEarned": self.total_earned,
            "dailyCharged": self.daily_charged,
            "dailyDischarged": self.daily_discharged,
            "batteryPercentage": self.battery_percentage,
            "cycleCount": self.cycle_count,
            "loadBalancingActive": self.load_balancing_active,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Measurement:
        """Restore from a persisted record, tolerating missing keys."""
        return cls(
            timestamp=_parse_timestamp(data.get("timestamp")),
            daily_earned=_number(data.get("dailyEarned")),
            total_earned=_number(data.get("totalEarned")),
            daily_charged=_number(data.get("dailyCharged")),
            daily_discharged=_number(data.get("dailyDischarged")),
            battery_percentage=_number(data.get("batteryPercentage")),
            cycle_count=int(_number(data.get("cycleCount"))),
            load_balancing_active=bool(data.get("loadBalancingActive", False)),
        )


@dataclass(frozen=True)
class RankingSnapshot:
    """Leaderboard position as reported by Onbalansmarkt.

    Replaced wholesale on every poll, missing figures are zero.
    """

    overall_rank: int = 0
    provider_rank: int = 0
    reported_charged: float = 0.0
    reported_discharged: float = 0.0


@dataclass
class DailyResult:
    """One day of results from the /api/me endpoint."""

    date: str = ""
    type: str = ""
    mode: str = ""
    note: str = ""
    battery_result: float = 0.0
    battery_result_total: float = 0.0
    battery_result_imbalance: float = 0.0
    battery_result_epex: float = 0.0
    battery_result_custom: float = 0.0
    solar_result: float = 0.0
    charger_result: float = 0.0
    battery_charged: float | None = None
    battery_discharged: float | None = None
    overall_rank: int = 0
    provider_rank: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DailyResult:
        """Parse an API result object."""
        charged = data.get("batteryCharged")
        discharged = data.get("batteryDischarged")
        return cls(
            date=str(data.get("date") or ""),
            type=str(data.get("type") or ""),
            mode=str(data.get("mode") or ""),
            note=str(data.get("note") or ""),
            battery_result=_number(data.get("batteryResult")),
            battery_result_total=_number(data.get("batteryResultTotal")),
            battery_result_imbalance=_number(data.get("batteryResultImbalance")),
            battery_result_epex=_number(data.get("batteryResultEpex")),
            battery_result_custom=_number(data.get("batteryResultCustom")),
            solar_result=_number(data.get("solarResult")),
            charger_result=_number(data.get("chargerResult")),
            battery_charged=None if charged is None else _number(charged),
            battery_discharged=None if discharged is None else _number(discharged),
            overall_rank=int(_number(data.get("overallRank"))),
            provider_rank=int(_number(data.get("providerRank"))),
        )


@dataclass
class Profile:
    """Account profile with today's and yesterday's results."""

    username: str
    name: str
    result_today: DailyResult | None = None
    result_yesterday: DailyResult | None = None

    def ranking(self) -> RankingSnapshot:
        """Derive the ranking snapshot for today."""
        today = self.result_today
        if today is None:
            return RankingSnapshot()
        return RankingSnapshot(
            overall_rank=today.overall_rank,
            provider_rank=today.provider_rank,
            reported_charged=today.battery_charged or 0.0,
            reported_discharged=today.battery_discharged or 0.0,
        )


# Wire names for LiveMeasurement fields, in payload order
_WIRE_NAMES = {
    "timestamp": "timestamp",
    "battery_result": "batteryResult",
    "battery_result_total": "batteryResultTotal",
    "battery_charge": "batteryCharge",
    "battery_power": "batteryPower",
    "charged_today": "chargedToday",
    "discharged_today": "dischargedToday",
    "load_balancing_active": "loadBalancingActive",
    "solar_result": "solarResult",
    "charger_result": "chargerResult",
    "battery_result_epex": "batteryResultEpex",
    "battery_result_imbalance": "batteryResultImbalance",
    "battery_result_custom": "batteryResultCustom",
    "battery_result_accounting": "batteryResultAccounting",
    "total_battery_cycles": "totalBatteryCycles",
    "mode": "mode",
}


def format_wire_number(value: float | int) -> str:
    """Render a number the way the API expects it (no trailing .0)."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@dataclass
class LiveMeasurement:
    """Measurement as submitted to /api/live."""

    timestamp: datetime
    battery_result: float
    battery_result_total: float
    battery_charge: float | None = None
    battery_power: float | None = None
    charged_today: int | None = None
    discharged_today: int | None = None
    load_balancing_active: str | None = None
    solar_result: float | None = None
    charger_result: float | None = None
    battery_result_epex: float | None = None
    battery_result_imbalance: float | None = None
    battery_result_custom: float | None = None
    battery_result_accounting: float | None = None
    total_battery_cycles: int | None = None
    mode: TradingMode | None = None

    def to_payload(self) -> dict[str, str]:
        """Build the string-encoded field map, leaving out absent fields.

        Raises:
            ValueError: If a required field is missing
        """
        if (
            self.timestamp is None
            or self.battery_result is None
            or self.battery_result_total is None
        ):
            raise ValueError(
                "timestamp, batteryResult and batteryResultTotal are required fields"
            )

        payload: dict[str, str] = {}
        for field in fields(self):
            value = getattr(self, field.name)
            if value is None:
                continue
            wire_name = _WIRE_NAMES[field.name]
            if isinstance(value, datetime):
                payload[wire_name] = dt_util.as_utc(value).isoformat(
                    timespec="milliseconds"
                ).replace("+00:00", "Z")
            elif isinstance(value, TradingMode):
                payload[wire_name] = value.value
            elif isinstance(value, str):
                payload[wire_name] = value
            else:
                payload[wire_name] = format_wire_number(value)
        return payload
