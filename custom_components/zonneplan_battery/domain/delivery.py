"""Delivery policy: what gets sent, and whether it gets sent at all."""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from ..models import LiveMeasurement, Measurement, TradingMode


def should_send(measurement: Measurement, report_zero_results: bool) -> bool:
    """Apply the zero-result policy.

    A day without trading result is only reported when the user asked for it.
    """
    return measurement.daily_earned != 0 or report_zero_results


def adjusted_total(measurement: Measurement, offset: float) -> float:
    """Lifetime earnings with the configured offset applied."""
    return round(measurement.total_earned + offset, 2)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def build_live_measurement(
    measurement: Measurement,
    offset: float,
    trading_mode: TradingMode,
) -> LiveMeasurement:
    """Map a stored measurement onto the wire record.

    The offset is applied here only; the measurement itself is left as received.
    Energy and cycle figures are left out while they are still zero.
    """
    return LiveMeasurement(
        timestamp=measurement.timestamp,
        battery_result=measurement.daily_earned,
        battery_result_total=adjusted_total(measurement, offset),
        battery_charge=measurement.battery_percentage,
        charged_today=(
            _round_half_up(measurement.daily_charged)
            if measurement.daily_charged > 0
            else None
        ),
        discharged_today=(
            _round_half_up(measurement.daily_discharged)
            if measurement.daily_discharged > 0
            else None
        ),
        total_battery_cycles=(
            measurement.cycle_count if measurement.cycle_count > 0 else None
        ),
        load_balancing_active="on" if measurement.load_balancing_active else "off",
        mode=trading_mode,
    )


def measurement_from_payload(payload: Mapping[str, Any], now: datetime) -> Measurement:
    """Build a measurement from an inbound metric event.

    Absent numbers become 0, an absent flag becomes False and an absent
    timestamp becomes ``now``.
    """
    timestamp = payload.get("timestamp") or now
    if isinstance(timestamp, str):
        timestamp = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    if timestamp.tzinfo is None:
        # Naive times are in the same zone as the caller's clock
        timestamp = timestamp.replace(tzinfo=now.tzinfo)
    return Measurement(
        timestamp=timestamp,
        daily_earned=float(payload.get("daily_earned") or 0),
        total_earned=float(payload.get("total_earned") or 0),
        daily_charged=float(payload.get("daily_charged") or 0),
        daily_discharged=float(payload.get("daily_discharged") or 0),
        battery_percentage=float(payload.get("battery_percentage") or 0),
        cycle_count=int(payload.get("cycle_count") or 0),
        load_balancing_active=bool(payload.get("load_balancing_active") or False),
    )
