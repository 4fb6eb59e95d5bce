"""Domain logic module - pure business logic without HA state.

All modules in this package contain pure functions that:
- Take inputs and produce outputs
- Have no side effects
- Are easy to unit test
"""

from .curve import CurveError, calculate_curve_value
from .delivery import (
    adjusted_total,
    build_live_measurement,
    measurement_from_payload,
    should_send,
)
from .schedule import (
    minutes_until_next_send,
    next_send_time,
    seconds_until_next_send,
)

__all__ = [
    "CurveError",
    "adjusted_total",
    "build_live_measurement",
    "calculate_curve_value",
    "measurement_from_payload",
    "minutes_until_next_send",
    "next_send_time",
    "seconds_until_next_send",
    "should_send",
]
