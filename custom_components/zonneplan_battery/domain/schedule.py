"""Aligned send-time calculation.

Sends happen at boundary minutes ``start_minute + k * interval_minutes``
counted from the top of the current hour. Everything here is derived from
the clock and the two settings only, so callers recompute instead of
keeping timer state.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone


def _add_minutes(moment: datetime, minutes: int) -> datetime:
    """Add minutes as elapsed time, not as wall-clock fields."""
    if moment.tzinfo is None:
        return moment + timedelta(minutes=minutes)
    shifted = moment.astimezone(timezone.utc) + timedelta(minutes=minutes)
    return shifted.astimezone(moment.tzinfo)


def next_send_time(
    now: datetime,
    start_minute: int,
    interval_minutes: int,
) -> datetime:
    """Calculate the next boundary strictly after ``now``.

    Algorithm:
    1. Before ``start_minute`` in this hour: the boundary is ``start_minute``
    2. Otherwise step from ``start_minute`` by ``interval_minutes`` until the
       boundary passes the current minute (may overflow into later hours)
    3. Zero seconds, and step once more if the candidate is not in the future

    Args:
        now: Current time
        start_minute: Minute offset within the hour (0-59)
        interval_minutes: Minutes between sends (> 0)

    Returns:
        Time of the next send
    """
    if interval_minutes <= 0:
        raise ValueError(f"interval_minutes must be positive, got {interval_minutes}")

    current_minute = now.minute
    if current_minute < start_minute:
        offset = start_minute
    else:
        steps = (current_minute - start_minute) // interval_minutes + 1
        offset = start_minute + steps * interval_minutes

    top_of_hour = now.replace(minute=0, second=0, microsecond=0)
    candidate = _add_minutes(top_of_hour, offset)

    if candidate <= now:
        candidate = _add_minutes(candidate, interval_minutes)

    return candidate


def seconds_until_next_send(
    now: datetime,
    start_minute: int,
    interval_minutes: int,
) -> float:
    """Delay in seconds until the next send."""
    return (next_send_time(now, start_minute, interval_minutes) - now).total_seconds()


def minutes_until_next_send(
    now: datetime,
    start_minute: int,
    interval_minutes: int,
) -> int:
    """Countdown value: whole minutes remaining, rounded up, never negative."""
    seconds = seconds_until_next_send(now, start_minute, interval_minutes)
    return max(0, math.ceil(seconds / 60))
