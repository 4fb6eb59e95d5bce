"""Test the aligned send-time calculation."""
from datetime import datetime, timedelta, timezone

import pytest

from custom_components.zonneplan_battery.domain.schedule import (
    minutes_until_next_send,
    next_send_time,
    seconds_until_next_send,
)

UTC = timezone.utc


def _at(hour: int, minute: int, second: int = 0, microsecond: int = 0) -> datetime:
    return datetime(2024, 3, 5, hour, minute, second, microsecond, tzinfo=UTC)


def test_first_send_after_current_minute():
    """10:07 with a quarter-hour cadence sends at 10:15."""
    now = _at(10, 7)

    assert next_send_time(now, 0, 15) == _at(10, 15)
    assert seconds_until_next_send(now, 0, 15) == 8 * 60


def test_exact_boundary_moves_to_next_one():
    """At 10:15:00 sharp the next send is 10:30."""
    now = _at(10, 15)

    assert next_send_time(now, 0, 15) == _at(10, 30)
    assert seconds_until_next_send(now, 0, 15) == 15 * 60


def test_before_start_minute_uses_start_minute():
    assert next_send_time(_at(10, 2), 5, 15) == _at(10, 5)


def test_overflow_into_next_hour():
    assert next_send_time(_at(10, 50), 0, 15) == _at(11, 0)
    assert next_send_time(_at(10, 59, 59), 5, 30) == _at(11, 5)


def test_multi_hour_interval_does_not_wrap():
    """Intervals longer than an hour count on from the top of the hour."""
    assert next_send_time(_at(10, 0, 30), 0, 120) == _at(12, 0)
    assert next_send_time(_at(23, 30), 0, 1440) == _at(23, 0) + timedelta(days=1)


@pytest.mark.parametrize(
    ("now", "expected"),
    [
        (_at(11, 30), _at(11, 45)),
        (_at(11, 45), _at(12, 30)),
        (_at(12, 30), _at(12, 45)),
    ],
)
def test_interval_not_dividing_hour_restarts_each_hour(now: datetime, expected: datetime):
    """A 45 minute cadence is counted from the top of each hour, not from the last send."""
    assert next_send_time(now, 0, 45) == expected


def test_seconds_are_zeroed():
    result = next_send_time(_at(10, 7, 42, 123456), 0, 5)

    assert result == _at(10, 10)
    assert result.second == 0
    assert result.microsecond == 0


def test_invalid_interval():
    with pytest.raises(ValueError):
        next_send_time(_at(10, 0), 0, 0)


@pytest.mark.parametrize("interval", [5, 10, 15, 20, 25, 30, 45, 60, 90, 120])
@pytest.mark.parametrize("start_minute", [0, 7, 30, 59])
def test_next_send_is_future_and_aligned(start_minute: int, interval: int):
    """Every result is in the future and on a boundary of the current hour."""
    for minute in range(60):
        for second in (0, 1, 59):
            now = _at(10, minute, second)
            result = next_send_time(now, start_minute, interval)
            top_of_hour = now.replace(minute=0, second=0, microsecond=0)
            offset_minutes = (result - top_of_hour).total_seconds() / 60

            assert result > now
            assert offset_minutes == int(offset_minutes)
            assert (int(offset_minutes) - start_minute) % interval == 0


@pytest.mark.parametrize("interval", [5, 10, 15, 20, 30, 60, 120, 1440])
@pytest.mark.parametrize("start_minute", [0, 3])
def test_recompute_after_send_has_no_drift(start_minute: int, interval: int):
    """Recomputing right at each boundary yields exactly one interval later."""
    moment = next_send_time(_at(9, 58), start_minute, interval)
    for _ in range(12):
        following = next_send_time(moment, start_minute, interval)
        assert following - moment == timedelta(minutes=interval)
        moment = following


def test_countdown_rounds_up_and_is_idempotent():
    now = _at(10, 7, 30)

    first = minutes_until_next_send(now, 0, 15)
    second = minutes_until_next_send(now + timedelta(milliseconds=400), 0, 15)

    assert first == 8
    assert first == second


def test_countdown_right_after_boundary():
    """One second after 10:15 the full interval remains."""
    assert minutes_until_next_send(_at(10, 15, 1), 0, 15) == 15


def test_local_timezone_is_kept():
    amsterdam = timezone(timedelta(hours=1))
    now = datetime(2024, 3, 5, 10, 7, tzinfo=amsterdam)

    result = next_send_time(now, 0, 15)

    assert result.tzinfo == amsterdam
    assert (result.hour, result.minute) == (10, 15)
