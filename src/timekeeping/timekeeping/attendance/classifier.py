"""Time classification: punches in, metrics out.

Pure and deterministic: the same day punches always give the same metrics,
which keeps backfills and replays safe.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal

from ..common.datetime_utils import minutes_between
from ..core.constants import DEFAULT_BREAK_MINUTES, DEFAULT_EXPECTED_TIME_IN, STANDARD_WORK_MINUTES
from ..core.enums import AttendanceAnomaly
from .model import AttendanceMetrics, DayPunches

_HOURS = Decimal("0.01")


def _unprocessable(day: DayPunches, anomaly: AttendanceAnomaly) -> AttendanceMetrics:
    return AttendanceMetrics(
        hours_worked=Decimal("0.00"),
        late_minutes=0,
        undertime_minutes=0,
        break_minutes=0,
        net_worked_minutes=0,
        is_nightshift=day.is_nightshift,
        is_processable=False,
        anomaly=anomaly,
    )


def effective_time_out(day: DayPunches):
    if day.is_nightshift and day.next_day_timeout is not None:
        return day.next_day_timeout
    return day.time_out


def break_minutes(day: DayPunches, *, default_break_minutes: int = DEFAULT_BREAK_MINUTES) -> int:
    if day.break_in is not None and day.break_out is not None and day.break_out > day.break_in:
        return minutes_between(day.break_in, day.break_out)
    return int(default_break_minutes)


def late_minutes(time_in: datetime, *, expected_time_in: time = DEFAULT_EXPECTED_TIME_IN) -> int:
    expected = datetime.combine(time_in.date(), expected_time_in)
    return max(0, minutes_between(expected, time_in))


def classify(
    day: DayPunches,
    *,
    expected_time_in: time = DEFAULT_EXPECTED_TIME_IN,
    default_break_minutes: int = DEFAULT_BREAK_MINUTES,
    standard_work_minutes: int = STANDARD_WORK_MINUTES,
) -> AttendanceMetrics:
    if day.time_in is None:
        return _unprocessable(day, AttendanceAnomaly.MISSING_TIME_IN)

    time_out = effective_time_out(day)
    if time_out is None:
        return _unprocessable(day, AttendanceAnomaly.MISSING_TIME_OUT)

    if time_out < day.time_in:
        if not day.is_nightshift:
            return _unprocessable(day, AttendanceAnomaly.TIME_OUT_BEFORE_TIME_IN)
        time_out += timedelta(hours=24)

    total = minutes_between(day.time_in, time_out)
    brk = break_minutes(day, default_break_minutes=default_break_minutes)
    net = max(0, total - brk)

    return AttendanceMetrics(
        hours_worked=(Decimal(net) / Decimal(60)).quantize(_HOURS, rounding=ROUND_HALF_UP),
        late_minutes=late_minutes(day.time_in, expected_time_in=expected_time_in),
        undertime_minutes=max(0, int(standard_work_minutes) - net),
        break_minutes=brk,
        net_worked_minutes=net,
        is_nightshift=day.is_nightshift,
    )
