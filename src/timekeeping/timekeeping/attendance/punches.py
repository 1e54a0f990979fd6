"""Turning raw punches into one employee-day."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Tuple

from ..core.constants import NEXT_DAY_TIMEOUT_CUTOFF
from ..core.enums import PunchState
from .model import DayPunches, RawPunch


def punch_window(attendance_date: date, *, cutoff: time = NEXT_DAY_TIMEOUT_CUTOFF) -> Tuple[datetime, datetime]:
    """Punches that may belong to ``attendance_date``: the day itself plus the next morning."""

    start = datetime.combine(attendance_date, time.min)
    end = datetime.combine(attendance_date + timedelta(days=1), cutoff)
    return start, end


def normalize(punches: Iterable[RawPunch]) -> List[RawPunch]:
    """Drop replayed duplicates and order by time."""

    seen = set()
    out: List[RawPunch] = []
    for p in punches:
        key = (p.employee_id, p.punched_at, p.punch_state)
        if key in seen:
            continue
        seen.add(key)
        out.append(p)
    out.sort(key=lambda p: (p.punched_at, p.punch_state.value))
    return out


def _first(punches: List[RawPunch], state: PunchState, after: Optional[datetime] = None) -> Optional[datetime]:
    for p in punches:
        if p.punch_state == state and (after is None or p.punched_at >= after):
            return p.punched_at
    return None


def _last(punches: List[RawPunch], state: PunchState, after: Optional[datetime] = None) -> Optional[datetime]:
    found = None
    for p in punches:
        if p.punch_state == state and (after is None or p.punched_at >= after):
            found = p.punched_at
    return found


def assemble_day(
    employee_id: int,
    attendance_date: date,
    punches: Iterable[RawPunch],
    *,
    cutoff: time = NEXT_DAY_TIMEOUT_CUTOFF,
) -> DayPunches:
    ordered = [p for p in normalize(punches) if p.employee_id == employee_id]
    next_date = attendance_date + timedelta(days=1)
    morning_end = datetime.combine(next_date, cutoff)

    same_day = [p for p in ordered if p.punched_at.date() == attendance_date]
    next_morning = [p for p in ordered if p.punched_at.date() == next_date and p.punched_at < morning_end]

    time_in = _first(same_day, PunchState.IN)

    if time_in is None:
        # An OUT before the cutoff with no IN that day closes the previous night's shift.
        day_start_cutoff = datetime.combine(attendance_date, cutoff)
        time_out = _last([p for p in same_day if p.punched_at >= day_start_cutoff], PunchState.OUT)
        return DayPunches(
            employee_id=employee_id,
            attendance_date=attendance_date,
            time_out=time_out,
            break_in=_first(same_day, PunchState.BREAK_IN, after=day_start_cutoff),
            break_out=_last(same_day, PunchState.BREAK_OUT, after=day_start_cutoff),
        )

    time_out = _last(same_day, PunchState.OUT, after=time_in)
    next_day_timeout = None
    is_nightshift = False
    if time_out is None:
        next_day_timeout = _first(next_morning, PunchState.OUT)
        is_nightshift = next_day_timeout is not None

    shift_end = time_out or next_day_timeout
    window = [p for p in same_day + next_morning if p.punched_at >= time_in and (shift_end is None or p.punched_at <= shift_end)]
    break_in = _first(window, PunchState.BREAK_IN)
    break_out = _last(window, PunchState.BREAK_OUT, after=break_in)

    return DayPunches(
        employee_id=employee_id,
        attendance_date=attendance_date,
        time_in=time_in,
        time_out=time_out,
        break_in=break_in,
        break_out=break_out,
        next_day_timeout=next_day_timeout,
        is_nightshift=is_nightshift,
    )
