from datetime import date, datetime, time
from decimal import Decimal

from src.timekeeping.timekeeping.attendance.classifier import break_minutes, classify
from src.timekeeping.timekeeping.attendance.model import DayPunches
from src.timekeeping.timekeeping.core.enums import AttendanceAnomaly

D = date(2025, 3, 10)


def at(h, m=0, d=D):
    return datetime.combine(d, time(h, m))


def test_default_break_when_no_break_punches():
    day = DayPunches(employee_id=1, attendance_date=D, time_in=at(8, 15), time_out=at(17, 0))
    m = classify(day)
    assert m.break_minutes == 60
    assert m.net_worked_minutes == 465
    assert m.hours_worked == Decimal("7.75")
    assert m.late_minutes == 15
    assert m.undertime_minutes == 15
    assert m.is_processable


def test_recorded_break_replaces_default():
    day = DayPunches(
        employee_id=1,
        attendance_date=D,
        time_in=at(8, 15),
        time_out=at(17, 0),
        break_in=at(12, 0),
        break_out=at(12, 45),
    )
    m = classify(day)
    assert m.break_minutes == 45
    assert m.net_worked_minutes == 480
    assert m.hours_worked == Decimal("8.00")
    assert m.late_minutes == 15
    assert m.undertime_minutes == 0


def test_break_out_before_break_in_falls_back_to_default():
    day = DayPunches(
        employee_id=1, attendance_date=D, time_in=at(8), time_out=at(17), break_in=at(13), break_out=at(12)
    )
    assert break_minutes(day) == 60


def test_missing_time_in_is_unprocessable():
    day = DayPunches(employee_id=1, attendance_date=D, time_out=at(17))
    m = classify(day)
    assert not m.is_processable
    assert m.anomaly == AttendanceAnomaly.MISSING_TIME_IN
    assert m.hours_worked == Decimal("0.00")


def test_missing_time_out_is_unprocessable():
    m = classify(DayPunches(employee_id=1, attendance_date=D, time_in=at(8)))
    assert not m.is_processable
    assert m.anomaly == AttendanceAnomaly.MISSING_TIME_OUT


def test_day_shift_time_out_before_time_in_is_flagged_not_negative():
    day = DayPunches(employee_id=1, attendance_date=D, time_in=at(17), time_out=at(8))
    m = classify(day)
    assert not m.is_processable
    assert m.anomaly == AttendanceAnomaly.TIME_OUT_BEFORE_TIME_IN
    assert m.hours_worked == Decimal("0.00")


def test_night_shift_uses_next_day_timeout():
    day = DayPunches(
        employee_id=1,
        attendance_date=D,
        time_in=at(22),
        next_day_timeout=at(6, 0, date(2025, 3, 11)),
        is_nightshift=True,
    )
    m = classify(day)
    assert m.is_processable
    assert m.is_nightshift
    assert m.net_worked_minutes == 420
    assert m.hours_worked == Decimal("7.00")


def test_knobs_are_respected():
    day = DayPunches(employee_id=1, attendance_date=D, time_in=at(8, 0), time_out=at(16, 0))
    m = classify(day, expected_time_in=time(7, 30), default_break_minutes=30, standard_work_minutes=420)
    assert m.late_minutes == 30
    assert m.net_worked_minutes == 450
    assert m.undertime_minutes == 0


def test_classification_is_deterministic():
    day = DayPunches(employee_id=1, attendance_date=D, time_in=at(8, 7), time_out=at(17, 13))
    assert classify(day) == classify(day)


def test_early_or_on_time_arrival_is_never_late():
    for h, m in ((7, 45), (8, 0)):
        day = DayPunches(employee_id=1, attendance_date=D, time_in=at(h, m), time_out=at(17))
        assert classify(day).late_minutes == 0
    day = DayPunches(employee_id=1, attendance_date=D, time_in=at(8, 1), time_out=at(17))
    assert classify(day).late_minutes == 1
