"""Daily time record checks for manual review."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from ..common.datetime_utils import is_weekend
from ..core.constants import EXCESSIVE_WORK_HOURS
from ..core.enums import AttendanceAnomaly, ProblemSeverity
from .model import ProcessedAttendance

_RANK = {ProblemSeverity.LOW: 1, ProblemSeverity.MEDIUM: 2, ProblemSeverity.HIGH: 3}


@dataclass(frozen=True)
class Problem:
    code: str
    severity: ProblemSeverity
    message: str


@dataclass(frozen=True)
class RecordProblems:
    employee_id: int
    attendance_date: str
    problems: List[Problem] = field(default_factory=list)

    @property
    def severity(self) -> Optional[ProblemSeverity]:
        if not self.problems:
            return None
        return max((p.severity for p in self.problems), key=_RANK.__getitem__)

    @property
    def has_problems(self) -> bool:
        return bool(self.problems)


def detect_problems(record: ProcessedAttendance) -> RecordProblems:
    found: List[Problem] = []

    def add(code: str, severity: ProblemSeverity, message: str) -> None:
        found.append(Problem(code=code, severity=severity, message=message))

    has_in = record.time_in is not None
    has_out = record.time_out is not None or record.next_day_timeout is not None

    if not has_in:
        add("missing_time_in", ProblemSeverity.HIGH, "No time in recorded")
    if not has_out:
        if has_in and record.late_minutes > 0:
            add("late_no_timeout", ProblemSeverity.HIGH, "Late arrival without a time out")
        else:
            add("missing_time_out", ProblemSeverity.HIGH, "No time out recorded")

    if (record.break_in is None) != (record.break_out is None):
        add("missing_break_times", ProblemSeverity.LOW, "Only one of break in/out recorded")
    elif record.break_in is not None and record.break_out <= record.break_in:
        add("invalid_break_sequence", ProblemSeverity.MEDIUM, "Break ends before it starts")

    if record.anomaly == AttendanceAnomaly.TIME_OUT_BEFORE_TIME_IN:
        add("negative_hours", ProblemSeverity.HIGH, "Time out is before time in on a day shift")

    if record.hours_worked > EXCESSIVE_WORK_HOURS:
        add("excessive_hours", ProblemSeverity.MEDIUM, f"More than {EXCESSIVE_WORK_HOURS} hours worked")

    if record.is_nightshift and record.next_day_timeout is None:
        add("night_shift_issues", ProblemSeverity.MEDIUM, "Night shift without a next-day time out")

    if has_in and is_weekend(record.attendance_date) and not record.is_restday and record.overtime_hours <= Decimal("0"):
        add("weekend_attendance", ProblemSeverity.LOW, "Weekend attendance without rest day or overtime")

    return RecordProblems(
        employee_id=record.employee_id,
        attendance_date=record.attendance_date.isoformat(),
        problems=found,
    )
