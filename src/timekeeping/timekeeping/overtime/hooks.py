from __future__ import annotations

from ..attendance.hooks import AttendanceSyncHook
from .model import OvertimeRequest


class OvertimeAttendanceHook(AttendanceSyncHook):
    """Stamps approved overtime hours on the matching attendance row."""

    label = "overtime"

    def dates_of(self, subject: OvertimeRequest):
        return [subject.overtime_date]
