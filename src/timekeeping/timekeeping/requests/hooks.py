from __future__ import annotations

from ..attendance.hooks import AttendanceSyncHook
from ..common.datetime_utils import iter_dates
from .model import SimpleRequest


class RequestAttendanceHook(AttendanceSyncHook):
    """Copies approved travel orders, offsets and official business onto attendance."""

    def dates_of(self, subject: SimpleRequest):
        return iter_dates(subject.request_date, subject.end_date or subject.request_date)

    def label_of(self, subject: SimpleRequest) -> str:
        return subject.kind.value
