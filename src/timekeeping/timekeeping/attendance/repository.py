from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from .model import LinkedFields, ProcessedAttendance, RawPunch


class AttendanceRepository(Protocol):
    # Raw punches
    def add_punches(self, punches: Sequence[RawPunch]) -> int:
        """Store punches, ignoring ones already ingested; returns how many were new."""

        raise NotImplementedError

    def list_punches(self, *, employee_id: int, start: datetime, end: datetime) -> Sequence[RawPunch]:
        raise NotImplementedError

    # Processed attendance
    def get_for_employee_and_date(self, employee_id: int, attendance_date: date) -> Optional[ProcessedAttendance]:
        raise NotImplementedError

    def save(self, record: ProcessedAttendance, *, expected_version: Optional[int]) -> bool:
        """Insert when ``expected_version`` is None, else update only that version.

        Returns False when another writer got there first.
        """

        raise NotImplementedError

    def list_range(
        self,
        *,
        start_date: date,
        end_date: date,
        employee_id: Optional[int] = None,
        department: Optional[str] = None,
    ) -> Sequence[ProcessedAttendance]:
        raise NotImplementedError

    def mark_posted(
        self,
        *,
        start_date: date,
        end_date: date,
        posted_by: int,
        posted_at: datetime,
        employee_id: Optional[int] = None,
    ) -> int:
        raise NotImplementedError

    def apply_linked(self, *, employee_id: int, attendance_date: date, linked: LinkedFields) -> bool:
        """Overwrite the request-linked fields of an unposted row.

        Returns False when there is no such row or it is already posted.
        """

        raise NotImplementedError
