from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import AttendanceAnomaly, PostingStatus, PunchState


@dataclass(frozen=True)
class RawPunch:
    """One biometric event, immutable once ingested."""

    employee_id: int
    punched_at: datetime
    punch_state: PunchState
    device_id: Optional[str] = None


@dataclass(frozen=True)
class DayPunches:
    """The clock events of one employee-day, before any metrics."""

    employee_id: int
    attendance_date: date
    time_in: Optional[datetime] = None
    time_out: Optional[datetime] = None
    break_in: Optional[datetime] = None
    break_out: Optional[datetime] = None
    next_day_timeout: Optional[datetime] = None
    is_nightshift: bool = False

    @property
    def is_empty(self) -> bool:
        return not any((self.time_in, self.time_out, self.break_in, self.break_out, self.next_day_timeout))


@dataclass(frozen=True)
class AttendanceMetrics:
    hours_worked: Decimal
    late_minutes: int
    undertime_minutes: int
    break_minutes: int
    net_worked_minutes: int
    is_nightshift: bool
    is_processable: bool = True
    anomaly: Optional[AttendanceAnomaly] = None


@dataclass(frozen=True)
class LinkedFields:
    """Attendance fields carried over from approved requests."""

    overtime_hours: Decimal = Decimal("0")
    travel_order_hours: Decimal = Decimal("0")
    slvl_days: Decimal = Decimal("0")
    trip_count: int = 0
    offset_hours: Decimal = Decimal("0")
    is_ob: bool = False

    def as_fields(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ProcessedAttendance:
    """One computed row per employee per calendar date."""

    employee_id: int
    attendance_date: date
    time_in: Optional[datetime]
    time_out: Optional[datetime]
    break_in: Optional[datetime]
    break_out: Optional[datetime]
    next_day_timeout: Optional[datetime]
    is_nightshift: bool
    hours_worked: Decimal
    late_minutes: int
    undertime_minutes: int
    is_processable: bool = True
    anomaly: Optional[AttendanceAnomaly] = None
    overtime_hours: Decimal = Decimal("0")
    travel_order_hours: Decimal = Decimal("0")
    slvl_days: Decimal = Decimal("0")
    trip_count: int = 0
    offset_hours: Decimal = Decimal("0")
    holiday_multiplier: Decimal = Decimal("1")
    is_restday: bool = False
    is_ct: bool = False
    is_cs: bool = False
    is_ob: bool = False
    posting_status: PostingStatus = PostingStatus.NOT_POSTED
    posted_at: Optional[datetime] = None
    posted_by: Optional[int] = None
    attendance_id: Optional[int] = None
    version: int = 0

    @property
    def is_posted(self) -> bool:
        return self.posting_status == PostingStatus.POSTED

    @property
    def day_punches(self) -> DayPunches:
        return DayPunches(
            employee_id=self.employee_id,
            attendance_date=self.attendance_date,
            time_in=self.time_in,
            time_out=self.time_out,
            break_in=self.break_in,
            break_out=self.break_out,
            next_day_timeout=self.next_day_timeout,
            is_nightshift=self.is_nightshift,
        )

    def computed_fields(self) -> tuple:
        """Fields the classifier owns; equal tuples mean nothing to write."""

        return (
            self.time_in,
            self.time_out,
            self.break_in,
            self.break_out,
            self.next_day_timeout,
            self.is_nightshift,
            self.hours_worked,
            self.late_minutes,
            self.undertime_minutes,
            self.is_processable,
            self.anomaly,
        )

    def linked_fields(self) -> LinkedFields:
        return LinkedFields(
            overtime_hours=self.overtime_hours,
            travel_order_hours=self.travel_order_hours,
            slvl_days=self.slvl_days,
            trip_count=self.trip_count,
            offset_hours=self.offset_hours,
            is_ob=self.is_ob,
        )


@dataclass(frozen=True)
class RecalculationSummary:
    processed: int = 0
    updated: int = 0
    unchanged: int = 0
    skipped_posted: int = 0
    flagged: int = 0
    conflicts: int = 0
