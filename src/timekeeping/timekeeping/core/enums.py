from __future__ import annotations

from enum import Enum


class RequestStatus(str, Enum):
    """Approval states shared by every request kind."""

    PENDING = "pending"
    MANAGER_APPROVED = "manager_approved"
    APPROVED = "approved"
    REJECTED = "rejected"
    FORCE_APPROVED = "force_approved"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def is_approved(self) -> bool:
        return self in APPROVED_STATUSES


TERMINAL_STATUSES = frozenset(
    {RequestStatus.APPROVED, RequestStatus.REJECTED, RequestStatus.FORCE_APPROVED}
)

# States that count as approved for payroll and attendance.
APPROVED_STATUSES = (RequestStatus.APPROVED, RequestStatus.FORCE_APPROVED)


class RequestKind(str, Enum):
    OVERTIME = "overtime"
    SLVL = "slvl"
    TRAVEL_ORDER = "travel_order"
    OFFSET = "offset"
    RETRO = "retro"
    OFFICIAL_BUSINESS = "official_business"


# Kinds handled by the shared single-stage request table.
SIMPLE_REQUEST_KINDS = (
    RequestKind.TRAVEL_ORDER,
    RequestKind.OFFSET,
    RequestKind.RETRO,
    RequestKind.OFFICIAL_BUSINESS,
)


class ApprovalSlot(str, Enum):
    """Where an approval decision is recorded on a request."""

    DEPARTMENT = "department"
    HRD = "hrd"
    REVIEW = "review"
    ADMIN_OVERRIDE = "admin_override"


class OvertimeType(str, Enum):
    REGULAR_WEEKDAY = "regular_weekday"
    REST_DAY = "rest_day"
    SCHEDULED_REST_DAY = "scheduled_rest_day"
    REGULAR_HOLIDAY = "regular_holiday"
    SPECIAL_HOLIDAY = "special_holiday"
    REST_DAY_OVERTIME = "rest_day_overtime"
    SCHEDULED_REST_DAY_OVERTIME = "scheduled_rest_day_overtime"
    REGULAR_HOLIDAY_OVERTIME = "regular_holiday_overtime"
    SPECIAL_HOLIDAY_OVERTIME = "special_holiday_overtime"
    OTHER = "other"


class RateCategory(str, Enum):
    """Rows of the statutory multiplier table."""

    REGULAR_WEEKDAY = "regular_weekday"
    REST_DAY = "rest_day"
    REST_DAY_OVERTIME = "rest_day_overtime"
    SCHEDULED_REST_DAY = "scheduled_rest_day"
    SCHEDULED_REST_DAY_OVERTIME = "scheduled_rest_day_overtime"
    REGULAR_HOLIDAY = "regular_holiday"
    REGULAR_HOLIDAY_OVERTIME = "regular_holiday_overtime"


class LeaveType(str, Enum):
    SICK = "sick"
    VACATION = "vacation"
    EMERGENCY = "emergency"
    BEREAVEMENT = "bereavement"
    MATERNITY = "maternity"
    PATERNITY = "paternity"
    PERSONAL = "personal"
    STUDY = "study"

    @property
    def is_banked(self) -> bool:
        return self in (LeaveType.SICK, LeaveType.VACATION)


class PayType(str, Enum):
    WITH_PAY = "with_pay"
    NON_PAY = "non_pay"


class HalfDayPeriod(str, Enum):
    AM = "am"
    PM = "pm"


class PunchState(str, Enum):
    """Biometric punch states.

    BREAK_IN starts the break, BREAK_OUT resumes work.
    """

    IN = "in"
    OUT = "out"
    BREAK_IN = "break_in"
    BREAK_OUT = "break_out"


class PostingStatus(str, Enum):
    NOT_POSTED = "not_posted"
    POSTED = "posted"


class AttendanceAnomaly(str, Enum):
    """Reasons a ProcessedAttendance row is flagged unprocessable."""

    MISSING_TIME_IN = "missing_time_in"
    MISSING_TIME_OUT = "missing_time_out"
    TIME_OUT_BEFORE_TIME_IN = "time_out_before_time_in"


class ProblemSeverity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
