from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import HalfDayPeriod, LeaveType, PayType, RequestStatus
from ..workflow.model import Approval

ZERO = Decimal("0.0")


@dataclass(frozen=True)
class LeaveBalance:
    """One SLVL bank row: (employee, leave type, year)."""

    employee_id: int
    leave_type: LeaveType
    year: int
    total_days: Decimal = ZERO
    used_days: Decimal = ZERO
    remaining_days: Decimal = ZERO
    notes: Optional[str] = None
    exists: bool = True


@dataclass(frozen=True)
class LedgerEntry:
    employee_id: int
    leave_type: LeaveType
    year: int
    operation: str
    days: Decimal
    created_at: datetime
    request_id: Optional[int] = None
    actor_id: Optional[int] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class SLVLRequest:
    request_id: int
    employee_id: int
    department: Optional[str]
    leave_type: LeaveType
    start_date: date
    end_date: date
    total_days: Decimal
    pay_type: PayType
    bank_year: int
    status: RequestStatus
    created_by: int
    created_at: datetime
    half_day: bool = False
    am_pm: Optional[HalfDayPeriod] = None
    reason: Optional[str] = None
    documents_path: Optional[str] = None
    review: Optional[Approval] = None
    admin_override: Optional[Approval] = None

    @property
    def draws_on_bank(self) -> bool:
        return self.pay_type == PayType.WITH_PAY and self.leave_type.is_banked


@dataclass(frozen=True)
class NewLeave:
    employee_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    total_days: Decimal
    pay_type: PayType
    bank_year: int
    half_day: bool = False
    am_pm: Optional[HalfDayPeriod] = None
    reason: Optional[str] = None
    documents_path: Optional[str] = None
