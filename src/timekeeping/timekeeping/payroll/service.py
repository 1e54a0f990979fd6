from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from ..attendance.repository import AttendanceRepository
from ..core.constants import HALF_DAY
from ..core.enums import APPROVED_STATUSES, PayType
from ..core.exceptions import ValidationError
from ..employees.repository import EmployeeRepository
from ..leave.model import SLVLRequest
from ..leave.repository import LeaveRequestRepository
from ..overtime.repository import OvertimeRepository
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator


def leave_days_within(lv: SLVLRequest, start: date, end: date) -> Decimal:
    """Days of a leave request that fall inside [start, end]."""

    first = max(lv.start_date, start)
    last = min(lv.end_date, end)
    if last < first:
        return Decimal("0")
    if lv.half_day:
        return HALF_DAY
    return min(Decimal((last - first).days + 1), lv.total_days)


@dataclass
class PayrollSummary:
    employee_id: int
    full_name: str = ""
    department: Optional[str] = None
    days_present: int = 0
    hours_worked: Decimal = Decimal("0.00")
    late_minutes: int = 0
    undertime_minutes: int = 0
    overtime_hours: Decimal = Decimal("0.00")
    overtime_premium_hours: Decimal = Decimal("0.00")
    leave_days_with_pay: Decimal = Decimal("0.0")
    leave_days_without_pay: Decimal = Decimal("0.0")
    flagged_records: int = 0


class PayrollFeedService:
    """Read-only aggregates for the external payroll step."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        overtimes: OvertimeRepository,
        leaves: LeaveRequestRepository,
        employees: EmployeeRepository,
        *,
        calculator: Optional[PayrollCalculator] = None,
    ):
        self._attendance = attendance
        self._overtimes = overtimes
        self._leaves = leaves
        self._employees = employees
        self._calculator = calculator or StandardPayrollCalculator()

    def build_summary(
        self,
        *,
        start: date,
        end: date,
        employee_id: Optional[int] = None,
        department: Optional[str] = None,
    ) -> List[PayrollSummary]:
        if end < start:
            raise ValidationError("End date must not be before start date")

        summary_map: Dict[int, PayrollSummary] = {}

        def entry(emp_id: int) -> PayrollSummary:
            s = summary_map.get(emp_id)
            if s is None:
                s = PayrollSummary(employee_id=emp_id)
                summary_map[emp_id] = s
            return s

        for row in self._attendance.list_range(
            start_date=start, end_date=end, employee_id=employee_id, department=department
        ):
            s = entry(row.employee_id)
            if not row.is_processable:
                s.flagged_records += 1
                continue
            s.days_present += 1
            s.hours_worked += self._calculator.worked_hours(row)
            s.late_minutes += int(row.late_minutes)
            s.undertime_minutes += int(row.undertime_minutes)

        for ot in self._overtimes.list_in_range(
            start=start, end=end, statuses=APPROVED_STATUSES, employee_id=employee_id, department=department
        ):
            s = entry(ot.employee_id)
            s.overtime_hours += ot.total_hours
            s.overtime_premium_hours += self._calculator.premium_hours(ot)

        for lv in self._leaves.list_in_range(
            start=start, end=end, statuses=APPROVED_STATUSES, employee_id=employee_id, department=department
        ):
            s = entry(lv.employee_id)
            days = leave_days_within(lv, start, end)
            if lv.pay_type == PayType.WITH_PAY:
                s.leave_days_with_pay += days
            else:
                s.leave_days_without_pay += days

        for emp_id, s in summary_map.items():
            emp = self._employees.get_by_id(emp_id)
            if emp:
                s.full_name = emp.full_name
                s.department = emp.department

        return sorted(summary_map.values(), key=lambda x: (x.full_name, x.employee_id))
