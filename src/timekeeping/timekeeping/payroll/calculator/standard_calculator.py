from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from .base import PayrollCalculator
from ...attendance.model import ProcessedAttendance
from ...overtime.model import OvertimeRequest

_HOURS = Decimal("0.01")


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule: flagged rows count zero hours; premium = hours x multiplier."""

    def worked_hours(self, row: ProcessedAttendance) -> Decimal:
        if not row.is_processable:
            return Decimal("0.00")
        return Decimal(row.hours_worked)

    def premium_hours(self, overtime: OvertimeRequest) -> Decimal:
        return (overtime.total_hours * overtime.rate_multiplier).quantize(_HOURS, rounding=ROUND_HALF_UP)
