from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal

from ...attendance.model import ProcessedAttendance
from ...overtime.model import OvertimeRequest


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll feeds)."""

    @abstractmethod
    def worked_hours(self, row: ProcessedAttendance) -> Decimal:
        raise NotImplementedError

    @abstractmethod
    def premium_hours(self, overtime: OvertimeRequest) -> Decimal:
        raise NotImplementedError
