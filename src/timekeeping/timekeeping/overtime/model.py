from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import OvertimeType, RequestStatus
from ..workflow.model import Approval


@dataclass(frozen=True)
class OvertimeRequest:
    request_id: int
    employee_id: int
    department: Optional[str]
    overtime_date: date
    start_time: datetime
    end_time: datetime
    total_hours: Decimal
    overtime_type: OvertimeType
    has_night_differential: bool
    rate_multiplier: Decimal
    status: RequestStatus
    created_by: int
    created_at: datetime
    reason: Optional[str] = None
    rate_edited: bool = False
    rate_edited_at: Optional[datetime] = None
    rate_edited_by: Optional[int] = None
    department_approval: Optional[Approval] = None
    hrd_approval: Optional[Approval] = None
    admin_override: Optional[Approval] = None

    @property
    def premium_hours(self) -> Decimal:
        return self.total_hours * self.rate_multiplier


@dataclass(frozen=True)
class NewOvertime:
    employee_id: int
    overtime_date: date
    start_time: datetime
    end_time: datetime
    total_hours: Decimal
    overtime_type: OvertimeType
    has_night_differential: bool
    rate_multiplier: Decimal
    reason: Optional[str] = None
