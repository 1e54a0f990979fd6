from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from ..core.enums import RequestKind, RequestStatus
from ..workflow.model import Approval


@dataclass(frozen=True)
class SimpleRequest:
    """Travel order, offset, retro or official business request.

    All four share one table and the single-stage workflow.
    """

    request_id: int
    kind: RequestKind
    employee_id: int
    department: Optional[str]
    request_date: date
    status: RequestStatus
    created_by: int
    created_at: datetime
    end_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    hours: Optional[Decimal] = None
    destination: Optional[str] = None
    reason: Optional[str] = None
    review: Optional[Approval] = None
    admin_override: Optional[Approval] = None


@dataclass(frozen=True)
class NewSimpleRequest:
    kind: RequestKind
    employee_id: int
    request_date: date
    end_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    hours: Optional[Decimal] = None
    destination: Optional[str] = None
    reason: Optional[str] = None
