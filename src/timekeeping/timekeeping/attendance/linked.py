"""Attendance fields that come from approved requests rather than punches.

Every value is rebuilt from the approved requests covering one employee-day,
so refreshing a row twice gives the same result.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Protocol

from ..core.constants import HALF_DAY, REGULAR_HOURS_PER_DAY
from ..core.enums import APPROVED_STATUSES, PayType, RequestKind
from ..leave.repository import LeaveRequestRepository
from ..overtime.repository import OvertimeRepository
from ..requests.repository import SimpleRequestRepository
from .model import LinkedFields


class LinkedFieldsSource(Protocol):
    def for_day(self, employee_id: int, attendance_date: date) -> LinkedFields:
        raise NotImplementedError


class ApprovedRequestLinks(LinkedFieldsSource):
    """Sums approved overtime, leave, travel, offset and OB requests for one day."""

    def __init__(
        self,
        overtimes: OvertimeRepository,
        leaves: LeaveRequestRepository,
        requests: SimpleRequestRepository,
    ):
        self._overtimes = overtimes
        self._leaves = leaves
        self._requests = requests

    def for_day(self, employee_id: int, attendance_date: date) -> LinkedFields:
        day = dict(start=attendance_date, end=attendance_date, statuses=APPROVED_STATUSES, employee_id=int(employee_id))

        overtime_hours = sum((ot.total_hours for ot in self._overtimes.list_in_range(**day)), Decimal("0"))

        # Unpaid leave is absence, not a leave credit.
        slvl_days = Decimal("0")
        for lv in self._leaves.list_in_range(**day):
            if lv.pay_type == PayType.WITH_PAY:
                slvl_days += HALF_DAY if lv.half_day else Decimal("1")

        travel_hours = offset_hours = Decimal("0")
        trips = 0
        is_ob = False
        for req in self._requests.list_in_range(**day):
            if req.kind == RequestKind.TRAVEL_ORDER:
                trips += 1
                travel_hours += req.hours if req.hours is not None else REGULAR_HOURS_PER_DAY
            elif req.kind == RequestKind.OFFSET:
                offset_hours += req.hours or Decimal("0")
            elif req.kind == RequestKind.OFFICIAL_BUSINESS:
                is_ob = True

        return LinkedFields(
            overtime_hours=overtime_hours,
            travel_order_hours=travel_hours,
            slvl_days=min(slvl_days, Decimal("1")),
            trip_count=trips,
            offset_hours=offset_hours,
            is_ob=is_ob,
        )
