from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..common.context import ActorContext
from ..common.results import BulkResult
from ..common.validators import optional_text, require_between
from ..core.constants import HALF_DAY, MAX_LEAVE_DAYS, MIN_LEAVE_DAYS
from ..core.enums import HalfDayPeriod, LeaveType, PayType, RequestKind, RequestStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..database.transactions import TransactionManager
from ..employees.repository import EmployeeRepository
from ..workflow.engine import WorkflowEngine
from ..workflow.model import TransitionEvent
from .ledger import LeaveLedger
from .model import NewLeave, SLVLRequest
from .repository import LeaveRequestRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LeaveDraft:
    employee_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    pay_type: PayType = PayType.WITH_PAY
    half_day: bool = False
    am_pm: Optional[HalfDayPeriod] = None
    bank_year: Optional[int] = None
    reason: Optional[str] = None
    documents_path: Optional[str] = None


def leave_days(start_date: date, end_date: date, *, half_day: bool = False) -> Decimal:
    if end_date < start_date:
        raise ValidationError("End date must not be before start date")
    if half_day:
        if end_date != start_date:
            raise ValidationError("A half-day leave must start and end on the same date")
        return HALF_DAY
    return Decimal((end_date - start_date).days + 1)


class LeaveService:
    def __init__(
        self,
        requests: LeaveRequestRepository,
        employees: EmployeeRepository,
        *,
        ledger: LeaveLedger,
        workflow: WorkflowEngine,
        transactions: TransactionManager,
    ):
        self._requests = requests
        self._employees = employees
        self._ledger = ledger
        self._workflow = workflow
        self._transactions = transactions

    def get(self, request_id: int) -> SLVLRequest:
        req = self._requests.get(request_id=int(request_id))
        if not req:
            raise NotFoundError(f"Leave request #{request_id} not found")
        return req

    def create(self, draft: LeaveDraft, ctx: ActorContext) -> SLVLRequest:
        employee = self._employees.get_by_id(int(draft.employee_id))
        if not employee:
            raise NotFoundError(f"Employee #{draft.employee_id} not found")
        if not employee.is_active:
            raise ValidationError(f"Employee #{draft.employee_id} is inactive")

        if draft.half_day and draft.am_pm is None:
            raise ValidationError("Half-day leave needs AM or PM")
        total_days = leave_days(draft.start_date, draft.end_date, half_day=draft.half_day)
        require_between(total_days, "Leave days", MIN_LEAVE_DAYS, MAX_LEAVE_DAYS)

        bank_year = self._ledger.check_year(
            draft.bank_year if draft.bank_year is not None else draft.start_date.year, ctx
        )

        data = NewLeave(
            employee_id=employee.employee_id,
            leave_type=draft.leave_type,
            start_date=draft.start_date,
            end_date=draft.end_date,
            total_days=total_days,
            pay_type=draft.pay_type,
            bank_year=bank_year,
            half_day=draft.half_day,
            am_pm=draft.am_pm if draft.half_day else None,
            reason=optional_text(draft.reason),
            documents_path=optional_text(draft.documents_path),
        )

        with self._transactions.atomic():
            if self._requests.has_overlap(
                employee_id=employee.employee_id, start_date=data.start_date, end_date=data.end_date
            ):
                raise ValidationError("The leave overlaps another request of this employee")
            self._ledger.reserve_and_check(
                employee.employee_id, data.leave_type, data.bank_year, data.total_days, data.pay_type
            )
            request_id = self._requests.create(
                data=data,
                department=employee.department,
                created_by=ctx.user_id,
                created_at=ctx.now,
            )

        logger.info(
            "Leave #%s created for #%s: %s %s days (%s, bank %s)",
            request_id,
            employee.employee_id,
            data.leave_type.value,
            data.total_days,
            data.pay_type.value,
            data.bank_year,
        )
        return self.get(request_id)

    def transition(
        self,
        request_id: int,
        target: RequestStatus,
        ctx: ActorContext,
        *,
        remarks: Optional[str] = None,
    ) -> TransitionEvent:
        return self._workflow.transition(RequestKind.SLVL, request_id=request_id, target=target, ctx=ctx, remarks=remarks)

    def bulk_transition(
        self,
        request_ids: Sequence[int],
        target: RequestStatus,
        ctx: ActorContext,
        *,
        remarks: Optional[str] = None,
    ) -> BulkResult:
        return self._workflow.bulk_transition(
            RequestKind.SLVL, request_ids=request_ids, target=target, ctx=ctx, remarks=remarks
        )
