from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, time
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from ..common.context import ActorContext
from ..common.datetime_utils import is_weekend, minutes_between
from ..common.results import BulkResult
from ..common.validators import optional_text, require_between
from ..core.constants import (
    MAX_OVERTIME_HOURS,
    MAX_RATE_MULTIPLIER,
    MIN_OVERTIME_HOURS,
    MIN_RATE_MULTIPLIER,
)
from ..core.enums import OvertimeType, RequestKind, RequestStatus
from ..core.exceptions import (
    AuthorizationError,
    DomainError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from ..database.transactions import TransactionManager
from ..employees.repository import EmployeeRepository
from ..workflow.engine import WorkflowEngine
from ..workflow.model import TransitionEvent
from . import rates
from .model import NewOvertime, OvertimeRequest
from .repository import OvertimeRepository

logger = logging.getLogger(__name__)

_HOURS = Decimal("0.01")


@dataclass(frozen=True)
class OvertimeDraft:
    """Caller input for a new overtime request.

    ``overtime_type`` wins over the day flags; ``rate_multiplier`` is only
    consulted when no known type is given.
    """

    overtime_date: date
    start: time
    end: time
    employee_id: int = 0
    overtime_type: Optional[OvertimeType] = None
    rate_multiplier: Optional[Decimal] = None
    total_hours: Optional[Decimal] = None
    beyond_eight_hours: bool = False
    is_regular_holiday: bool = False
    is_special_holiday: bool = False
    is_scheduled_rest_day: bool = False
    is_rest_day: Optional[bool] = None
    reason: Optional[str] = None


class OvertimeService:
    def __init__(
        self,
        overtimes: OvertimeRepository,
        employees: EmployeeRepository,
        *,
        workflow: WorkflowEngine,
        transactions: TransactionManager,
    ):
        self._overtimes = overtimes
        self._employees = employees
        self._workflow = workflow
        self._transactions = transactions

    def get(self, request_id: int) -> OvertimeRequest:
        ot = self._overtimes.get(request_id=int(request_id))
        if not ot:
            raise NotFoundError(f"Overtime request #{request_id} not found")
        return ot

    def _resolve(self, draft: OvertimeDraft) -> NewOvertime:
        start_dt, end_dt = rates.overtime_window(draft.overtime_date, draft.start, draft.end)
        night = rates.has_night_differential(start_dt, end_dt)

        if draft.total_hours is not None:
            total_hours = Decimal(str(draft.total_hours))
        else:
            total_hours = Decimal(minutes_between(start_dt, end_dt)) / Decimal(60)
        total_hours = total_hours.quantize(_HOURS, rounding=ROUND_HALF_UP)
        require_between(total_hours, "Overtime hours", MIN_OVERTIME_HOURS, MAX_OVERTIME_HOURS)

        overtime_type = draft.overtime_type
        if overtime_type == OvertimeType.OTHER:
            overtime_type = None

        entered = None
        if draft.rate_multiplier is not None:
            entered = require_between(
                Decimal(str(draft.rate_multiplier)), "Rate multiplier", MIN_RATE_MULTIPLIER, MAX_RATE_MULTIPLIER
            )

        if overtime_type is None and entered is None:
            overtime_type = rates.classify_day(
                is_regular_holiday=draft.is_regular_holiday,
                is_special_holiday=draft.is_special_holiday,
                is_scheduled_rest_day=draft.is_scheduled_rest_day,
                is_rest_day=is_weekend(draft.overtime_date) if draft.is_rest_day is None else draft.is_rest_day,
            )

        resolution = rates.resolve(
            overtime_type,
            night,
            beyond_eight_hours=draft.beyond_eight_hours,
            entered_multiplier=entered,
        )
        return NewOvertime(
            employee_id=int(draft.employee_id),
            overtime_date=draft.overtime_date,
            start_time=start_dt,
            end_time=end_dt,
            total_hours=total_hours,
            overtime_type=resolution.overtime_type,
            has_night_differential=resolution.has_night_differential,
            rate_multiplier=resolution.rate_multiplier,
            reason=optional_text(draft.reason),
        )

    def create(self, draft: OvertimeDraft, ctx: ActorContext) -> OvertimeRequest:
        employee = self._employees.get_by_id(int(draft.employee_id))
        if not employee:
            raise NotFoundError(f"Employee #{draft.employee_id} not found")
        if not employee.is_active:
            raise ValidationError(f"Employee #{draft.employee_id} is inactive")

        data = self._resolve(draft)

        with self._transactions.atomic():
            if self._overtimes.exists_for_day(employee_id=employee.employee_id, overtime_date=data.overtime_date):
                raise ValidationError(
                    f"Employee #{employee.employee_id} already has an overtime request on {data.overtime_date}"
                )
            request_id = self._overtimes.create(
                data=data,
                department=employee.department,
                created_by=ctx.user_id,
                created_at=ctx.now,
            )

        logger.info(
            "Overtime #%s created for employee %s on %s: %s x%s (%s h)",
            request_id,
            employee.employee_id,
            data.overtime_date,
            data.overtime_type.value,
            data.rate_multiplier,
            data.total_hours,
        )
        return self.get(request_id)

    def create_for_employees(
        self,
        employee_ids: Sequence[int],
        draft: OvertimeDraft,
        ctx: ActorContext,
    ) -> BulkResult:
        result = BulkResult()
        for raw_id in employee_ids:
            employee_id = int(raw_id)
            try:
                created = self.create(replace(draft, employee_id=employee_id), ctx)
                result.add_success({"employee_id": employee_id, "request_id": created.request_id})
            except DomainError as exc:
                result.add_failure(employee_id, exc)
            except Exception as exc:
                logger.exception("Unexpected failure creating overtime for employee %s", employee_id)
                result.add_failure(employee_id, exc)
        return result

    def update_rate(self, request_id: int, rate_multiplier, ctx: ActorContext) -> OvertimeRequest:
        """Override the resolved multiplier while the request is pending."""

        try:
            new_rate = Decimal(str(rate_multiplier))
        except ArithmeticError:
            raise ValidationError("Rate multiplier must be a number")
        require_between(new_rate, "Rate multiplier", MIN_RATE_MULTIPLIER, MAX_RATE_MULTIPLIER)

        with self._transactions.atomic():
            ot = self.get(request_id)
            if ot.status != RequestStatus.PENDING:
                raise StateConflictError(
                    f"Rate of overtime #{ot.request_id} cannot change once it is {ot.status.value}"
                )
            allowed = (
                ctx.user_id == ot.created_by
                or ctx.is_super_admin
                or ctx.is_hrd_manager
                or ctx.manages(ot.department)
            )
            if not allowed:
                raise AuthorizationError("You are not allowed to edit this overtime rate")

            if new_rate == ot.rate_multiplier:
                return ot

            if not self._overtimes.update_rate(
                request_id=ot.request_id,
                rate_multiplier=new_rate,
                edited_by=ctx.user_id,
                edited_at=ctx.now,
            ):
                raise StateConflictError(f"Overtime #{ot.request_id} is no longer pending")

        logger.info(
            "Overtime #%s rate changed %s -> %s by %s",
            ot.request_id,
            ot.rate_multiplier,
            new_rate,
            ctx.user_id,
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
        return self._workflow.transition(
            RequestKind.OVERTIME, request_id=request_id, target=target, ctx=ctx, remarks=remarks
        )

    def bulk_transition(
        self,
        request_ids: Sequence[int],
        target: RequestStatus,
        ctx: ActorContext,
        *,
        remarks: Optional[str] = None,
    ) -> BulkResult:
        return self._workflow.bulk_transition(
            RequestKind.OVERTIME, request_ids=request_ids, target=target, ctx=ctx, remarks=remarks
        )
