from __future__ import annotations

import logging
from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from ..common.context import ActorContext
from ..common.results import BulkResult
from ..common.validators import optional_text, require_between, require_non_empty
from ..core.constants import DEFAULT_LIST_LIMIT, MAX_OVERTIME_HOURS, MIN_OVERTIME_HOURS
from ..core.enums import SIMPLE_REQUEST_KINDS, ApprovalSlot, RequestKind, RequestStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..employees.repository import EmployeeRepository
from ..workflow.engine import WorkflowEngine
from ..workflow.model import Approval, TransitionEvent
from .model import NewSimpleRequest, SimpleRequest
from .repository import SimpleRequestRepository

logger = logging.getLogger(__name__)

_HOURS = Decimal("0.01")


class KindScopedStore:
    """Exposes the shared request table to the engine as one request kind."""

    def __init__(self, requests: SimpleRequestRepository, kind: RequestKind):
        self._requests = requests
        self._kind = kind

    def get_subject(self, *, request_id: int) -> Optional[SimpleRequest]:
        req = self._requests.get_subject(request_id=request_id)
        if req is None or req.kind != self._kind:
            return None
        return req

    def apply_transition(
        self,
        *,
        request_id: int,
        expected_status: RequestStatus,
        new_status: RequestStatus,
        slot: ApprovalSlot,
        approval: Approval,
    ) -> bool:
        return self._requests.apply_transition(
            request_id=request_id,
            expected_status=expected_status,
            new_status=new_status,
            slot=slot,
            approval=approval,
        )


def _require_simple_kind(kind: RequestKind) -> RequestKind:
    if kind not in SIMPLE_REQUEST_KINDS:
        raise ValidationError(f"{kind.value} is not a single-stage request kind")
    return kind


def _hours_between(start: time, end: time) -> Decimal:
    start_dt = datetime.combine(date.min, start)
    end_dt = datetime.combine(date.min, end)
    if end_dt <= start_dt:
        raise ValidationError("End time must be after start time")
    return (Decimal(int((end_dt - start_dt).total_seconds())) / Decimal(3600)).quantize(_HOURS, rounding=ROUND_HALF_UP)


class RequestService:
    def __init__(
        self,
        requests: SimpleRequestRepository,
        employees: EmployeeRepository,
        *,
        workflow: WorkflowEngine,
    ):
        self._requests = requests
        self._employees = employees
        self._workflow = workflow

    def get(self, kind: RequestKind, request_id: int) -> SimpleRequest:
        req = self._requests.get(request_id=int(request_id))
        if not req or req.kind != kind:
            raise NotFoundError(f"{kind.value} #{request_id} not found")
        return req

    def list_requests(
        self,
        kind: RequestKind,
        *,
        status: Optional[RequestStatus] = None,
        employee_id: Optional[int] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[SimpleRequest]:
        return self._requests.list_requests(
            kind=_require_simple_kind(kind), status=status, employee_id=employee_id, limit=limit
        )

    def _validate(self, data: NewSimpleRequest) -> NewSimpleRequest:
        kind = data.kind
        end_date = data.end_date
        if end_date is not None and end_date < data.request_date:
            raise ValidationError("End date must not be before the request date")

        hours = data.hours
        if hours is None and data.start_time and data.end_time:
            hours = _hours_between(data.start_time, data.end_time)

        destination = optional_text(data.destination)
        reason = optional_text(data.reason)

        if kind in (RequestKind.TRAVEL_ORDER, RequestKind.OFFICIAL_BUSINESS):
            destination = require_non_empty(destination, "Destination")
        if kind in (RequestKind.OFFSET, RequestKind.RETRO):
            if hours is None:
                raise ValidationError("Hours are required")
        if kind == RequestKind.RETRO:
            reason = require_non_empty(reason, "Reason")
        if hours is not None:
            hours = require_between(Decimal(str(hours)), "Hours", MIN_OVERTIME_HOURS, MAX_OVERTIME_HOURS)

        return NewSimpleRequest(
            kind=kind,
            employee_id=int(data.employee_id),
            request_date=data.request_date,
            end_date=end_date,
            start_time=data.start_time,
            end_time=data.end_time,
            hours=hours,
            destination=destination,
            reason=reason,
        )

    def create(self, data: NewSimpleRequest, ctx: ActorContext) -> SimpleRequest:
        _require_simple_kind(data.kind)
        employee = self._employees.get_by_id(int(data.employee_id))
        if not employee:
            raise NotFoundError(f"Employee #{data.employee_id} not found")
        if not employee.is_active:
            raise ValidationError(f"Employee #{data.employee_id} is inactive")

        data = self._validate(data)
        request_id = self._requests.create(
            data=data,
            department=employee.department,
            created_by=ctx.user_id,
            created_at=ctx.now,
        )
        logger.info("%s #%s created for #%s on %s", data.kind.value, request_id, employee.employee_id, data.request_date)
        return self.get(data.kind, request_id)

    def transition(
        self,
        kind: RequestKind,
        request_id: int,
        target: RequestStatus,
        ctx: ActorContext,
        *,
        remarks: Optional[str] = None,
    ) -> TransitionEvent:
        return self._workflow.transition(
            _require_simple_kind(kind), request_id=request_id, target=target, ctx=ctx, remarks=remarks
        )

    def bulk_transition(
        self,
        kind: RequestKind,
        request_ids: Sequence[int],
        target: RequestStatus,
        ctx: ActorContext,
        *,
        remarks: Optional[str] = None,
    ) -> BulkResult:
        return self._workflow.bulk_transition(
            _require_simple_kind(kind), request_ids=request_ids, target=target, ctx=ctx, remarks=remarks
        )
