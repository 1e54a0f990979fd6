from datetime import date, time
from decimal import Decimal

import pytest

from src.timekeeping.timekeeping.core.enums import RequestKind, RequestStatus
from src.timekeeping.timekeeping.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from src.timekeeping.timekeeping.requests.model import NewSimpleRequest

D = date(2025, 3, 12)


def new(kind, **kw):
    return NewSimpleRequest(kind=kind, employee_id=kw.pop("employee_id", 1), request_date=D, **kw)


def test_travel_order_needs_destination(request_service, staff):
    with pytest.raises(ValidationError):
        request_service.create(new(RequestKind.TRAVEL_ORDER, destination="  "), staff)

    req = request_service.create(new(RequestKind.TRAVEL_ORDER, destination=" Cebu plant "), staff)
    assert req.destination == "Cebu plant"
    assert req.status == RequestStatus.PENDING
    assert req.department == "Ops"


def test_official_business_needs_destination(request_service, staff):
    with pytest.raises(ValidationError):
        request_service.create(new(RequestKind.OFFICIAL_BUSINESS), staff)


def test_offset_hours_from_clock_times(request_service, staff):
    req = request_service.create(new(RequestKind.OFFSET, start_time=time(13, 0), end_time=time(17, 30)), staff)
    assert req.hours == Decimal("4.50")

    with pytest.raises(ValidationError):
        request_service.create(new(RequestKind.OFFSET), staff)
    with pytest.raises(ValidationError):
        request_service.create(new(RequestKind.OFFSET, start_time=time(17, 0), end_time=time(13, 0)), staff)


def test_retro_needs_reason_and_hours(request_service, staff):
    with pytest.raises(ValidationError):
        request_service.create(new(RequestKind.RETRO, hours=Decimal("2")), staff)
    with pytest.raises(ValidationError):
        request_service.create(new(RequestKind.RETRO, hours=Decimal("30"), reason="biometric down"), staff)

    req = request_service.create(new(RequestKind.RETRO, hours=Decimal("2"), reason="biometric down"), staff)
    assert req.reason == "biometric down"


def test_end_date_before_request_date(request_service, staff):
    with pytest.raises(ValidationError):
        request_service.create(new(RequestKind.TRAVEL_ORDER, destination="x", end_date=date(2025, 3, 1)), staff)


def test_overtime_is_not_a_simple_kind(request_service, staff):
    with pytest.raises(ValidationError):
        request_service.create(new(RequestKind.OVERTIME), staff)
    with pytest.raises(ValidationError):
        request_service.transition(RequestKind.OVERTIME, 1, RequestStatus.APPROVED, staff)


def test_get_is_scoped_to_kind(request_service, staff):
    req = request_service.create(new(RequestKind.TRAVEL_ORDER, destination="Davao"), staff)
    assert request_service.get(RequestKind.TRAVEL_ORDER, req.request_id) == req
    with pytest.raises(NotFoundError):
        request_service.get(RequestKind.OFFSET, req.request_id)


def test_single_stage_approval(request_service, staff, ops_manager, sales_manager):
    req = request_service.create(new(RequestKind.TRAVEL_ORDER, destination="Davao"), staff)

    with pytest.raises(AuthorizationError):
        request_service.transition(RequestKind.TRAVEL_ORDER, req.request_id, RequestStatus.APPROVED, sales_manager)
    with pytest.raises(NotFoundError):
        request_service.transition(RequestKind.OFFSET, req.request_id, RequestStatus.APPROVED, ops_manager)

    request_service.transition(RequestKind.TRAVEL_ORDER, req.request_id, RequestStatus.APPROVED, ops_manager)
    approved = request_service.get(RequestKind.TRAVEL_ORDER, req.request_id)
    assert approved.status == RequestStatus.APPROVED
    assert approved.review.approver_id == ops_manager.user_id

    with pytest.raises(StateConflictError):
        request_service.transition(RequestKind.TRAVEL_ORDER, req.request_id, RequestStatus.REJECTED, ops_manager)


def test_list_and_bulk(request_service, staff, hrd):
    ids = [
        request_service.create(new(RequestKind.OFFSET, hours=Decimal("1")), staff).request_id,
        request_service.create(new(RequestKind.OFFSET, hours=Decimal("2")), staff).request_id,
    ]
    request_service.create(new(RequestKind.TRAVEL_ORDER, destination="Iloilo"), staff)

    assert [r.request_id for r in request_service.list_requests(RequestKind.OFFSET)] == ids

    result = request_service.bulk_transition(RequestKind.OFFSET, ids, RequestStatus.APPROVED, hrd)
    assert result.succeeded == ids
    assert request_service.list_requests(RequestKind.OFFSET, status=RequestStatus.PENDING) == []
