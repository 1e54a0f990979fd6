from datetime import date, time
from decimal import Decimal

import pytest

from src.timekeeping.timekeeping.core.enums import OvertimeType, RequestStatus
from src.timekeeping.timekeeping.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from src.timekeeping.timekeeping.overtime.service import OvertimeDraft

MONDAY = date(2025, 3, 10)
SATURDAY = date(2025, 3, 8)


def draft(**kw):
    base = dict(overtime_date=MONDAY, start=time(17, 0), end=time(19, 0), employee_id=1)
    base.update(kw)
    return OvertimeDraft(**base)


def test_weekday_overtime_resolves_from_table(overtime_service, ops_manager):
    ot = overtime_service.create(draft(), ops_manager)

    assert ot.status == RequestStatus.PENDING
    assert ot.overtime_type == OvertimeType.REGULAR_WEEKDAY
    assert ot.rate_multiplier == Decimal("1.25")
    assert ot.total_hours == Decimal("2.00")
    assert ot.department == "Ops"
    assert ot.premium_hours == Decimal("2.5000")


def test_weekend_defaults_to_rest_day(overtime_service, ops_manager):
    ot = overtime_service.create(draft(overtime_date=SATURDAY), ops_manager)
    assert ot.overtime_type == OvertimeType.REST_DAY
    assert ot.rate_multiplier == Decimal("1.30")


def test_night_hours_pick_night_rate(overtime_service, ops_manager):
    ot = overtime_service.create(draft(start=time(21, 0), end=time(23, 0)), ops_manager)
    assert ot.has_night_differential
    assert ot.rate_multiplier == Decimal("1.375")


def test_holiday_flag_outranks_weekend(overtime_service, ops_manager):
    ot = overtime_service.create(draft(overtime_date=SATURDAY, is_regular_holiday=True), ops_manager)
    assert ot.overtime_type == OvertimeType.REGULAR_HOLIDAY
    assert ot.rate_multiplier == Decimal("2.00")


def test_entered_multiplier_without_type(overtime_service, ops_manager):
    ot = overtime_service.create(draft(rate_multiplier="1.8"), ops_manager)
    assert ot.overtime_type == OvertimeType.OTHER
    assert ot.rate_multiplier == Decimal("1.8")


def test_one_request_per_employee_per_day(overtime_service, ops_manager):
    overtime_service.create(draft(), ops_manager)
    with pytest.raises(ValidationError):
        overtime_service.create(draft(start=time(19, 0), end=time(20, 0)), ops_manager)


def test_rejected_request_frees_the_day(overtime_service, ops_manager):
    first = overtime_service.create(draft(), ops_manager)
    overtime_service.transition(first.request_id, RequestStatus.REJECTED, ops_manager, remarks="not needed")
    assert overtime_service.create(draft(), ops_manager).request_id != first.request_id


def test_hours_bounds(overtime_service, ops_manager):
    with pytest.raises(ValidationError):
        overtime_service.create(draft(end=time(17, 10)), ops_manager)
    with pytest.raises(ValidationError):
        overtime_service.create(draft(rate_multiplier="11"), ops_manager)


def test_unknown_and_inactive_employees(overtime_service, ops_manager):
    with pytest.raises(NotFoundError):
        overtime_service.create(draft(employee_id=99), ops_manager)
    with pytest.raises(ValidationError):
        overtime_service.create(draft(employee_id=4), ops_manager)


def test_bulk_create_reports_each_employee(overtime_service, ops_manager):
    result = overtime_service.create_for_employees([1, 2, 4, 99], draft(employee_id=0), ops_manager)

    assert [s["employee_id"] for s in result.succeeded] == [1, 2]
    assert {f.item: f.error for f in result.failed} == {4: "ValidationError", 99: "NotFoundError"}


def test_creator_can_edit_rate_while_pending(overtime_service, staff):
    ot = overtime_service.create(draft(), staff)
    edited = overtime_service.update_rate(ot.request_id, "1.5", staff)

    assert edited.rate_multiplier == Decimal("1.5")
    assert edited.rate_edited
    assert edited.rate_edited_by == staff.user_id


def test_rate_edit_permissions_and_bounds(overtime_service, staff, make_actor, sales_manager):
    ot = overtime_service.create(draft(), staff)

    with pytest.raises(AuthorizationError):
        overtime_service.update_rate(ot.request_id, "1.5", make_actor(2))
    with pytest.raises(AuthorizationError):
        overtime_service.update_rate(ot.request_id, "1.5", sales_manager)
    with pytest.raises(ValidationError):
        overtime_service.update_rate(ot.request_id, "0.5", staff)
    with pytest.raises(ValidationError):
        overtime_service.update_rate(ot.request_id, "abc", staff)


def test_rate_is_frozen_after_first_approval(overtime_service, ops_manager):
    ot = overtime_service.create(draft(), ops_manager)
    overtime_service.transition(ot.request_id, RequestStatus.MANAGER_APPROVED, ops_manager)

    with pytest.raises(StateConflictError):
        overtime_service.update_rate(ot.request_id, "1.5", ops_manager)
