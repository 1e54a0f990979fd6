import threading
from dataclasses import replace
from datetime import date, datetime, time, timedelta
from decimal import Decimal

import pytest

from src.timekeeping.timekeeping.attendance.service import blank_record
from src.timekeeping.timekeeping.core.enums import (
    ApprovalSlot,
    LeaveType,
    OvertimeType,
    PayType,
    RequestKind,
    RequestStatus,
)
from src.timekeeping.timekeeping.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from src.timekeeping.timekeeping.leave.model import NewLeave
from src.timekeeping.timekeeping.overtime.model import NewOvertime

MONDAY = date(2025, 3, 10)


def new_overtime(overtime_repo, *, employee_id=1, department="Ops", day=MONDAY, created_by=1):
    start = datetime.combine(day, time(17, 0))
    return overtime_repo.create(
        data=NewOvertime(
            employee_id=employee_id,
            overtime_date=day,
            start_time=start,
            end_time=start + timedelta(hours=2),
            total_hours=Decimal("2.00"),
            overtime_type=OvertimeType.REGULAR_WEEKDAY,
            has_night_differential=False,
            rate_multiplier=Decimal("1.25"),
        ),
        department=department,
        created_by=created_by,
        created_at=datetime(2025, 3, 10, 8, 0),
    )


def new_leave(leave_request_repo, *, days=5, leave_type=LeaveType.VACATION, start=date(2025, 4, 7)):
    return leave_request_repo.create(
        data=NewLeave(
            employee_id=1,
            leave_type=leave_type,
            start_date=start,
            end_date=start + timedelta(days=days - 1),
            total_days=Decimal(days),
            pay_type=PayType.WITH_PAY,
            bank_year=2025,
        ),
        department="Ops",
        created_by=1,
        created_at=datetime(2025, 3, 10, 8, 0),
    )


def test_overtime_goes_through_both_stages(workflow, overtime_repo, ops_manager, hrd, audit):
    rid = new_overtime(overtime_repo)

    first = workflow.transition(RequestKind.OVERTIME, request_id=rid, target=RequestStatus.MANAGER_APPROVED, ctx=ops_manager)
    second = workflow.transition(RequestKind.OVERTIME, request_id=rid, target=RequestStatus.APPROVED, ctx=hrd)

    ot = overtime_repo.get(request_id=rid)
    assert ot.status == RequestStatus.APPROVED
    assert ot.department_approval.approver_id == ops_manager.user_id
    assert ot.hrd_approval.approver_id == hrd.user_id
    assert (first.slot, second.slot) == (ApprovalSlot.DEPARTMENT, ApprovalSlot.HRD)
    assert [e.new_status for e in audit.events] == [RequestStatus.MANAGER_APPROVED, RequestStatus.APPROVED]


def test_hrd_cannot_skip_the_department_stage(workflow, overtime_repo, hrd):
    rid = new_overtime(overtime_repo)
    with pytest.raises(StateConflictError):
        workflow.transition(RequestKind.OVERTIME, request_id=rid, target=RequestStatus.APPROVED, ctx=hrd)
    with pytest.raises(AuthorizationError):
        workflow.transition(RequestKind.OVERTIME, request_id=rid, target=RequestStatus.MANAGER_APPROVED, ctx=hrd)
    assert overtime_repo.get(request_id=rid).status == RequestStatus.PENDING


def test_manager_of_another_department_is_refused(workflow, overtime_repo, sales_manager):
    rid = new_overtime(overtime_repo)
    with pytest.raises(AuthorizationError):
        workflow.transition(RequestKind.OVERTIME, request_id=rid, target=RequestStatus.MANAGER_APPROVED, ctx=sales_manager)


def test_department_rejection_needs_remarks(workflow, overtime_repo, ops_manager):
    rid = new_overtime(overtime_repo)
    with pytest.raises(ValidationError):
        workflow.transition(RequestKind.OVERTIME, request_id=rid, target=RequestStatus.REJECTED, ctx=ops_manager)

    event = workflow.transition(
        RequestKind.OVERTIME, request_id=rid, target=RequestStatus.REJECTED, ctx=ops_manager, remarks="no budget"
    )
    assert event.remarks == "no budget"
    assert overtime_repo.get(request_id=rid).department_approval.remarks == "no budget"


def test_terminal_requests_never_move(workflow, overtime_repo, ops_manager, super_admin):
    rid = new_overtime(overtime_repo)
    workflow.transition(RequestKind.OVERTIME, request_id=rid, target=RequestStatus.REJECTED, ctx=ops_manager, remarks="x")

    with pytest.raises(StateConflictError):
        workflow.transition(RequestKind.OVERTIME, request_id=rid, target=RequestStatus.MANAGER_APPROVED, ctx=ops_manager)
    with pytest.raises(StateConflictError):
        workflow.transition(
            RequestKind.OVERTIME, request_id=rid, target=RequestStatus.FORCE_APPROVED, ctx=super_admin, remarks="x"
        )


def test_force_approval_rules(workflow, overtime_repo, ops_manager, hrd, super_admin):
    rid = new_overtime(overtime_repo)
    workflow.transition(RequestKind.OVERTIME, request_id=rid, target=RequestStatus.MANAGER_APPROVED, ctx=ops_manager)

    with pytest.raises(AuthorizationError):
        workflow.transition(RequestKind.OVERTIME, request_id=rid, target=RequestStatus.FORCE_APPROVED, ctx=hrd, remarks="x")
    with pytest.raises(ValidationError):
        workflow.transition(RequestKind.OVERTIME, request_id=rid, target=RequestStatus.FORCE_APPROVED, ctx=super_admin)

    event = workflow.transition(
        RequestKind.OVERTIME, request_id=rid, target=RequestStatus.FORCE_APPROVED, ctx=super_admin, remarks="payroll cutoff"
    )
    assert event.slot == ApprovalSlot.ADMIN_OVERRIDE
    assert event.old_status == RequestStatus.MANAGER_APPROVED
    assert overtime_repo.get(request_id=rid).admin_override.remarks == "payroll cutoff"


def test_pending_target_and_missing_request(workflow, overtime_repo, super_admin):
    rid = new_overtime(overtime_repo)
    with pytest.raises(ValidationError):
        workflow.transition(RequestKind.OVERTIME, request_id=rid, target=RequestStatus.PENDING, ctx=super_admin)
    with pytest.raises(NotFoundError):
        workflow.transition(RequestKind.OVERTIME, request_id=999, target=RequestStatus.MANAGER_APPROVED, ctx=super_admin)


def test_approved_overtime_is_stamped_on_attendance(workflow, overtime_repo, attendance_repo, ops_manager, hrd):
    attendance_repo.save(blank_record(1, MONDAY), expected_version=None)
    rid = new_overtime(overtime_repo)

    workflow.transition(RequestKind.OVERTIME, request_id=rid, target=RequestStatus.MANAGER_APPROVED, ctx=ops_manager)
    assert attendance_repo.records[(1, MONDAY)].overtime_hours == Decimal("0")

    workflow.transition(RequestKind.OVERTIME, request_id=rid, target=RequestStatus.APPROVED, ctx=hrd)
    assert attendance_repo.records[(1, MONDAY)].overtime_hours == Decimal("2.00")


def test_bulk_approval_is_partial(workflow, overtime_repo, ops_manager):
    ids = [new_overtime(overtime_repo, day=MONDAY + timedelta(days=i)) for i in range(5)]
    overtime_repo.set_status(ids[2], RequestStatus.REJECTED)

    result = workflow.bulk_transition(
        RequestKind.OVERTIME, request_ids=ids + [ids[0]], target=RequestStatus.MANAGER_APPROVED, ctx=ops_manager
    )

    assert result.succeeded == [ids[0], ids[1], ids[3], ids[4]]
    assert [(f.item, f.error) for f in result.failed] == [(ids[2], "StateConflictError"), (ids[0], "ValidationError")]
    assert not result.ok
    assert overtime_repo.get(request_id=ids[0]).status == RequestStatus.MANAGER_APPROVED
    assert overtime_repo.get(request_id=ids[2]).status == RequestStatus.REJECTED


def test_bulk_reports_authorization_per_item(workflow, overtime_repo, ops_manager):
    own = new_overtime(overtime_repo)
    other = new_overtime(overtime_repo, employee_id=3, department="Sales")

    result = workflow.bulk_transition(
        RequestKind.OVERTIME, request_ids=[own, other], target=RequestStatus.MANAGER_APPROVED, ctx=ops_manager
    )

    assert result.succeeded == [own]
    assert result.failed[0].error == "AuthorizationError"


def test_single_stage_kinds_approve_in_one_step(workflow, leave_request_repo, ledger, hrd):
    ledger.allocate(1, LeaveType.VACATION, 2025, 10, hrd)
    rid = new_leave(leave_request_repo, days=3)

    event = workflow.transition(RequestKind.SLVL, request_id=rid, target=RequestStatus.APPROVED, ctx=hrd)

    assert event.slot == ApprovalSlot.REVIEW
    assert leave_request_repo.get(request_id=rid).review.approver_id == hrd.user_id


def test_concurrent_approvals_debit_once(workflow, leave_request_repo, leave_bank_repo, ledger, hrd, ops_manager):
    ledger.allocate(1, LeaveType.VACATION, 2025, 5, hrd)
    rid = new_leave(leave_request_repo, days=5)
    debits_before = leave_bank_repo.debit_calls

    barrier = threading.Barrier(2)
    outcomes = []

    def approve(ctx):
        barrier.wait()
        try:
            workflow.transition(RequestKind.SLVL, request_id=rid, target=RequestStatus.APPROVED, ctx=ctx)
            outcomes.append("ok")
        except StateConflictError:
            outcomes.append("conflict")

    threads = [threading.Thread(target=approve, args=(c,)) for c in (hrd, ops_manager)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes) == ["conflict", "ok"]
    assert leave_bank_repo.debit_calls - debits_before == 1
    bal = ledger.get_balance(1, LeaveType.VACATION, 2025)
    assert bal.used_days == Decimal("5")
    assert bal.remaining_days == Decimal("0")


def test_stale_read_loses_the_swap(workflow, overtime_repo, ops_manager):
    rid = new_overtime(overtime_repo)
    original_get = overtime_repo.get_subject

    def stale_then_moved(*, request_id):
        subject = original_get(request_id=request_id)
        overtime_repo.items[rid] = replace(subject, status=RequestStatus.MANAGER_APPROVED)
        return subject

    overtime_repo.get_subject = stale_then_moved
    with pytest.raises(StateConflictError):
        workflow.transition(RequestKind.OVERTIME, request_id=rid, target=RequestStatus.MANAGER_APPROVED, ctx=ops_manager)
