from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from decimal import Decimal

import pytest

from src.timekeeping.timekeeping.attendance.linked import ApprovedRequestLinks
from src.timekeeping.timekeeping.attendance.service import AttendanceService
from src.timekeeping.timekeeping.common.context import ActorContext
from src.timekeeping.timekeeping.core.enums import (
    SIMPLE_REQUEST_KINDS,
    ApprovalSlot,
    PostingStatus,
    RequestKind,
    RequestStatus,
)
from src.timekeeping.timekeeping.employees.model import Employee
from src.timekeeping.timekeeping.leave.hooks import LeaveAttendanceHook, LeaveLedgerHook
from src.timekeeping.timekeeping.leave.ledger import LeaveLedger
from src.timekeeping.timekeeping.leave.model import LeaveBalance, SLVLRequest
from src.timekeeping.timekeeping.leave.service import LeaveService
from src.timekeeping.timekeeping.overtime.hooks import OvertimeAttendanceHook
from src.timekeeping.timekeeping.overtime.model import OvertimeRequest
from src.timekeeping.timekeeping.overtime.service import OvertimeService
from src.timekeeping.timekeeping.payroll.service import PayrollFeedService
from src.timekeeping.timekeeping.requests.hooks import RequestAttendanceHook
from src.timekeeping.timekeeping.requests.model import SimpleRequest
from src.timekeeping.timekeeping.requests.service import KindScopedStore, RequestService
from src.timekeeping.timekeeping.workflow.audit import CollectingAuditSink
from src.timekeeping.timekeeping.workflow.definitions import OVERTIME_WORKFLOW, single_stage_workflow
from src.timekeeping.timekeeping.workflow.engine import WorkflowEngine

NOW = datetime(2025, 3, 10, 9, 0, 0)

_SLOT_FIELDS = {
    ApprovalSlot.DEPARTMENT: "department_approval",
    ApprovalSlot.HRD: "hrd_approval",
    ApprovalSlot.REVIEW: "review",
    ApprovalSlot.ADMIN_OVERRIDE: "admin_override",
}


class LockingTransactionManager:
    """Serializes atomic blocks the way row locks would; nesting is allowed."""

    def __init__(self):
        self._lock = threading.RLock()
        self.depth = 0

    @contextmanager
    def atomic(self):
        with self._lock:
            self.depth += 1
            try:
                yield
            finally:
                self.depth -= 1


class FakeEmployeeRepo:
    def __init__(self, employees, managers=None):
        self._employees = {e.employee_id: e for e in employees}
        self._managers = managers or {}

    def get_by_id(self, employee_id):
        return self._employees.get(int(employee_id))

    def list_active(self, *, department=None):
        return [
            e
            for e in self._employees.values()
            if e.is_active and (department is None or e.department == department)
        ]

    def managed_departments(self, user_id):
        return list(self._managers.get(int(user_id), []))


class FakeAttendanceRepo:
    def __init__(self):
        self.punches = {}
        self.records = {}
        self._next_id = 1

    def add_punches(self, punches):
        inserted = 0
        for p in punches:
            key = (p.employee_id, p.punched_at, p.punch_state)
            if key in self.punches:
                continue
            self.punches[key] = p
            inserted += 1
        return inserted

    def list_punches(self, *, employee_id, start, end):
        return sorted(
            (p for p in self.punches.values() if p.employee_id == employee_id and start <= p.punched_at <= end),
            key=lambda p: p.punched_at,
        )

    def get_for_employee_and_date(self, employee_id, attendance_date):
        return self.records.get((int(employee_id), attendance_date))

    def save(self, record, *, expected_version):
        key = (record.employee_id, record.attendance_date)
        current = self.records.get(key)
        if expected_version is None:
            if current is not None:
                return False
            self.records[key] = replace(record, attendance_id=self._next_id, version=1)
            self._next_id += 1
            return True
        if current is None or current.version != expected_version or current.is_posted:
            return False
        self.records[key] = replace(record, attendance_id=current.attendance_id, version=current.version + 1)
        return True

    def list_range(self, *, start_date, end_date, employee_id=None, department=None):
        return sorted(
            (
                r
                for r in self.records.values()
                if start_date <= r.attendance_date <= end_date
                and (employee_id is None or r.employee_id == employee_id)
            ),
            key=lambda r: (r.attendance_date, r.employee_id),
        )

    def mark_posted(self, *, start_date, end_date, posted_by, posted_at, employee_id=None):
        count = 0
        for key, r in list(self.records.items()):
            if r.is_posted or not (start_date <= r.attendance_date <= end_date):
                continue
            if employee_id is not None and r.employee_id != employee_id:
                continue
            self.records[key] = replace(
                r,
                posting_status=PostingStatus.POSTED,
                posted_at=posted_at,
                posted_by=posted_by,
                version=r.version + 1,
            )
            count += 1
        return count

    def apply_linked(self, *, employee_id, attendance_date, linked):
        key = (int(employee_id), attendance_date)
        r = self.records.get(key)
        if r is None or r.is_posted:
            return False
        self.records[key] = replace(r, **linked.as_fields(), version=r.version + 1)
        return True


class _RequestStore:
    """Shared CAS behaviour of the request fakes."""

    def __init__(self):
        self.items = {}
        self._next_id = 1

    def _new_id(self):
        rid = self._next_id
        self._next_id += 1
        return rid

    def get(self, *, request_id):
        return self.items.get(int(request_id))

    def get_subject(self, *, request_id):
        return self.get(request_id=request_id)

    def apply_transition(self, *, request_id, expected_status, new_status, slot, approval):
        req = self.items.get(int(request_id))
        if req is None or req.status != expected_status:
            return False
        self.items[int(request_id)] = replace(req, status=new_status, **{_SLOT_FIELDS[slot]: approval})
        return True

    def set_status(self, request_id, status):
        self.items[int(request_id)] = replace(self.items[int(request_id)], status=status)


class FakeOvertimeRepo(_RequestStore):
    def create(self, *, data, department, created_by, created_at):
        rid = self._new_id()
        self.items[rid] = OvertimeRequest(
            request_id=rid,
            employee_id=data.employee_id,
            department=department,
            overtime_date=data.overtime_date,
            start_time=data.start_time,
            end_time=data.end_time,
            total_hours=data.total_hours,
            overtime_type=data.overtime_type,
            has_night_differential=data.has_night_differential,
            rate_multiplier=data.rate_multiplier,
            status=RequestStatus.PENDING,
            created_by=created_by,
            created_at=created_at,
            reason=data.reason,
        )
        return rid

    def exists_for_day(self, *, employee_id, overtime_date):
        return any(
            o.employee_id == employee_id and o.overtime_date == overtime_date and o.status != RequestStatus.REJECTED
            for o in self.items.values()
        )

    def update_rate(self, *, request_id, rate_multiplier, edited_by, edited_at):
        ot = self.items.get(int(request_id))
        if ot is None or ot.status != RequestStatus.PENDING:
            return False
        self.items[int(request_id)] = replace(
            ot,
            rate_multiplier=rate_multiplier,
            rate_edited=True,
            rate_edited_by=edited_by,
            rate_edited_at=edited_at,
        )
        return True

    def list_in_range(self, *, start, end, statuses=None, employee_id=None, department=None):
        wanted = set(statuses or [])
        return [
            o
            for o in self.items.values()
            if start <= o.overtime_date <= end
            and (not wanted or o.status in wanted)
            and (employee_id is None or o.employee_id == employee_id)
            and (department is None or o.department == department)
        ]


class FakeLeaveRequestRepo(_RequestStore):
    def create(self, *, data, department, created_by, created_at):
        rid = self._new_id()
        self.items[rid] = SLVLRequest(
            request_id=rid,
            employee_id=data.employee_id,
            department=department,
            leave_type=data.leave_type,
            start_date=data.start_date,
            end_date=data.end_date,
            total_days=data.total_days,
            pay_type=data.pay_type,
            bank_year=data.bank_year,
            status=RequestStatus.PENDING,
            created_by=created_by,
            created_at=created_at,
            half_day=data.half_day,
            am_pm=data.am_pm,
            reason=data.reason,
            documents_path=data.documents_path,
        )
        return rid

    def has_overlap(self, *, employee_id, start_date, end_date):
        return any(
            r.employee_id == employee_id
            and r.status != RequestStatus.REJECTED
            and r.start_date <= end_date
            and r.end_date >= start_date
            for r in self.items.values()
        )

    def list_in_range(self, *, start, end, statuses=None, employee_id=None, department=None):
        wanted = set(statuses or [])
        return [
            r
            for r in self.items.values()
            if r.start_date <= end
            and r.end_date >= start
            and (not wanted or r.status in wanted)
            and (employee_id is None or r.employee_id == employee_id)
            and (department is None or r.department == department)
        ]


class FakeSimpleRequestRepo(_RequestStore):
    def create(self, *, data, department, created_by, created_at):
        rid = self._new_id()
        self.items[rid] = SimpleRequest(
            request_id=rid,
            kind=data.kind,
            employee_id=data.employee_id,
            department=department,
            request_date=data.request_date,
            status=RequestStatus.PENDING,
            created_by=created_by,
            created_at=created_at,
            end_date=data.end_date,
            start_time=data.start_time,
            end_time=data.end_time,
            hours=data.hours,
            destination=data.destination,
            reason=data.reason,
        )
        return rid

    def list_requests(self, *, kind=None, status=None, employee_id=None, limit=200):
        rows = [
            r
            for r in self.items.values()
            if (kind is None or r.kind == kind)
            and (status is None or r.status == status)
            and (employee_id is None or r.employee_id == employee_id)
        ]
        return rows[:limit]

    def list_in_range(self, *, start, end, statuses=None, employee_id=None, department=None):
        wanted = set(statuses or [])
        return [
            r
            for r in self.items.values()
            if r.request_date <= end
            and (r.end_date or r.request_date) >= start
            and (not wanted or r.status in wanted)
            and (employee_id is None or r.employee_id == employee_id)
        ]


class FakeLeaveBankRepo:
    def __init__(self):
        self.rows = {}
        self.entries = []
        self.debit_calls = 0

    def _key(self, employee_id, leave_type, year):
        return (int(employee_id), leave_type, int(year))

    def _put(self, key, total, used, notes=None):
        employee_id, leave_type, year = key
        self.rows[key] = LeaveBalance(
            employee_id=employee_id,
            leave_type=leave_type,
            year=year,
            total_days=total,
            used_days=used,
            remaining_days=total - used,
            notes=notes,
        )

    def get(self, *, employee_id, leave_type, year):
        return self.rows.get(self._key(employee_id, leave_type, year))

    def list_for_employee(self, *, employee_id, year=None):
        return [
            b for b in self.rows.values() if b.employee_id == employee_id and (year is None or b.year == year)
        ]

    def add_total(self, *, employee_id, leave_type, year, days, actor_id, notes=None):
        key = self._key(employee_id, leave_type, year)
        cur = self.rows.get(key)
        total = (cur.total_days if cur else Decimal("0")) + days
        used = cur.used_days if cur else Decimal("0")
        self._put(key, total, used, notes)

    def create_if_absent(self, *, employee_id, leave_type, year, total_days, actor_id, notes=None):
        key = self._key(employee_id, leave_type, year)
        if key in self.rows:
            return False
        self._put(key, total_days, Decimal("0"), notes)
        return True

    def debit(self, *, employee_id, leave_type, year, days, require_available):
        self.debit_calls += 1
        key = self._key(employee_id, leave_type, year)
        cur = self.rows.get(key)
        if require_available:
            if cur is None or cur.remaining_days < days:
                return False
        if cur is None:
            self._put(key, Decimal("0"), days)
        else:
            self._put(key, cur.total_days, cur.used_days + days, cur.notes)
        return True

    def release(self, *, employee_id, leave_type, year, days):
        key = self._key(employee_id, leave_type, year)
        cur = self.rows.get(key)
        if cur is None:
            return False
        self._put(key, cur.total_days, max(Decimal("0"), cur.used_days - days), cur.notes)
        return True

    def add_entry(self, entry):
        self.entries.append(entry)

    def list_entries(self, *, employee_id, year=None):
        return [e for e in self.entries if e.employee_id == employee_id and (year is None or e.year == year)]


# -------- Actors --------
def actor(user_id=1, *, roles=(), departments=(), now=NOW):
    return ActorContext.from_roles(user_id=user_id, now=now, roles=roles, managed_departments=departments)


@pytest.fixture
def fixed_now():
    return NOW


@pytest.fixture
def make_actor():
    return actor


@pytest.fixture
def super_admin():
    return actor(100, roles=["super_admin"])


@pytest.fixture
def hrd():
    return actor(101, roles=["hrd_manager"])


@pytest.fixture
def ops_manager():
    return actor(102, roles=["department_manager"], departments=["Ops"])


@pytest.fixture
def sales_manager():
    return actor(103, roles=["department_manager"], departments=["Sales"])


@pytest.fixture
def staff():
    return actor(1)


# -------- Repositories --------
@pytest.fixture
def employees():
    return FakeEmployeeRepo(
        [
            Employee(employee_id=1, full_name="Ana Cruz", department="Ops"),
            Employee(employee_id=2, full_name="Ben Reyes", department="Ops"),
            Employee(employee_id=3, full_name="Carla Santos", department="Sales"),
            Employee(employee_id=4, full_name="Dino Lim", department="Ops", is_active=False),
        ],
        managers={102: ["Ops"], 103: ["Sales"]},
    )


@pytest.fixture
def transactions():
    return LockingTransactionManager()


@pytest.fixture
def audit():
    return CollectingAuditSink()


@pytest.fixture
def attendance_repo():
    return FakeAttendanceRepo()


@pytest.fixture
def overtime_repo():
    return FakeOvertimeRepo()


@pytest.fixture
def leave_request_repo():
    return FakeLeaveRequestRepo()


@pytest.fixture
def leave_bank_repo():
    return FakeLeaveBankRepo()


@pytest.fixture
def simple_request_repo():
    return FakeSimpleRequestRepo()


# -------- Services --------
@pytest.fixture
def ledger(leave_bank_repo, employees, transactions):
    return LeaveLedger(leave_bank_repo, employees, transactions=transactions, years_back=5, years_forward=2)


@pytest.fixture
def links(overtime_repo, leave_request_repo, simple_request_repo):
    return ApprovedRequestLinks(overtime_repo, leave_request_repo, simple_request_repo)


@pytest.fixture
def workflow(
    transactions, audit, overtime_repo, leave_request_repo, simple_request_repo, attendance_repo, ledger, links
):
    engine = WorkflowEngine(transactions=transactions, audit=audit)
    engine.register(OVERTIME_WORKFLOW, overtime_repo, hooks=[OvertimeAttendanceHook(attendance_repo, links)])
    engine.register(
        single_stage_workflow(RequestKind.SLVL),
        leave_request_repo,
        hooks=[LeaveLedgerHook(ledger), LeaveAttendanceHook(attendance_repo, links)],
    )
    for kind in SIMPLE_REQUEST_KINDS:
        engine.register(
            single_stage_workflow(kind),
            KindScopedStore(simple_request_repo, kind),
            hooks=[RequestAttendanceHook(attendance_repo, links)],
        )
    return engine


@pytest.fixture
def attendance_service(attendance_repo, employees, transactions, links):
    return AttendanceService(attendance_repo, employees, transactions=transactions, links=links)


@pytest.fixture
def overtime_service(overtime_repo, employees, workflow, transactions):
    return OvertimeService(overtime_repo, employees, workflow=workflow, transactions=transactions)


@pytest.fixture
def leave_service(leave_request_repo, employees, ledger, workflow, transactions):
    return LeaveService(leave_request_repo, employees, ledger=ledger, workflow=workflow, transactions=transactions)


@pytest.fixture
def request_service(simple_request_repo, employees, workflow):
    return RequestService(simple_request_repo, employees, workflow=workflow)


@pytest.fixture
def payroll_feed(attendance_repo, overtime_repo, leave_request_repo, employees):
    return PayrollFeedService(attendance_repo, overtime_repo, leave_request_repo, employees)
