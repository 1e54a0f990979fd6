from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Optional

from .attendance.linked import ApprovedRequestLinks
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import (
    DEFAULT_BREAK_MINUTES,
    DEFAULT_EXPECTED_TIME_IN,
    LEAVE_BANK_YEARS_BACK,
    LEAVE_BANK_YEARS_FORWARD,
    STANDARD_WORK_MINUTES,
)
from .core.enums import SIMPLE_REQUEST_KINDS, RequestKind
from .database.connection import DBConfig, DatabaseConnection
from .database.transactions import MySQLTransactionManager
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .leave.hooks import LeaveAttendanceHook, LeaveLedgerHook
from .leave.ledger import LeaveLedger
from .leave.mysql_leave_bank_repository import MySQLLeaveBankRepository
from .leave.mysql_leave_request_repository import MySQLLeaveRequestRepository
from .leave.service import LeaveService
from .overtime.hooks import OvertimeAttendanceHook
from .overtime.mysql_overtime_repository import MySQLOvertimeRepository
from .overtime.service import OvertimeService
from .payroll.service import PayrollFeedService
from .requests.hooks import RequestAttendanceHook
from .requests.mysql_request_repository import MySQLRequestRepository
from .requests.service import KindScopedStore, RequestService
from .workflow.audit import AuditSink
from .workflow.definitions import OVERTIME_WORKFLOW, single_stage_workflow
from .workflow.engine import WorkflowEngine


@dataclass(frozen=True)
class TimekeepingSettings:
    expected_time_in: time = DEFAULT_EXPECTED_TIME_IN
    default_break_minutes: int = DEFAULT_BREAK_MINUTES
    standard_work_minutes: int = STANDARD_WORK_MINUTES
    leave_years_back: int = LEAVE_BANK_YEARS_BACK
    leave_years_forward: int = LEAVE_BANK_YEARS_FORWARD


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    employees_repo: MySQLEmployeeRepository
    attendance_repo: MySQLAttendanceRepository
    overtime_repo: MySQLOvertimeRepository
    leave_bank_repo: MySQLLeaveBankRepository
    leave_request_repo: MySQLLeaveRequestRepository
    requests_repo: MySQLRequestRepository

    workflow: WorkflowEngine
    attendance_service: AttendanceService
    overtime_service: OvertimeService
    leave_ledger: LeaveLedger
    leave_service: LeaveService
    request_service: RequestService
    payroll_feed_service: PayrollFeedService


def build_container(
    *,
    db_config: dict,
    settings: Optional[TimekeepingSettings] = None,
    audit: Optional[AuditSink] = None,
) -> Container:
    settings = settings or TimekeepingSettings()
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    transactions = MySQLTransactionManager(conn)

    employees_repo = MySQLEmployeeRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    overtime_repo = MySQLOvertimeRepository(conn)
    leave_bank_repo = MySQLLeaveBankRepository(conn)
    leave_request_repo = MySQLLeaveRequestRepository(conn)
    requests_repo = MySQLRequestRepository(conn)
    links = ApprovedRequestLinks(overtime_repo, leave_request_repo, requests_repo)

    leave_ledger = LeaveLedger(
        leave_bank_repo,
        employees_repo,
        transactions=transactions,
        years_back=settings.leave_years_back,
        years_forward=settings.leave_years_forward,
    )

    workflow = WorkflowEngine(transactions=transactions, audit=audit)
    workflow.register(OVERTIME_WORKFLOW, overtime_repo, hooks=[OvertimeAttendanceHook(attendance_repo, links)])
    workflow.register(
        single_stage_workflow(RequestKind.SLVL),
        leave_request_repo,
        hooks=[LeaveLedgerHook(leave_ledger), LeaveAttendanceHook(attendance_repo, links)],
    )
    for kind in SIMPLE_REQUEST_KINDS:
        workflow.register(
            single_stage_workflow(kind),
            KindScopedStore(requests_repo, kind),
            hooks=[RequestAttendanceHook(attendance_repo, links)],
        )

    attendance_service = AttendanceService(
        attendance_repo,
        employees_repo,
        transactions=transactions,
        expected_time_in=settings.expected_time_in,
        default_break_minutes=settings.default_break_minutes,
        standard_work_minutes=settings.standard_work_minutes,
        links=links,
    )
    overtime_service = OvertimeService(
        overtime_repo, employees_repo, workflow=workflow, transactions=transactions
    )
    leave_service = LeaveService(
        leave_request_repo,
        employees_repo,
        ledger=leave_ledger,
        workflow=workflow,
        transactions=transactions,
    )
    request_service = RequestService(requests_repo, employees_repo, workflow=workflow)
    payroll_feed_service = PayrollFeedService(attendance_repo, overtime_repo, leave_request_repo, employees_repo)

    return Container(
        conn=conn,
        employees_repo=employees_repo,
        attendance_repo=attendance_repo,
        overtime_repo=overtime_repo,
        leave_bank_repo=leave_bank_repo,
        leave_request_repo=leave_request_repo,
        requests_repo=requests_repo,
        workflow=workflow,
        attendance_service=attendance_service,
        overtime_service=overtime_service,
        leave_ledger=leave_ledger,
        leave_service=leave_service,
        request_service=request_service,
        payroll_feed_service=payroll_feed_service,
    )
