from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ..core.enums import ApprovalSlot, HalfDayPeriod, LeaveType, PayType, RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_decimal
from ..workflow.model import Approval
from ..workflow.mysql_store import approval_from_row, cas_transition, slot_columns
from .model import NewLeave, SLVLRequest
from .repository import LeaveRequestRepository

_SLOTS = (ApprovalSlot.REVIEW, ApprovalSlot.ADMIN_OVERRIDE)

_COLUMNS = (
    "request_id, employee_id, department, leave_type, start_date, end_date, half_day, am_pm, "
    "total_days, pay_type, bank_year, reason, documents_path, status, created_by, created_at, "
    + slot_columns(_SLOTS)
)


def _to_request(r: dict) -> SLVLRequest:
    return SLVLRequest(
        request_id=int(r["request_id"]),
        employee_id=int(r["employee_id"]),
        department=r.get("department"),
        leave_type=LeaveType(r["leave_type"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        total_days=to_decimal(r["total_days"]),
        pay_type=PayType(r["pay_type"]),
        bank_year=int(r["bank_year"]),
        status=RequestStatus(r["status"]),
        created_by=int(r["created_by"]),
        created_at=r["created_at"],
        half_day=bool(r.get("half_day")),
        am_pm=HalfDayPeriod(r["am_pm"]) if r.get("am_pm") else None,
        reason=r.get("reason"),
        documents_path=r.get("documents_path"),
        review=approval_from_row(r, ApprovalSlot.REVIEW),
        admin_override=approval_from_row(r, ApprovalSlot.ADMIN_OVERRIDE),
    )


class MySQLLeaveRequestRepository(LeaveRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        data: NewLeave,
        department: Optional[str],
        created_by: int,
        created_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO slvl_requests(
                    employee_id, department, leave_type, start_date, end_date, half_day, am_pm,
                    total_days, pay_type, bank_year, reason, documents_path, status, created_by, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(data.employee_id),
                    department,
                    data.leave_type.value,
                    data.start_date,
                    data.end_date,
                    int(data.half_day),
                    data.am_pm.value if data.am_pm else None,
                    data.total_days,
                    data.pay_type.value,
                    int(data.bank_year),
                    data.reason,
                    data.documents_path,
                    RequestStatus.PENDING.value,
                    int(created_by),
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def get(self, *, request_id: int) -> Optional[SLVLRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM slvl_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _to_request(r) if r else None

    def get_subject(self, *, request_id: int) -> Optional[SLVLRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM slvl_requests WHERE request_id=%s FOR UPDATE",
                (int(request_id),),
            )
            r = fetchone(cur)
            return _to_request(r) if r else None

    def has_overlap(self, *, employee_id: int, start_date: date, end_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 AS found FROM slvl_requests
                WHERE employee_id=%s AND status<>%s AND start_date <= %s AND end_date >= %s
                LIMIT 1
                """,
                (int(employee_id), RequestStatus.REJECTED.value, end_date, start_date),
            )
            return fetchone(cur) is not None

    def apply_transition(
        self,
        *,
        request_id: int,
        expected_status: RequestStatus,
        new_status: RequestStatus,
        slot: ApprovalSlot,
        approval: Approval,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return cas_transition(
                cur,
                table="slvl_requests",
                request_id=request_id,
                expected_status=expected_status,
                new_status=new_status,
                slot=slot,
                approval=approval,
                allowed_slots=_SLOTS,
            )

    def list_in_range(
        self,
        *,
        start: date,
        end: date,
        statuses: Optional[Iterable[RequestStatus]] = None,
        employee_id: Optional[int] = None,
        department: Optional[str] = None,
    ) -> Sequence[SLVLRequest]:
        clauses = ["start_date <= %s", "end_date >= %s"]
        params: list[object] = [end, start]

        status_values = [s.value for s in statuses] if statuses else []
        if status_values:
            clauses.append(f"status IN ({', '.join(['%s'] * len(status_values))})")
            params.extend(status_values)
        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(int(employee_id))
        if department:
            clauses.append("department=%s")
            params.append(department)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM slvl_requests
                WHERE {' AND '.join(clauses)}
                ORDER BY start_date, employee_id
                """,
                tuple(params),
            )
            return [_to_request(r) for r in fetchall(cur)]
