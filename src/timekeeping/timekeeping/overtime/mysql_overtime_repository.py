from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from ..core.enums import ApprovalSlot, OvertimeType, RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_decimal
from ..workflow.model import Approval
from ..workflow.mysql_store import approval_from_row, cas_transition, slot_columns
from .model import NewOvertime, OvertimeRequest
from .repository import OvertimeRepository

_SLOTS = (ApprovalSlot.DEPARTMENT, ApprovalSlot.HRD, ApprovalSlot.ADMIN_OVERRIDE)

_COLUMNS = (
    "request_id, employee_id, department, overtime_date, start_time, end_time, total_hours, "
    "overtime_type, has_night_differential, rate_multiplier, rate_edited, rate_edited_at, "
    "rate_edited_by, reason, status, created_by, created_at, " + slot_columns(_SLOTS)
)


def _to_overtime(r: dict) -> OvertimeRequest:
    return OvertimeRequest(
        request_id=int(r["request_id"]),
        employee_id=int(r["employee_id"]),
        department=r.get("department"),
        overtime_date=r["overtime_date"],
        start_time=r["start_time"],
        end_time=r["end_time"],
        total_hours=to_decimal(r["total_hours"]),
        overtime_type=OvertimeType(r["overtime_type"]),
        has_night_differential=bool(r["has_night_differential"]),
        rate_multiplier=to_decimal(r["rate_multiplier"]),
        status=RequestStatus(r["status"]),
        created_by=int(r["created_by"]),
        created_at=r["created_at"],
        reason=r.get("reason"),
        rate_edited=bool(r.get("rate_edited")),
        rate_edited_at=r.get("rate_edited_at"),
        rate_edited_by=r.get("rate_edited_by"),
        department_approval=approval_from_row(r, ApprovalSlot.DEPARTMENT),
        hrd_approval=approval_from_row(r, ApprovalSlot.HRD),
        admin_override=approval_from_row(r, ApprovalSlot.ADMIN_OVERRIDE),
    )


class MySQLOvertimeRepository(OvertimeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        data: NewOvertime,
        department: Optional[str],
        created_by: int,
        created_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO overtimes(
                    employee_id, department, overtime_date, start_time, end_time, total_hours,
                    overtime_type, has_night_differential, rate_multiplier, reason,
                    status, created_by, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(data.employee_id),
                    department,
                    data.overtime_date,
                    data.start_time,
                    data.end_time,
                    data.total_hours,
                    data.overtime_type.value,
                    int(data.has_night_differential),
                    data.rate_multiplier,
                    data.reason,
                    RequestStatus.PENDING.value,
                    int(created_by),
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def get(self, *, request_id: int) -> Optional[OvertimeRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM overtimes WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _to_overtime(r) if r else None

    def get_subject(self, *, request_id: int) -> Optional[OvertimeRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM overtimes WHERE request_id=%s FOR UPDATE",
                (int(request_id),),
            )
            r = fetchone(cur)
            return _to_overtime(r) if r else None

    def exists_for_day(self, *, employee_id: int, overtime_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 AS found FROM overtimes
                WHERE employee_id=%s AND overtime_date=%s AND status<>%s
                LIMIT 1
                """,
                (int(employee_id), overtime_date, RequestStatus.REJECTED.value),
            )
            return fetchone(cur) is not None

    def update_rate(
        self,
        *,
        request_id: int,
        rate_multiplier: Decimal,
        edited_by: int,
        edited_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE overtimes
                SET rate_multiplier=%s, rate_edited=1, rate_edited_at=%s, rate_edited_by=%s
                WHERE request_id=%s AND status=%s
                """,
                (rate_multiplier, edited_at, int(edited_by), int(request_id), RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0

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
                table="overtimes",
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
    ) -> Sequence[OvertimeRequest]:
        clauses = ["overtime_date BETWEEN %s AND %s"]
        params: list[object] = [start, end]

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
                SELECT {_COLUMNS} FROM overtimes
                WHERE {' AND '.join(clauses)}
                ORDER BY overtime_date, employee_id
                """,
                tuple(params),
            )
            return [_to_overtime(r) for r in fetchall(cur)]
