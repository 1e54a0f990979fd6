from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ..core.enums import ApprovalSlot, RequestKind, RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time, to_decimal
from ..workflow.model import Approval
from ..workflow.mysql_store import approval_from_row, cas_transition, slot_columns
from .model import NewSimpleRequest, SimpleRequest
from .repository import SimpleRequestRepository

_SLOTS = (ApprovalSlot.REVIEW, ApprovalSlot.ADMIN_OVERRIDE)

_COLUMNS = (
    "request_id, kind, employee_id, department, request_date, end_date, start_time, end_time, "
    "hours, destination, reason, status, created_by, created_at, " + slot_columns(_SLOTS)
)


def _to_request(r: dict) -> SimpleRequest:
    return SimpleRequest(
        request_id=int(r["request_id"]),
        kind=RequestKind(r["kind"]),
        employee_id=int(r["employee_id"]),
        department=r.get("department"),
        request_date=r["request_date"],
        status=RequestStatus(r["status"]),
        created_by=int(r["created_by"]),
        created_at=r["created_at"],
        end_date=r.get("end_date"),
        start_time=normalize_mysql_time(r.get("start_time")),
        end_time=normalize_mysql_time(r.get("end_time")),
        hours=to_decimal(r["hours"]) if r.get("hours") is not None else None,
        destination=r.get("destination"),
        reason=r.get("reason"),
        review=approval_from_row(r, ApprovalSlot.REVIEW),
        admin_override=approval_from_row(r, ApprovalSlot.ADMIN_OVERRIDE),
    )


class MySQLRequestRepository(SimpleRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        data: NewSimpleRequest,
        department: Optional[str],
        created_by: int,
        created_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO simple_requests(
                    kind, employee_id, department, request_date, end_date, start_time, end_time,
                    hours, destination, reason, status, created_by, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    data.kind.value,
                    int(data.employee_id),
                    department,
                    data.request_date,
                    data.end_date,
                    data.start_time,
                    data.end_time,
                    data.hours,
                    data.destination,
                    data.reason,
                    RequestStatus.PENDING.value,
                    int(created_by),
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def get(self, *, request_id: int) -> Optional[SimpleRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM simple_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _to_request(r) if r else None

    def get_subject(self, *, request_id: int) -> Optional[SimpleRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM simple_requests WHERE request_id=%s FOR UPDATE",
                (int(request_id),),
            )
            r = fetchone(cur)
            return _to_request(r) if r else None

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
                table="simple_requests",
                request_id=request_id,
                expected_status=expected_status,
                new_status=new_status,
                slot=slot,
                approval=approval,
                allowed_slots=_SLOTS,
            )

    def list_requests(
        self,
        *,
        kind: Optional[RequestKind] = None,
        status: Optional[RequestStatus] = None,
        employee_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[SimpleRequest]:
        clauses = ["1=1"]
        params: list[object] = []

        if kind is not None:
            clauses.append("kind=%s")
            params.append(kind.value)
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(int(employee_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM simple_requests
                WHERE {' AND '.join(clauses)}
                ORDER BY created_at DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def list_in_range(
        self,
        *,
        start: date,
        end: date,
        statuses: Optional[Iterable[RequestStatus]] = None,
        employee_id: Optional[int] = None,
        department: Optional[str] = None,
    ) -> Sequence[SimpleRequest]:
        clauses = ["request_date <= %s", "COALESCE(end_date, request_date) >= %s"]
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
                SELECT {_COLUMNS} FROM simple_requests
                WHERE {' AND '.join(clauses)}
                ORDER BY request_date, employee_id
                """,
                tuple(params),
            )
            return [_to_request(r) for r in fetchall(cur)]
