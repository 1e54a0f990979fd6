from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceAnomaly, PostingStatus, PunchState
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_decimal
from .model import LinkedFields, ProcessedAttendance, RawPunch
from .repository import AttendanceRepository

_COLUMNS = (
    "a.attendance_id, a.employee_id, a.attendance_date, a.time_in, a.time_out, a.break_in, a.break_out, "
    "a.next_day_timeout, a.is_nightshift, a.hours_worked, a.late_minutes, a.undertime_minutes, "
    "a.is_processable, a.anomaly, a.overtime_hours, a.travel_order_hours, a.slvl_days, a.trip_count, "
    "a.offset_hours, a.holiday_multiplier, a.is_restday, a.is_ct, a.is_cs, a.is_ob, "
    "a.posting_status, a.posted_at, a.posted_by, a.version"
)

_WRITE_FIELDS = (
    "time_in",
    "time_out",
    "break_in",
    "break_out",
    "next_day_timeout",
    "is_nightshift",
    "hours_worked",
    "late_minutes",
    "undertime_minutes",
    "is_processable",
    "anomaly",
    "overtime_hours",
    "travel_order_hours",
    "slvl_days",
    "trip_count",
    "offset_hours",
    "holiday_multiplier",
    "is_restday",
    "is_ct",
    "is_cs",
    "is_ob",
)


def _to_record(r: dict) -> ProcessedAttendance:
    return ProcessedAttendance(
        attendance_id=int(r["attendance_id"]),
        employee_id=int(r["employee_id"]),
        attendance_date=r["attendance_date"],
        time_in=r.get("time_in"),
        time_out=r.get("time_out"),
        break_in=r.get("break_in"),
        break_out=r.get("break_out"),
        next_day_timeout=r.get("next_day_timeout"),
        is_nightshift=bool(r["is_nightshift"]),
        hours_worked=to_decimal(r["hours_worked"]),
        late_minutes=int(r["late_minutes"]),
        undertime_minutes=int(r["undertime_minutes"]),
        is_processable=bool(r["is_processable"]),
        anomaly=AttendanceAnomaly(r["anomaly"]) if r.get("anomaly") else None,
        overtime_hours=to_decimal(r["overtime_hours"]),
        travel_order_hours=to_decimal(r["travel_order_hours"]),
        slvl_days=to_decimal(r["slvl_days"]),
        trip_count=int(r["trip_count"]),
        offset_hours=to_decimal(r["offset_hours"]),
        holiday_multiplier=to_decimal(r["holiday_multiplier"], "1"),
        is_restday=bool(r["is_restday"]),
        is_ct=bool(r["is_ct"]),
        is_cs=bool(r["is_cs"]),
        is_ob=bool(r["is_ob"]),
        posting_status=PostingStatus(r["posting_status"]),
        posted_at=r.get("posted_at"),
        posted_by=r.get("posted_by"),
        version=int(r["version"]),
    )


def _write_values(record: ProcessedAttendance) -> list:
    values = []
    for name in _WRITE_FIELDS:
        v = getattr(record, name)
        if isinstance(v, bool):
            v = int(v)
        elif name == "anomaly":
            v = v.value if v else None
        values.append(v)
    return values


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- Raw punches --------
    def add_punches(self, punches: Sequence[RawPunch]) -> int:
        if not punches:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            inserted = 0
            for p in punches:
                cur.execute(
                    """
                    INSERT IGNORE INTO raw_punches(employee_id, punched_at, punch_state, device_id)
                    VALUES(%s,%s,%s,%s)
                    """,
                    (int(p.employee_id), p.punched_at, p.punch_state.value, p.device_id),
                )
                inserted += cur.rowcount
            return inserted

    def list_punches(self, *, employee_id: int, start: datetime, end: datetime) -> Sequence[RawPunch]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT employee_id, punched_at, punch_state, device_id
                FROM raw_punches
                WHERE employee_id=%s AND punched_at >= %s AND punched_at < %s
                ORDER BY punched_at
                """,
                (int(employee_id), start, end),
            )
            return [
                RawPunch(
                    employee_id=int(r["employee_id"]),
                    punched_at=r["punched_at"],
                    punch_state=PunchState(r["punch_state"]),
                    device_id=r.get("device_id"),
                )
                for r in fetchall(cur)
            ]

    # -------- Processed attendance --------
    def get_for_employee_and_date(self, employee_id: int, attendance_date: date) -> Optional[ProcessedAttendance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM processed_attendances a
                WHERE a.employee_id=%s AND a.attendance_date=%s
                """,
                (int(employee_id), attendance_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def save(self, record: ProcessedAttendance, *, expected_version: Optional[int]) -> bool:
        values = _write_values(record)
        with db_cursor(self._conn_factory) as (_, cur):
            if expected_version is None:
                cols = ", ".join(("employee_id", "attendance_date") + _WRITE_FIELDS)
                marks = ", ".join(["%s"] * (len(_WRITE_FIELDS) + 2))
                try:
                    cur.execute(
                        f"INSERT INTO processed_attendances({cols}, version) VALUES({marks}, 1)",
                        tuple([int(record.employee_id), record.attendance_date] + values),
                    )
                except mysql.connector.IntegrityError:
                    return False
                return True

            assignments = ", ".join(f"{name}=%s" for name in _WRITE_FIELDS)
            cur.execute(
                f"""
                UPDATE processed_attendances
                SET {assignments}, version=version+1
                WHERE employee_id=%s AND attendance_date=%s AND version=%s AND posting_status=%s
                """,
                tuple(
                    values
                    + [
                        int(record.employee_id),
                        record.attendance_date,
                        int(expected_version),
                        PostingStatus.NOT_POSTED.value,
                    ]
                ),
            )
            return cur.rowcount > 0

    def list_range(
        self,
        *,
        start_date: date,
        end_date: date,
        employee_id: Optional[int] = None,
        department: Optional[str] = None,
    ) -> Sequence[ProcessedAttendance]:
        clauses = ["a.attendance_date BETWEEN %s AND %s"]
        params: list[object] = [start_date, end_date]
        join = ""

        if employee_id is not None:
            clauses.append("a.employee_id=%s")
            params.append(int(employee_id))
        if department:
            join = "JOIN employees e ON e.employee_id = a.employee_id"
            clauses.append("e.department=%s")
            params.append(department)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM processed_attendances a
                {join}
                WHERE {' AND '.join(clauses)}
                ORDER BY a.attendance_date, a.employee_id
                """,
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def mark_posted(
        self,
        *,
        start_date: date,
        end_date: date,
        posted_by: int,
        posted_at: datetime,
        employee_id: Optional[int] = None,
    ) -> int:
        clauses = ["attendance_date BETWEEN %s AND %s", "posting_status=%s"]
        params: list[object] = [start_date, end_date, PostingStatus.NOT_POSTED.value]
        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(int(employee_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE processed_attendances
                SET posting_status=%s, posted_at=%s, posted_by=%s, version=version+1
                WHERE {' AND '.join(clauses)}
                """,
                tuple([PostingStatus.POSTED.value, posted_at, int(posted_by)] + params),
            )
            return int(cur.rowcount)

    def apply_linked(self, *, employee_id: int, attendance_date: date, linked: LinkedFields) -> bool:
        fields = linked.as_fields()
        assignments = ", ".join(f"{name}=%s" for name in fields)
        values = [int(v) if isinstance(v, bool) else v for v in fields.values()]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE processed_attendances
                SET {assignments}, version=version+1
                WHERE employee_id=%s AND attendance_date=%s AND posting_status=%s
                """,
                tuple(values + [int(employee_id), attendance_date, PostingStatus.NOT_POSTED.value]),
            )
            return cur.rowcount > 0
