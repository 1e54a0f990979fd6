from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_decimal
from .model import LeaveBalance, LedgerEntry
from .repository import LeaveBankRepository

# MySQL evaluates single-table SET assignments left to right, so
# remaining_days below sees the already-updated counters.


def _to_balance(r: dict) -> LeaveBalance:
    return LeaveBalance(
        employee_id=int(r["employee_id"]),
        leave_type=LeaveType(r["leave_type"]),
        year=int(r["year"]),
        total_days=to_decimal(r["total_days"]),
        used_days=to_decimal(r["used_days"]),
        remaining_days=to_decimal(r["remaining_days"]),
        notes=r.get("notes"),
    )


class MySQLLeaveBankRepository(LeaveBankRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, *, employee_id: int, leave_type: LeaveType, year: int) -> Optional[LeaveBalance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT employee_id, leave_type, year, total_days, used_days, remaining_days, notes
                FROM slvl_banks
                WHERE employee_id=%s AND leave_type=%s AND year=%s
                """,
                (int(employee_id), leave_type.value, int(year)),
            )
            r = fetchone(cur)
            return _to_balance(r) if r else None

    def list_for_employee(self, *, employee_id: int, year: Optional[int] = None) -> Sequence[LeaveBalance]:
        clauses = ["employee_id=%s"]
        params: list[object] = [int(employee_id)]
        if year is not None:
            clauses.append("year=%s")
            params.append(int(year))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT employee_id, leave_type, year, total_days, used_days, remaining_days, notes
                FROM slvl_banks
                WHERE {' AND '.join(clauses)}
                ORDER BY year DESC, leave_type
                """,
                tuple(params),
            )
            return [_to_balance(r) for r in fetchall(cur)]

    def add_total(
        self,
        *,
        employee_id: int,
        leave_type: LeaveType,
        year: int,
        days: Decimal,
        actor_id: int,
        notes: Optional[str] = None,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO slvl_banks(
                    employee_id, leave_type, year, total_days, used_days, remaining_days,
                    notes, created_by, updated_by
                )
                VALUES(%s,%s,%s,%s,0,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    total_days = total_days + VALUES(total_days),
                    remaining_days = total_days - used_days,
                    notes = CONCAT_WS('\n', notes, VALUES(notes)),
                    updated_by = VALUES(updated_by)
                """,
                (int(employee_id), leave_type.value, int(year), days, days, notes, int(actor_id), int(actor_id)),
            )

    def create_if_absent(
        self,
        *,
        employee_id: int,
        leave_type: LeaveType,
        year: int,
        total_days: Decimal,
        actor_id: int,
        notes: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO slvl_banks(
                    employee_id, leave_type, year, total_days, used_days, remaining_days,
                    notes, created_by, updated_by
                )
                VALUES(%s,%s,%s,%s,0,%s,%s,%s,%s)
                """,
                (
                    int(employee_id),
                    leave_type.value,
                    int(year),
                    total_days,
                    total_days,
                    notes,
                    int(actor_id),
                    int(actor_id),
                ),
            )
            return cur.rowcount > 0

    def debit(
        self,
        *,
        employee_id: int,
        leave_type: LeaveType,
        year: int,
        days: Decimal,
        require_available: bool,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            if require_available:
                cur.execute(
                    """
                    UPDATE slvl_banks
                    SET used_days = used_days + %s, remaining_days = total_days - used_days
                    WHERE employee_id=%s AND leave_type=%s AND year=%s AND remaining_days >= %s
                    """,
                    (days, int(employee_id), leave_type.value, int(year), days),
                )
                return cur.rowcount > 0

            cur.execute(
                """
                INSERT INTO slvl_banks(employee_id, leave_type, year, total_days, used_days, remaining_days)
                VALUES(%s,%s,%s,0,%s,%s)
                ON DUPLICATE KEY UPDATE
                    used_days = used_days + VALUES(used_days),
                    remaining_days = total_days - used_days
                """,
                (int(employee_id), leave_type.value, int(year), days, -days),
            )
            return True

    def release(self, *, employee_id: int, leave_type: LeaveType, year: int, days: Decimal) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE slvl_banks
                SET used_days = GREATEST(0, used_days - %s), remaining_days = total_days - used_days
                WHERE employee_id=%s AND leave_type=%s AND year=%s
                """,
                (days, int(employee_id), leave_type.value, int(year)),
            )
            return cur.rowcount > 0

    def add_entry(self, entry: LedgerEntry) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_bank_entries(
                    employee_id, leave_type, year, operation, days, request_id, actor_id, notes, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(entry.employee_id),
                    entry.leave_type.value,
                    int(entry.year),
                    entry.operation,
                    entry.days,
                    entry.request_id,
                    entry.actor_id,
                    entry.notes,
                    entry.created_at,
                ),
            )

    def list_entries(self, *, employee_id: int, year: Optional[int] = None) -> Sequence[LedgerEntry]:
        clauses = ["employee_id=%s"]
        params: list[object] = [int(employee_id)]
        if year is not None:
            clauses.append("year=%s")
            params.append(int(year))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT employee_id, leave_type, year, operation, days, request_id, actor_id, notes, created_at
                FROM leave_bank_entries
                WHERE {' AND '.join(clauses)}
                ORDER BY created_at, entry_id
                """,
                tuple(params),
            )
            return [
                LedgerEntry(
                    employee_id=int(r["employee_id"]),
                    leave_type=LeaveType(r["leave_type"]),
                    year=int(r["year"]),
                    operation=r["operation"],
                    days=to_decimal(r["days"]),
                    created_at=r["created_at"],
                    request_id=r.get("request_id"),
                    actor_id=r.get("actor_id"),
                    notes=r.get("notes"),
                )
                for r in fetchall(cur)
            ]
