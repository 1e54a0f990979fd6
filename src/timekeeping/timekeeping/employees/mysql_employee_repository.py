from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_decimal
from .model import Employee
from .repository import EmployeeRepository

_COLUMNS = "employee_id, full_name, department, pay_type, base_rate, schedule_id, is_active"


def _to_employee(row: dict) -> Employee:
    return Employee(
        employee_id=int(row["employee_id"]),
        full_name=row["full_name"],
        department=row.get("department"),
        pay_type=row.get("pay_type") or "monthly",
        base_rate=to_decimal(row.get("base_rate")),
        schedule_id=row.get("schedule_id"),
        is_active=bool(row.get("is_active", True)),
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE employee_id=%s", (int(employee_id),))
            row = fetchone(cur)
            return _to_employee(row) if row else None

    def list_active(self, *, department: Optional[str] = None) -> Sequence[Employee]:
        clauses = ["is_active=1"]
        params: list[object] = []
        if department:
            clauses.append("department=%s")
            params.append(department)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM employees WHERE {' AND '.join(clauses)} ORDER BY full_name",
                tuple(params),
            )
            return [_to_employee(r) for r in fetchall(cur)]

    def managed_departments(self, user_id: int) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT department FROM department_managers WHERE user_id=%s ORDER BY department",
                (int(user_id),),
            )
            return [r["department"] for r in fetchall(cur)]
