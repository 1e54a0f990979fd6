from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Employee


class EmployeeRepository(Protocol):
    """Read access to employees and department-manager bindings."""

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def list_active(self, *, department: Optional[str] = None) -> Sequence[Employee]:
        raise NotImplementedError

    def managed_departments(self, user_id: int) -> Sequence[str]:
        raise NotImplementedError
