from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import LeaveType, RequestStatus
from ..workflow.repository import SubjectStore
from .model import LeaveBalance, LedgerEntry, NewLeave, SLVLRequest


class LeaveBankRepository(Protocol):
    """SLVL bank rows; every method is a single read-modify-write statement."""

    def get(self, *, employee_id: int, leave_type: LeaveType, year: int) -> Optional[LeaveBalance]:
        raise NotImplementedError

    def list_for_employee(self, *, employee_id: int, year: Optional[int] = None) -> Sequence[LeaveBalance]:
        raise NotImplementedError

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
        """total_days += days, creating the row when absent."""

        raise NotImplementedError

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
        raise NotImplementedError

    def debit(
        self,
        *,
        employee_id: int,
        leave_type: LeaveType,
        year: int,
        days: Decimal,
        require_available: bool,
    ) -> bool:
        """used_days += days.

        With ``require_available`` the row must exist and hold enough
        remaining days, otherwise nothing changes and False is returned.
        Without it the row is created when absent and may go negative.
        """

        raise NotImplementedError

    def release(self, *, employee_id: int, leave_type: LeaveType, year: int, days: Decimal) -> bool:
        """used_days -= days, floored at zero."""

        raise NotImplementedError

    def add_entry(self, entry: LedgerEntry) -> None:
        raise NotImplementedError

    def list_entries(self, *, employee_id: int, year: Optional[int] = None) -> Sequence[LedgerEntry]:
        raise NotImplementedError


class LeaveRequestRepository(SubjectStore, Protocol):
    def create(
        self,
        *,
        data: NewLeave,
        department: Optional[str],
        created_by: int,
        created_at: datetime,
    ) -> int:
        raise NotImplementedError

    def get(self, *, request_id: int) -> Optional[SLVLRequest]:
        raise NotImplementedError

    def has_overlap(self, *, employee_id: int, start_date: date, end_date: date) -> bool:
        """True when a non-rejected request of the employee intersects the range."""

        raise NotImplementedError

    def list_in_range(
        self,
        *,
        start: date,
        end: date,
        statuses: Optional[Iterable[RequestStatus]] = None,
        employee_id: Optional[int] = None,
        department: Optional[str] = None,
    ) -> Sequence[SLVLRequest]:
        raise NotImplementedError
