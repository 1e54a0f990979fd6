from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import RequestStatus
from ..workflow.repository import SubjectStore
from .model import NewOvertime, OvertimeRequest


class OvertimeRepository(SubjectStore, Protocol):
    def create(
        self,
        *,
        data: NewOvertime,
        department: Optional[str],
        created_by: int,
        created_at: datetime,
    ) -> int:
        raise NotImplementedError

    def get(self, *, request_id: int) -> Optional[OvertimeRequest]:
        raise NotImplementedError

    def exists_for_day(self, *, employee_id: int, overtime_date: date) -> bool:
        """True when a non-rejected request already covers the day."""

        raise NotImplementedError

    def update_rate(
        self,
        *,
        request_id: int,
        rate_multiplier: Decimal,
        edited_by: int,
        edited_at: datetime,
    ) -> bool:
        """Change the multiplier only while the request is still pending."""

        raise NotImplementedError

    def list_in_range(
        self,
        *,
        start: date,
        end: date,
        statuses: Optional[Iterable[RequestStatus]] = None,
        employee_id: Optional[int] = None,
        department: Optional[str] = None,
    ) -> Sequence[OvertimeRequest]:
        raise NotImplementedError
