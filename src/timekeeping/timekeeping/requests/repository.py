from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import RequestKind, RequestStatus
from ..workflow.repository import SubjectStore
from .model import NewSimpleRequest, SimpleRequest


class SimpleRequestRepository(SubjectStore, Protocol):
    def create(
        self,
        *,
        data: NewSimpleRequest,
        department: Optional[str],
        created_by: int,
        created_at: datetime,
    ) -> int:
        raise NotImplementedError

    def get(self, *, request_id: int) -> Optional[SimpleRequest]:
        raise NotImplementedError

    def list_requests(
        self,
        *,
        kind: Optional[RequestKind] = None,
        status: Optional[RequestStatus] = None,
        employee_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[SimpleRequest]:
        raise NotImplementedError

    def list_in_range(
        self,
        *,
        start: date,
        end: date,
        statuses: Optional[Iterable[RequestStatus]] = None,
        employee_id: Optional[int] = None,
        department: Optional[str] = None,
    ) -> Sequence[SimpleRequest]:
        """Requests whose date span overlaps [start, end]."""

        raise NotImplementedError
