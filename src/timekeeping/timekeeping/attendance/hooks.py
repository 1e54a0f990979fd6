from __future__ import annotations

import logging
from datetime import date
from typing import Iterable

from ..common.context import ActorContext
from ..core.enums import RequestStatus
from ..workflow.model import WorkflowSubject
from .linked import LinkedFieldsSource
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceSyncHook:
    """Refreshes request-linked attendance fields once a request is approved.

    Subclasses say which attendance dates a request covers. Days without a
    processed row yet pick the request up when their punches are processed.
    """

    label = "request"

    def __init__(self, attendance: AttendanceRepository, links: LinkedFieldsSource):
        self._attendance = attendance
        self._links = links

    def dates_of(self, subject) -> Iterable[date]:
        raise NotImplementedError

    def label_of(self, subject) -> str:
        return self.label

    def before_apply(self, subject: WorkflowSubject, target: RequestStatus, ctx: ActorContext) -> None:
        return None

    def after_apply(self, subject: WorkflowSubject, target: RequestStatus, ctx: ActorContext) -> None:
        if not target.is_approved:
            return
        for attendance_date in self.dates_of(subject):
            linked = self._links.for_day(subject.employee_id, attendance_date)
            if self._attendance.apply_linked(
                employee_id=subject.employee_id, attendance_date=attendance_date, linked=linked
            ):
                continue
            logger.info(
                "%s #%s approved with no open attendance row for #%s on %s",
                self.label_of(subject),
                subject.request_id,
                subject.employee_id,
                attendance_date,
            )
