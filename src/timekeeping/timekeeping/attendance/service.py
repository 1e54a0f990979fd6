from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date, time, timedelta
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from ..common.context import ActorContext
from ..common.results import BulkResult
from ..core.constants import DEFAULT_BREAK_MINUTES, DEFAULT_EXPECTED_TIME_IN, STANDARD_WORK_MINUTES
from ..core.exceptions import (
    AuthorizationError,
    DomainError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from ..database.transactions import TransactionManager
from ..employees.repository import EmployeeRepository
from .classifier import classify
from .linked import LinkedFieldsSource
from .model import AttendanceMetrics, DayPunches, ProcessedAttendance, RawPunch, RecalculationSummary
from .problems import RecordProblems, detect_problems
from .punches import assemble_day, punch_window
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    received: int = 0
    inserted: int = 0
    recomputed: List[Tuple[int, str]] = field(default_factory=list)
    outcome: BulkResult = field(default_factory=BulkResult)


def apply_metrics(base: ProcessedAttendance, day: DayPunches, metrics: AttendanceMetrics) -> ProcessedAttendance:
    return replace(
        base,
        time_in=day.time_in,
        time_out=day.time_out,
        break_in=day.break_in,
        break_out=day.break_out,
        next_day_timeout=day.next_day_timeout,
        is_nightshift=day.is_nightshift,
        hours_worked=metrics.hours_worked,
        late_minutes=metrics.late_minutes,
        undertime_minutes=metrics.undertime_minutes,
        is_processable=metrics.is_processable,
        anomaly=metrics.anomaly,
    )


def blank_record(employee_id: int, attendance_date: date) -> ProcessedAttendance:
    return ProcessedAttendance(
        employee_id=employee_id,
        attendance_date=attendance_date,
        time_in=None,
        time_out=None,
        break_in=None,
        break_out=None,
        next_day_timeout=None,
        is_nightshift=False,
        hours_worked=Decimal("0.00"),
        late_minutes=0,
        undertime_minutes=0,
    )


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        *,
        transactions: TransactionManager,
        expected_time_in: time = DEFAULT_EXPECTED_TIME_IN,
        default_break_minutes: int = DEFAULT_BREAK_MINUTES,
        standard_work_minutes: int = STANDARD_WORK_MINUTES,
        links: Optional[LinkedFieldsSource] = None,
    ):
        self._attendance = attendance
        self._employees = employees
        self._transactions = transactions
        self._links = links
        self._expected_time_in = expected_time_in
        self._default_break_minutes = int(default_break_minutes)
        self._standard_work_minutes = int(standard_work_minutes)

    def _classify(self, day: DayPunches) -> AttendanceMetrics:
        return classify(
            day,
            expected_time_in=self._expected_time_in,
            default_break_minutes=self._default_break_minutes,
            standard_work_minutes=self._standard_work_minutes,
        )

    def get(self, employee_id: int, attendance_date: date) -> ProcessedAttendance:
        rec = self._attendance.get_for_employee_and_date(int(employee_id), attendance_date)
        if not rec:
            raise NotFoundError(f"No attendance for employee #{employee_id} on {attendance_date}")
        return rec

    def problems(self, employee_id: int, attendance_date: date) -> RecordProblems:
        return detect_problems(self.get(employee_id, attendance_date))

    def ingest_punches(self, punches: Sequence[RawPunch]) -> IngestResult:
        """Store a punch batch and recompute every employee-day it touches.

        A punch can close the previous night's shift, so the day before each
        punch is recomputed too. Replays are harmless.
        """

        result = IngestResult(received=len(punches))
        if not punches:
            return result

        known: dict[int, bool] = {}
        accepted: List[RawPunch] = []
        for p in punches:
            if p.employee_id not in known:
                known[p.employee_id] = self._employees.get_by_id(p.employee_id) is not None
            if known[p.employee_id]:
                accepted.append(p)
            else:
                result.outcome.add_failure(
                    {"employee_id": p.employee_id, "punched_at": p.punched_at.isoformat()},
                    NotFoundError(f"Employee #{p.employee_id} not found"),
                )

        result.inserted = self._attendance.add_punches(accepted)

        days = sorted(
            {(p.employee_id, p.punched_at.date()) for p in accepted}
            | {(p.employee_id, p.punched_at.date() - timedelta(days=1)) for p in accepted}
        )
        for employee_id, d in days:
            try:
                rec = self.recompute(employee_id, d)
            except DomainError as exc:
                result.outcome.add_failure({"employee_id": employee_id, "attendance_date": d.isoformat()}, exc)
                continue
            if rec is not None:
                result.recomputed.append((employee_id, d.isoformat()))
                result.outcome.add_success({"employee_id": employee_id, "attendance_date": d.isoformat()})

        logger.info(
            "Ingested %d/%d punches, recomputed %d days",
            result.inserted,
            result.received,
            len(result.recomputed),
        )
        return result

    def recompute(self, employee_id: int, attendance_date: date) -> Optional[ProcessedAttendance]:
        """Rebuild one day from its stored punches.

        Returns None when the day has neither punches nor a stored row.
        """

        with self._transactions.atomic():
            existing = self._attendance.get_for_employee_and_date(int(employee_id), attendance_date)
            start, end = punch_window(attendance_date)
            punches = self._attendance.list_punches(employee_id=int(employee_id), start=start, end=end)
            day = assemble_day(int(employee_id), attendance_date, punches)
            if day.is_empty:
                return existing

            record = apply_metrics(existing or blank_record(int(employee_id), attendance_date), day, self._classify(day))
            if self._links is not None and not (existing and existing.is_posted):
                record = replace(record, **self._links.for_day(int(employee_id), attendance_date).as_fields())
            if (
                existing
                and record.computed_fields() == existing.computed_fields()
                and record.linked_fields() == existing.linked_fields()
            ):
                return existing
            if existing and existing.is_posted:
                raise StateConflictError(f"Attendance of #{employee_id} on {attendance_date} is already posted")

            saved = self._attendance.save(record, expected_version=existing.version if existing else None)
            if not saved:
                raise StateConflictError(f"Attendance of #{employee_id} on {attendance_date} changed concurrently")

        if not record.is_processable:
            logger.warning(
                "Attendance of #%s on %s flagged: %s",
                employee_id,
                attendance_date,
                record.anomaly.value if record.anomaly else "unprocessable",
            )
        return self._attendance.get_for_employee_and_date(int(employee_id), attendance_date)

    def recalculate_metrics(
        self,
        start_date: date,
        end_date: date,
        *,
        employee_id: Optional[int] = None,
    ) -> RecalculationSummary:
        """Re-run the classifier over stored rows, e.g. after a rule change."""

        if end_date < start_date:
            raise ValidationError("End date must not be before start date")

        processed = updated = unchanged = skipped = flagged = conflicts = 0
        for rec in self._attendance.list_range(start_date=start_date, end_date=end_date, employee_id=employee_id):
            processed += 1
            if rec.is_posted:
                skipped += 1
                continue

            fresh = apply_metrics(rec, rec.day_punches, self._classify(rec.day_punches))
            if not fresh.is_processable:
                flagged += 1
            if fresh.computed_fields() == rec.computed_fields():
                unchanged += 1
                continue

            with self._transactions.atomic():
                if not self._attendance.save(fresh, expected_version=rec.version):
                    logger.warning(
                        "Skipped recalculation of #%s on %s: row changed concurrently",
                        rec.employee_id,
                        rec.attendance_date,
                    )
                    conflicts += 1
                    continue
            updated += 1

        summary = RecalculationSummary(
            processed=processed,
            updated=updated,
            unchanged=unchanged,
            skipped_posted=skipped,
            flagged=flagged,
            conflicts=conflicts,
        )
        logger.info("Recalculated attendance %s..%s: %s", start_date, end_date, summary)
        return summary

    def post(
        self,
        start_date: date,
        end_date: date,
        ctx: ActorContext,
        *,
        employee_id: Optional[int] = None,
    ) -> int:
        if not ctx.is_privileged:
            raise AuthorizationError("Only HRD or a super admin can post attendance")
        if end_date < start_date:
            raise ValidationError("End date must not be before start date")

        with self._transactions.atomic():
            count = self._attendance.mark_posted(
                start_date=start_date,
                end_date=end_date,
                posted_by=ctx.user_id,
                posted_at=ctx.now,
                employee_id=employee_id,
            )
        logger.info("Posted %d attendance rows %s..%s by %s", count, start_date, end_date, ctx.user_id)
        return count
