from __future__ import annotations

from ..attendance.hooks import AttendanceSyncHook
from ..common.context import ActorContext
from ..common.datetime_utils import iter_dates
from ..core.enums import RequestStatus
from .ledger import LeaveLedger
from .model import SLVLRequest


class LeaveLedgerHook:
    """Debits the bank when a leave request reaches an approved state.

    Runs inside the transition's transaction; a failed debit rolls the status
    change back with it.
    """

    def __init__(self, ledger: LeaveLedger):
        self._ledger = ledger

    def before_apply(self, subject: SLVLRequest, target: RequestStatus, ctx: ActorContext) -> None:
        if target == RequestStatus.APPROVED and subject.draws_on_bank:
            self._ledger.reserve_and_check(
                subject.employee_id,
                subject.leave_type,
                subject.bank_year,
                subject.total_days,
                subject.pay_type,
            )

    def after_apply(self, subject: SLVLRequest, target: RequestStatus, ctx: ActorContext) -> None:
        if not subject.draws_on_bank:
            return
        if target == RequestStatus.APPROVED:
            self._ledger.commit(
                subject.employee_id,
                subject.leave_type,
                subject.bank_year,
                subject.total_days,
                ctx,
                request_id=subject.request_id,
            )
        elif target == RequestStatus.FORCE_APPROVED:
            self._ledger.force_commit(
                subject.employee_id,
                subject.leave_type,
                subject.bank_year,
                subject.total_days,
                ctx,
                request_id=subject.request_id,
            )


class LeaveAttendanceHook(AttendanceSyncHook):
    """Marks approved leave days on the attendance rows they cover."""

    label = "slvl"

    def dates_of(self, subject: SLVLRequest):
        return iter_dates(subject.start_date, subject.end_date)
