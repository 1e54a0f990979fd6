"""SLVL bank ledger.

Balances are kept per (employee, leave type, year). Days are debited once, on
terminal approval; request creation only checks the current balance, so
several pending requests may together exceed it. Force approval may drive
``remaining_days`` negative and that overdraft stays visible.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional, Sequence

from ..common.context import ActorContext
from ..common.results import BulkResult
from ..common.validators import optional_text
from ..core.constants import LEAVE_BANK_YEARS_BACK, LEAVE_BANK_YEARS_FORWARD, MAX_ALLOCATION_DAYS
from ..core.enums import LeaveType, PayType
from ..core.exceptions import (
    AuthorizationError,
    DomainError,
    InsufficientBalanceError,
    NotFoundError,
    ValidationError,
)
from ..database.transactions import TransactionManager
from ..employees.repository import EmployeeRepository
from .model import LeaveBalance, LedgerEntry
from .repository import LeaveBankRepository

logger = logging.getLogger(__name__)


def _days(value) -> Decimal:
    try:
        return Decimal(str(value))
    except ArithmeticError:
        raise ValidationError("Days must be a number")


class LeaveLedger:
    def __init__(
        self,
        banks: LeaveBankRepository,
        employees: EmployeeRepository,
        *,
        transactions: TransactionManager,
        years_back: int = LEAVE_BANK_YEARS_BACK,
        years_forward: int = LEAVE_BANK_YEARS_FORWARD,
    ):
        self._banks = banks
        self._employees = employees
        self._transactions = transactions
        self._years_back = int(years_back)
        self._years_forward = int(years_forward)

    # -------- Reads --------
    def get_balance(self, employee_id: int, leave_type: LeaveType, year: int) -> LeaveBalance:
        bal = self._banks.get(employee_id=int(employee_id), leave_type=leave_type, year=int(year))
        if bal is None:
            return LeaveBalance(employee_id=int(employee_id), leave_type=leave_type, year=int(year), exists=False)
        return bal

    def balances_for(self, employee_id: int, year: Optional[int] = None) -> Sequence[LeaveBalance]:
        return self._banks.list_for_employee(employee_id=int(employee_id), year=year)

    def entries(self, employee_id: int, year: Optional[int] = None) -> Sequence[LedgerEntry]:
        return self._banks.list_entries(employee_id=int(employee_id), year=year)

    # -------- Validation helpers --------
    def check_year(self, year: int, ctx: ActorContext) -> int:
        year = int(year)
        low = ctx.now.year - self._years_back
        high = ctx.now.year + self._years_forward
        if year < low or year > high:
            raise ValidationError(f"Bank year must be between {low} and {high}")
        return year

    @staticmethod
    def _require_banked(leave_type: LeaveType) -> None:
        if not leave_type.is_banked:
            raise ValidationError(f"{leave_type.value} leave has no bank")

    @staticmethod
    def _require_administrator(ctx: ActorContext) -> None:
        if not ctx.is_privileged:
            raise AuthorizationError("Only HRD or a super admin can adjust leave banks")

    # -------- Administration --------
    def allocate(
        self,
        employee_id: int,
        leave_type: LeaveType,
        year: int,
        days,
        ctx: ActorContext,
        *,
        notes: Optional[str] = None,
    ) -> LeaveBalance:
        self._require_administrator(ctx)
        self._require_banked(leave_type)
        year = self.check_year(year, ctx)
        days = _days(days)
        if days <= 0 or days > MAX_ALLOCATION_DAYS:
            raise ValidationError(f"Days to add must be greater than 0 and at most {MAX_ALLOCATION_DAYS}")
        if not self._employees.get_by_id(int(employee_id)):
            raise NotFoundError(f"Employee #{employee_id} not found")

        notes = optional_text(notes)
        with self._transactions.atomic():
            self._banks.add_total(
                employee_id=int(employee_id),
                leave_type=leave_type,
                year=year,
                days=days,
                actor_id=ctx.user_id,
                notes=notes,
            )
            self._banks.add_entry(
                LedgerEntry(
                    employee_id=int(employee_id),
                    leave_type=leave_type,
                    year=year,
                    operation="allocate",
                    days=days,
                    created_at=ctx.now,
                    actor_id=ctx.user_id,
                    notes=notes,
                )
            )

        logger.info(
            "Allocated %s %s days for #%s (%s) by %s",
            days,
            leave_type.value,
            employee_id,
            year,
            ctx.user_id,
            extra={"employee_id": int(employee_id)},
        )
        return self.get_balance(employee_id, leave_type, year)

    def bulk_allocate(
        self,
        employee_ids: Sequence[int],
        leave_type: LeaveType,
        year: int,
        days,
        ctx: ActorContext,
        *,
        notes: Optional[str] = None,
    ) -> BulkResult:
        self._require_administrator(ctx)
        result = BulkResult()
        for raw_id in employee_ids:
            employee_id = int(raw_id)
            try:
                self.allocate(employee_id, leave_type, year, days, ctx, notes=notes)
                result.add_success(employee_id)
            except DomainError as exc:
                result.add_failure(employee_id, exc)
            except Exception as exc:
                logger.exception("Unexpected failure allocating leave for #%s", employee_id)
                result.add_failure(employee_id, exc)
        return result

    def initialize_year(
        self,
        year: int,
        ctx: ActorContext,
        *,
        sick_days=0,
        vacation_days=0,
        department: Optional[str] = None,
    ) -> int:
        """Create sick and vacation rows for active employees that have none for the year."""

        self._require_administrator(ctx)
        year = self.check_year(year, ctx)
        defaults = {LeaveType.SICK: _days(sick_days), LeaveType.VACATION: _days(vacation_days)}
        for leave_type, days in defaults.items():
            if days < 0 or days > MAX_ALLOCATION_DAYS:
                raise ValidationError(f"Initial {leave_type.value} days must be between 0 and {MAX_ALLOCATION_DAYS}")

        created = 0
        for employee in self._employees.list_active(department=department):
            with self._transactions.atomic():
                for leave_type, days in defaults.items():
                    if not self._banks.create_if_absent(
                        employee_id=employee.employee_id,
                        leave_type=leave_type,
                        year=year,
                        total_days=days,
                        actor_id=ctx.user_id,
                        notes=f"Initialized for {year}",
                    ):
                        continue
                    created += 1
                    self._banks.add_entry(
                        LedgerEntry(
                            employee_id=employee.employee_id,
                            leave_type=leave_type,
                            year=year,
                            operation="initialize",
                            days=days,
                            created_at=ctx.now,
                            actor_id=ctx.user_id,
                        )
                    )

        logger.info("Initialized %d leave banks for %s by %s", created, year, ctx.user_id)
        return created

    # -------- Request-driven operations --------
    def reserve_and_check(
        self,
        employee_id: int,
        leave_type: LeaveType,
        year: int,
        days: Decimal,
        pay_type: PayType,
    ) -> None:
        """Pre-commit validation only: nothing is held back."""

        if pay_type != PayType.WITH_PAY or not leave_type.is_banked:
            return
        bal = self.get_balance(employee_id, leave_type, year)
        if Decimal(days) > bal.remaining_days:
            logger.warning(
                "Insufficient %s balance for #%s (%s): requested %s, remaining %s",
                leave_type.value,
                employee_id,
                year,
                days,
                bal.remaining_days,
            )
            raise InsufficientBalanceError(
                f"Insufficient {leave_type.value} leave balance for {year}: "
                f"requested {days}, remaining {bal.remaining_days}",
                requested=Decimal(days),
                remaining=bal.remaining_days,
            )

    def _debit(
        self,
        operation: str,
        employee_id: int,
        leave_type: LeaveType,
        year: int,
        days: Decimal,
        ctx: ActorContext,
        *,
        request_id: Optional[int],
        require_available: bool,
    ) -> LeaveBalance:
        with self._transactions.atomic():
            ok = self._banks.debit(
                employee_id=int(employee_id),
                leave_type=leave_type,
                year=int(year),
                days=Decimal(days),
                require_available=require_available,
            )
            if not ok:
                bal = self.get_balance(employee_id, leave_type, year)
                raise InsufficientBalanceError(
                    f"Insufficient {leave_type.value} leave balance for {year}: "
                    f"requested {days}, remaining {bal.remaining_days}",
                    requested=Decimal(days),
                    remaining=bal.remaining_days,
                )
            self._banks.add_entry(
                LedgerEntry(
                    employee_id=int(employee_id),
                    leave_type=leave_type,
                    year=int(year),
                    operation=operation,
                    days=Decimal(days),
                    created_at=ctx.now,
                    request_id=request_id,
                    actor_id=ctx.user_id,
                )
            )
            bal = self.get_balance(employee_id, leave_type, year)

        logger.info(
            "%s %s %s days for #%s (%s), remaining %s",
            operation,
            days,
            leave_type.value,
            employee_id,
            year,
            bal.remaining_days,
            extra={"employee_id": int(employee_id)},
        )
        return bal

    def commit(
        self,
        employee_id: int,
        leave_type: LeaveType,
        year: int,
        days: Decimal,
        ctx: ActorContext,
        *,
        request_id: Optional[int] = None,
    ) -> LeaveBalance:
        return self._debit(
            "commit", employee_id, leave_type, year, days, ctx, request_id=request_id, require_available=True
        )

    def force_commit(
        self,
        employee_id: int,
        leave_type: LeaveType,
        year: int,
        days: Decimal,
        ctx: ActorContext,
        *,
        request_id: Optional[int] = None,
    ) -> LeaveBalance:
        return self._debit(
            "force_commit", employee_id, leave_type, year, days, ctx, request_id=request_id, require_available=False
        )

    def release(
        self,
        employee_id: int,
        leave_type: LeaveType,
        year: int,
        days,
        ctx: ActorContext,
        *,
        request_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> LeaveBalance:
        """Give days back to a bank; used days never drop below zero."""

        self._require_administrator(ctx)
        self._require_banked(leave_type)
        days = _days(days)
        if days <= 0 or days > MAX_ALLOCATION_DAYS:
            raise ValidationError(f"Days to release must be greater than 0 and at most {MAX_ALLOCATION_DAYS}")

        with self._transactions.atomic():
            if not self._banks.release(employee_id=int(employee_id), leave_type=leave_type, year=int(year), days=days):
                raise NotFoundError(f"No {leave_type.value} bank for #{employee_id} in {year}")
            self._banks.add_entry(
                LedgerEntry(
                    employee_id=int(employee_id),
                    leave_type=leave_type,
                    year=int(year),
                    operation="release",
                    days=days,
                    created_at=ctx.now,
                    request_id=request_id,
                    actor_id=ctx.user_id,
                    notes=optional_text(notes),
                )
            )

        logger.info("Released %s %s days for #%s (%s) by %s", days, leave_type.value, employee_id, year, ctx.user_id)
        return self.get_balance(employee_id, leave_type, year)

