from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from ..common.context import ActorContext
from ..common.results import BulkResult
from ..common.validators import optional_text
from ..core.enums import ApprovalSlot, RequestKind, RequestStatus
from ..core.exceptions import (
    AuthorizationError,
    DomainError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from ..database.transactions import TransactionManager
from .audit import AuditSink, LoggingAuditSink
from .definitions import WorkflowDefinition
from .model import Approval, TransitionEvent, WorkflowSubject
from .repository import SubjectStore

logger = logging.getLogger(__name__)


class TransitionHook(Protocol):
    """Side effects tied to a transition, run inside its transaction."""

    def before_apply(self, subject: WorkflowSubject, target: RequestStatus, ctx: ActorContext) -> None:
        raise NotImplementedError

    def after_apply(self, subject: WorkflowSubject, target: RequestStatus, ctx: ActorContext) -> None:
        raise NotImplementedError


@dataclass
class _Registration:
    definition: WorkflowDefinition
    store: SubjectStore
    hooks: List[TransitionHook] = field(default_factory=list)


class WorkflowEngine:
    """One state machine for every request kind.

    Each transition re-reads the request, checks the stage and the actor, runs
    the hooks and swaps the status with a compare-and-swap, all inside one
    transaction. Terminal requests never move again, which is what keeps the
    leave ledger from being debited twice.
    """

    def __init__(self, *, transactions: TransactionManager, audit: Optional[AuditSink] = None):
        self._transactions = transactions
        self._audit = audit or LoggingAuditSink()
        self._registry: Dict[RequestKind, _Registration] = {}

    def register(
        self,
        definition: WorkflowDefinition,
        store: SubjectStore,
        *,
        hooks: Iterable[TransitionHook] = (),
    ) -> None:
        self._registry[definition.kind] = _Registration(definition=definition, store=store, hooks=list(hooks))

    def definition_for(self, kind: RequestKind) -> WorkflowDefinition:
        return self._registration(kind).definition

    def _registration(self, kind: RequestKind) -> _Registration:
        reg = self._registry.get(kind)
        if reg is None:
            raise ValidationError(f"No workflow registered for {kind.value}")
        return reg

    def _resolve_stage(
        self,
        definition: WorkflowDefinition,
        subject: WorkflowSubject,
        target: RequestStatus,
        ctx: ActorContext,
        remarks: Optional[str],
    ) -> ApprovalSlot:
        current = subject.status
        if current.is_terminal:
            raise StateConflictError(
                f"{definition.kind.value} #{subject.request_id} is already {current.value}"
            )

        if target == RequestStatus.FORCE_APPROVED:
            if not ctx.is_super_admin:
                raise AuthorizationError("Only a super admin can force approve")
            if not remarks:
                raise ValidationError("Remarks are required for force approval")
            return ApprovalSlot.ADMIN_OVERRIDE

        stage = definition.stage_from(current)
        if stage is None:
            raise StateConflictError(f"{definition.kind.value} #{subject.request_id} has no stage from {current.value}")

        if target == RequestStatus.REJECTED:
            if not stage.authorize(ctx, subject):
                raise AuthorizationError(f"Rejecting at this stage requires the {stage.description}")
            if stage.reject_requires_remarks and not remarks:
                raise ValidationError("Remarks are required when rejecting")
            return stage.slot

        if target != stage.target:
            raise StateConflictError(
                f"{definition.kind.value} #{subject.request_id} cannot move from {current.value} to {target.value}"
            )
        if not stage.authorize(ctx, subject):
            raise AuthorizationError(f"Approval at this stage requires the {stage.description}")
        return stage.slot

    def transition(
        self,
        kind: RequestKind,
        *,
        request_id: int,
        target: RequestStatus,
        ctx: ActorContext,
        remarks: Optional[str] = None,
    ) -> TransitionEvent:
        reg = self._registration(kind)
        remarks = optional_text(remarks)
        if target == RequestStatus.PENDING:
            raise ValidationError("A request cannot be moved back to pending")

        try:
            with self._transactions.atomic():
                subject = reg.store.get_subject(request_id=int(request_id))
                if subject is None:
                    raise NotFoundError(f"{kind.value} #{request_id} not found")

                slot = self._resolve_stage(reg.definition, subject, target, ctx, remarks)

                for hook in reg.hooks:
                    hook.before_apply(subject, target, ctx)

                applied = reg.store.apply_transition(
                    request_id=int(request_id),
                    expected_status=subject.status,
                    new_status=target,
                    slot=slot,
                    approval=Approval(approver_id=ctx.user_id, decided_at=ctx.now, remarks=remarks),
                )
                if not applied:
                    raise StateConflictError(f"{kind.value} #{request_id} changed while it was being decided")

                for hook in reg.hooks:
                    hook.after_apply(subject, target, ctx)
        except (StateConflictError, AuthorizationError) as exc:
            logger.warning("%s #%s -> %s refused: %s", kind.value, request_id, target.value, exc)
            raise

        event = TransitionEvent(
            kind=kind,
            request_id=int(request_id),
            employee_id=subject.employee_id,
            old_status=subject.status,
            new_status=target,
            slot=slot,
            actor_id=ctx.user_id,
            occurred_at=ctx.now,
            remarks=remarks,
        )
        self._audit.record(event)
        return event

    def bulk_transition(
        self,
        kind: RequestKind,
        *,
        request_ids: Sequence[int],
        target: RequestStatus,
        ctx: ActorContext,
        remarks: Optional[str] = None,
    ) -> BulkResult:
        """Apply one target status to many requests, each in its own transaction."""

        result = BulkResult()
        seen: set[int] = set()
        for raw_id in request_ids:
            request_id = int(raw_id)
            if request_id in seen:
                result.add_failure(request_id, ValidationError(f"{kind.value} #{request_id} is listed more than once"))
                continue
            seen.add(request_id)
            try:
                self.transition(kind, request_id=request_id, target=target, ctx=ctx, remarks=remarks)
                result.add_success(request_id)
            except DomainError as exc:
                result.add_failure(request_id, exc)
            except Exception as exc:
                logger.exception("Unexpected failure moving %s #%s to %s", kind.value, request_id, target.value)
                result.add_failure(request_id, exc)

        logger.info(
            "Bulk %s -> %s: %d succeeded, %d failed",
            kind.value,
            target.value,
            len(result.succeeded),
            len(result.failed),
        )
        return result
