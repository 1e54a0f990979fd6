"""Approval workflows per request kind.

A workflow is an ordered list of stages; each stage moves a request from one
status to the next and names who may decide it. Rejection is allowed from any
stage source by the same deciders. Force approval is not a stage: the engine
handles it for every kind.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from ..common.context import ActorContext
from ..core.enums import ApprovalSlot, RequestKind, RequestStatus
from .model import WorkflowSubject

Authorizer = Callable[[ActorContext, WorkflowSubject], bool]


def department_manager_or_admin(ctx: ActorContext, subject: WorkflowSubject) -> bool:
    return ctx.is_super_admin or ctx.manages(subject.department)


def hrd_or_admin(ctx: ActorContext, subject: WorkflowSubject) -> bool:
    return ctx.is_super_admin or ctx.is_hrd_manager


def any_approver(ctx: ActorContext, subject: WorkflowSubject) -> bool:
    return ctx.is_super_admin or ctx.is_hrd_manager or ctx.manages(subject.department)


@dataclass(frozen=True)
class Stage:
    source: RequestStatus
    target: RequestStatus
    slot: ApprovalSlot
    authorize: Authorizer
    reject_requires_remarks: bool = False
    description: str = ""


@dataclass(frozen=True)
class WorkflowDefinition:
    kind: RequestKind
    stages: Tuple[Stage, ...]

    def stage_from(self, status: RequestStatus) -> Optional[Stage]:
        for stage in self.stages:
            if stage.source == status:
                return stage
        return None


OVERTIME_WORKFLOW = WorkflowDefinition(
    kind=RequestKind.OVERTIME,
    stages=(
        Stage(
            source=RequestStatus.PENDING,
            target=RequestStatus.MANAGER_APPROVED,
            slot=ApprovalSlot.DEPARTMENT,
            authorize=department_manager_or_admin,
            reject_requires_remarks=True,
            description="department manager of the request's department",
        ),
        Stage(
            source=RequestStatus.MANAGER_APPROVED,
            target=RequestStatus.APPROVED,
            slot=ApprovalSlot.HRD,
            authorize=hrd_or_admin,
            description="HRD manager",
        ),
    ),
)


def single_stage_workflow(kind: RequestKind) -> WorkflowDefinition:
    return WorkflowDefinition(
        kind=kind,
        stages=(
            Stage(
                source=RequestStatus.PENDING,
                target=RequestStatus.APPROVED,
                slot=ApprovalSlot.REVIEW,
                authorize=any_approver,
                description="department manager or HRD manager",
            ),
        ),
    )
