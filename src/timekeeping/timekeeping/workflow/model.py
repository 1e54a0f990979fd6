from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from ..core.enums import ApprovalSlot, RequestKind, RequestStatus


@dataclass(frozen=True)
class Approval:
    """A decision recorded in one approval slot."""

    approver_id: int
    decided_at: datetime
    remarks: Optional[str] = None


class WorkflowSubject(Protocol):
    """What the engine needs to know about a request."""

    request_id: int
    employee_id: int
    department: Optional[str]
    status: RequestStatus


@dataclass(frozen=True)
class TransitionEvent:
    kind: RequestKind
    request_id: int
    employee_id: int
    old_status: RequestStatus
    new_status: RequestStatus
    slot: ApprovalSlot
    actor_id: int
    occurred_at: datetime
    remarks: Optional[str] = None
