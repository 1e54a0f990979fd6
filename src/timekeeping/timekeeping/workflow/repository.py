from __future__ import annotations

from typing import Optional, Protocol

from ..core.enums import ApprovalSlot, RequestStatus
from .model import Approval, WorkflowSubject


class SubjectStore(Protocol):
    """Persistence seam the workflow engine drives for one request kind."""

    def get_subject(self, *, request_id: int) -> Optional[WorkflowSubject]:
        raise NotImplementedError

    def apply_transition(
        self,
        *,
        request_id: int,
        expected_status: RequestStatus,
        new_status: RequestStatus,
        slot: ApprovalSlot,
        approval: Approval,
    ) -> bool:
        """Compare-and-swap the status and fill the slot; False if the status moved."""

        raise NotImplementedError
